"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from streamhub.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from streamhub.application.use_cases import AggregateUseCase, ResolveLinksUseCase
    from streamhub.domain.ports import LinkResolverPort
    from streamhub.infrastructure.sources import SourceRegistry


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient
    sources: SourceRegistry
    link_resolvers: dict[str, LinkResolverPort]

    # Application Services
    aggregate_uc: AggregateUseCase
    resolve_links_uc: ResolveLinksUseCase
