"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from streamhub.application.use_cases import AggregateUseCase, ResolveLinksUseCase
from streamhub.domain.ports import SourceEndpointPort, SourceRegistryPort
from streamhub.infrastructure.config.schema import AppConfig
from streamhub.infrastructure.debrid import build_link_resolvers
from streamhub.infrastructure.gateway import HttpSourceEndpoint, LocalSourceEndpoint
from streamhub.infrastructure.sources import SourceRegistry
from streamhub.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_endpoints(
    config: AppConfig,
    registry: SourceRegistryPort,
    http_client: httpx.AsyncClient,
) -> list[SourceEndpointPort]:
    """Gateway endpoints in configured order.

    An empty ``gateway.sources`` list means every discovered source,
    in-process, in registry order.
    """
    if not config.gateway.sources:
        return [LocalSourceEndpoint(name, registry) for name in registry.list_names()]

    endpoints: list[SourceEndpointPort] = []
    for entry in config.gateway.sources:
        if entry.url is not None:
            endpoints.append(HttpSourceEndpoint(entry.name, str(entry.url), http_client))
        else:
            endpoints.append(LocalSourceEndpoint(entry.name, registry))
    return endpoints


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. HTTP Client (remote endpoints + link resolvers)
        2. Source Registry
        3. Gateway endpoints + aggregation use case
        4. Link resolvers + resolution use case
    """
    state = cast(AppState, app.state)
    config = state.config

    # 1) Shared HTTP client
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=True,
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    # 2) Source registry
    state.sources = SourceRegistry(plugin_dir=config.plugin_dir)
    state.sources.discover()

    # 3) Gateway
    endpoints = build_endpoints(config, state.sources, state.http_client)
    state.aggregate_uc = AggregateUseCase(
        sources=endpoints,
        timeout_seconds=config.gateway.timeout_seconds,
    )
    log.info(
        "gateway_initialized",
        sources=[e.name for e in endpoints],
        timeout_seconds=config.gateway.timeout_seconds,
    )

    # 4) Link resolution
    state.link_resolvers = build_link_resolvers(
        config.debrid.enabled_providers, state.http_client
    )
    state.resolve_links_uc = ResolveLinksUseCase(state.link_resolvers)
    log.info("link_resolvers_initialized", providers=sorted(state.link_resolvers))

    log.info("app_startup_complete")

    try:
        yield
    finally:
        await state.sources.cleanup()
        log.info("sources_cleaned_up")

        await state.http_client.aclose()
        log.info("http_client_closed")

        log.info("app_shutdown_complete")
