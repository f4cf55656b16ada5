"""Domain protocol for source adapters."""

from __future__ import annotations

from typing import Protocol

from streamhub.domain.entities.media import Query, SourceResult


class SourceProtocol(Protocol):
    """
    Protocol for source adapters.

    A Python source must export a module-level variable named `plugin` that:
    - has a `name: str` attribute
    - implements: async def resolve(query) -> SourceResult

    Raises UpstreamError on unrecoverable fetch failure.
    """

    name: str

    async def resolve(self, query: Query) -> SourceResult: ...
