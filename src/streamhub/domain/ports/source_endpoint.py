"""Port for calling one configured source from the gateway."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from streamhub.domain.entities.media import Query, SourceResult


@runtime_checkable
class SourceEndpointPort(Protocol):
    """One entry of the gateway's source list (in-process or remote).

    Implementations raise a ``SourceError`` subclass on failure; the
    gateway records it per source.
    """

    @property
    def name(self) -> str: ...

    async def resolve(self, query: Query) -> SourceResult: ...
