"""Port for source discovery and access."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from streamhub.domain.sources.base import SourceProtocol


@runtime_checkable
class SourceRegistryPort(Protocol):
    """Synchronous interface for source discovery, listing, and retrieval."""

    def discover(self) -> None: ...
    def list_names(self) -> list[str]: ...
    def get(self, name: str) -> SourceProtocol: ...
