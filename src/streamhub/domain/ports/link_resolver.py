"""Port for turning an indirect (magnet) link into a direct URL."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class LinkResolverPort(Protocol):
    """Third-party resolution service client.

    ``resolve`` raises ``ResolutionError`` (or a subclass) on any failed
    step; callers keep the original link in that case.
    """

    @property
    def name(self) -> str:
        """Provider key, e.g. 'realdebrid'."""
        ...

    @property
    def label(self) -> str:
        """Short tag appended to a resolved stream's source, e.g. 'RD'."""
        ...

    async def resolve(self, link: str, token: str) -> str: ...
