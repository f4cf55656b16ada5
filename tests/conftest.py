"""Shared test fixtures for StreamHub test suite."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from streamhub.domain.entities.media import (
    Item,
    Query,
    SourceResult,
    Stream,
    StreamQuality,
)
from streamhub.domain.exceptions import UpstreamError

PLUGINS_DIR = Path(__file__).resolve().parent.parent / "plugins"

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def stream() -> Stream:
    """Direct 1080p stream."""
    return Stream(
        id="sample-0",
        url="https://cdn.example.com/matrix/1080p.m3u8",
        source="sample",
        title="HD",
        quality=StreamQuality.FHD_1080P,
    )


@pytest.fixture()
def magnet_stream() -> Stream:
    """Indirect (magnet) stream that needs a resolution service."""
    return Stream(
        id="torrents-0",
        url="magnet:?xt=urn:btih:0123456789abcdef0123456789abcdef01234567",
        source="Torrents",
        title="The Matrix 1999 1080p",
        quality=StreamQuality.FHD_1080P,
    )


@pytest.fixture()
def item(stream: Stream) -> Item:
    return Item(
        id="https://example.com/matrix.html",
        title="The Matrix",
        year=1999,
        streams=[stream],
    )


@pytest.fixture()
def plugins_dir() -> Path:
    """Shipped source definitions."""
    return PLUGINS_DIR


# ---------------------------------------------------------------------------
# Gateway fakes
# ---------------------------------------------------------------------------


class FakeEndpoint:
    """Source endpoint with scripted latency and outcome."""

    def __init__(
        self,
        name: str,
        result: SourceResult | None = None,
        *,
        delay: float = 0.0,
        error: Exception | None = None,
    ) -> None:
        self._name = name
        self._result = result or SourceResult()
        self._delay = delay
        self._error = error
        self.calls: list[Query] = []

    @property
    def name(self) -> str:
        return self._name

    async def resolve(self, query: Query) -> SourceResult:
        self.calls.append(query)
        if self._delay:
            await asyncio.sleep(self._delay)
        if self._error is not None:
            raise self._error
        return self._result


@pytest.fixture()
def make_endpoint():
    """Factory for ``FakeEndpoint`` instances."""
    return FakeEndpoint


@pytest.fixture()
def failing_endpoint() -> FakeEndpoint:
    return FakeEndpoint("broken", error=UpstreamError("search status 503"))
