"""Shared fixtures for integration tests.

These tests use real infrastructure components (SourceRegistry,
HtmlSiteSource, RealDebridResolver, the FastAPI app) with mocked HTTP via
respx.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterator

import httpx
import pytest
import respx


@pytest.fixture()
async def http_client() -> AsyncIterator[httpx.AsyncClient]:
    """Real httpx.AsyncClient for use with respx mocking."""
    async with httpx.AsyncClient() as client:
        yield client


@pytest.fixture()
def respx_mock() -> Iterator[respx.MockRouter]:
    """Explicit respx mock router for request interception."""
    with respx.mock(assert_all_called=False) as router:
        yield router
