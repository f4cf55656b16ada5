"""Gateway-side source endpoints: in-process or remote over HTTP."""

from __future__ import annotations

import httpx
import structlog

from streamhub.domain.entities.media import Query, SourceResult
from streamhub.domain.exceptions import UpstreamError
from streamhub.domain.ports.source_registry import SourceRegistryPort

from .codec import query_to_dict, source_result_from_dict

log = structlog.get_logger(__name__)


class LocalSourceEndpoint:
    """Calls a source loaded from the registry in this process.

    The registry lookup happens per call so a source that fails to load
    is reported as that source's error instead of breaking start-up.
    """

    def __init__(self, name: str, registry: SourceRegistryPort) -> None:
        self._name = name
        self._registry = registry

    @property
    def name(self) -> str:
        return self._name

    async def resolve(self, query: Query) -> SourceResult:
        source = self._registry.get(self._name)
        return await source.resolve(query)


class HttpSourceEndpoint:
    """POSTs the normalised query to a remote source adapter."""

    def __init__(self, name: str, url: str, http_client: httpx.AsyncClient) -> None:
        self._name = name
        self._url = url
        self._http = http_client

    @property
    def name(self) -> str:
        return self._name

    @property
    def url(self) -> str:
        return self._url

    async def resolve(self, query: Query) -> SourceResult:
        try:
            resp = await self._http.post(self._url, json=query_to_dict(query))
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Source {self._name} unreachable: {exc}") from exc

        if not resp.is_success:
            log.warning(
                "remote_source_status",
                source=self._name,
                url=self._url,
                status=resp.status_code,
            )
            raise UpstreamError(f"Source {self._name} responded with {resp.status_code}")

        try:
            return source_result_from_dict(resp.json(), self._name)
        except ValueError as exc:
            raise UpstreamError(f"Source {self._name} returned an invalid body") from exc
