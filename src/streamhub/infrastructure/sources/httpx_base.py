"""Shared base class for httpx-based source adapters.

Holds what every source needs regardless of how it finds titles:
client lifecycle, cleanup, fetch helpers that turn transport failures into
``UpstreamError``, and the uniform two-branch ``resolve`` algorithm
(direct reference, then search, then best-effort enrichment of the first
item).

This base class lives in the *infrastructure* layer because it depends
on ``httpx`` and ``structlog``.  The *domain* layer only knows
``SourceProtocol``; sources that inherit from ``HttpxSourceBase``
structurally satisfy that Protocol.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

import httpx
import structlog

from streamhub.domain.entities.media import Item, Query, SourceResult
from streamhub.domain.exceptions import UpstreamError

from .constants import DEFAULT_CLIENT_TIMEOUT, DEFAULT_USER_AGENT, MAX_SEARCH_RESULTS


@dataclass
class RequestContext:
    """Per-``resolve`` state: the query plus a page memo keyed by URL.

    Created at the start of ``resolve`` and dropped when it returns, so a
    source instance can serve concurrent requests without sharing state.
    """

    query: Query
    pages: dict[str, str] = field(default_factory=dict)


class HttpxSourceBase:
    """Shared base for source adapters.

    Subclasses **must** set:
    - ``name``

    Subclasses **must** override:
    - ``search()`` (the abstract stub raises ``NotImplementedError``)

    Subclasses **may** override:
    - ``resolve_detail()`` to support direct references and enrichment
    - ``version``, ``base_url``, ``_timeout``, ``_user_agent``
    """

    # --- Must be set by subclass ---
    name: str = ""

    # --- Overridable defaults ---
    version: str = "1.0.0"
    base_url: str = ""

    _timeout: float = DEFAULT_CLIENT_TIMEOUT
    _user_agent: str = DEFAULT_USER_AGENT

    def __init__(self) -> None:
        self._client: httpx.AsyncClient | None = None
        self._log = structlog.get_logger(self.name or __name__)

    # ------------------------------------------------------------------
    # Client lifecycle
    # ------------------------------------------------------------------

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Create httpx client if not already running."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                follow_redirects=True,
                headers={"User-Agent": self._user_agent},
            )
        return self._client

    async def cleanup(self) -> None:
        """Close httpx client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ------------------------------------------------------------------
    # Fetch helpers
    # ------------------------------------------------------------------

    async def _fetch(
        self,
        url: str,
        *,
        method: str = "GET",
        context: str = "",
        **kwargs: Any,
    ) -> httpx.Response:
        """Fetch *url*; any non-success outcome raises ``UpstreamError``."""
        client = await self._ensure_client()
        try:
            resp = await client.request(method, url, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.TimeoutException as exc:
            self._log.warning("source_fetch_timeout", source=self.name, url=url, context=context)
            raise UpstreamError(f"{context or 'request'} timed out: {url}") from exc
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            self._log.warning(
                "source_http_error",
                source=self.name,
                url=url,
                status=status,
                context=context,
            )
            raise UpstreamError(f"{context or 'request'} status {status}: {url}") from exc
        except httpx.InvalidURL as exc:
            self._log.warning("source_invalid_url", source=self.name, url=url, context=context)
            raise UpstreamError(f"{context or 'request'} invalid URL: {url}") from exc
        except httpx.HTTPError as exc:
            self._log.warning(
                "source_fetch_error",
                source=self.name,
                url=url,
                error=str(exc),
                context=context,
            )
            raise UpstreamError(f"{context or 'request'} failed: {url}: {exc}") from exc

    async def _fetch_page(
        self,
        url: str,
        ctx: RequestContext,
        *,
        context: str = "page",
        headers: dict[str, str] | None = None,
    ) -> str:
        """GET *url* as text, memoised in the request context."""
        cached = ctx.pages.get(url)
        if cached is not None:
            return cached
        resp = await self._fetch(url, context=context, headers=headers)
        ctx.pages[url] = resp.text
        return resp.text

    async def _fetch_player(
        self,
        iframe_url: str,
        referer: str,
        ctx: RequestContext,
    ) -> str | None:
        """Fetch an embedded player document; None when it is unreachable.

        Players frequently gate on ``Referer``/``Origin``, so both are set.
        """
        parts = urlsplit(iframe_url)
        headers = {"Referer": referer, "Origin": f"{parts.scheme}://{parts.netloc}"}
        try:
            return await self._fetch_page(iframe_url, ctx, context="player", headers=headers)
        except UpstreamError:
            self._log.warning(
                "player_fetch_failed",
                source=self.name,
                iframe=iframe_url,
                referer=referer,
            )
            return None

    def _parse_json(self, response: httpx.Response, context: str = "") -> Any:
        """Parse JSON response; undecodable bodies raise ``UpstreamError``."""
        try:
            return response.json()
        except ValueError as exc:
            self._log.warning(
                "source_invalid_json",
                source=self.name,
                url=str(response.url),
                context=context,
            )
            raise UpstreamError(f"invalid JSON from {response.url}") from exc

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    async def resolve(self, query: Query) -> SourceResult:
        """Run the direct-reference and search branches, then enrich.

        Both branches run when both inputs are present; their items are
        appended in that order.  Fetch failures in either branch raise
        ``UpstreamError``; enrichment failures never do.
        """
        ctx = RequestContext(query=query)
        items: list[Item] = []

        if query.reference:
            detail = await self.resolve_detail(query.reference, ctx)
            if detail is not None:
                items.append(detail)

        if query.search_text:
            limit = min(query.limit, MAX_SEARCH_RESULTS)
            found = await self.search(query.search_text, ctx)
            items.extend(found[:limit])

        if query.year is not None:
            items = [item for item in items if item.year == query.year]

        await self._enrich_first(items, ctx)

        streams = list(items[0].streams) if items else []
        self._log.info(
            "source_resolved",
            source=self.name,
            items=len(items),
            streams=len(streams),
        )
        return SourceResult(items=items, streams=streams)

    async def _enrich_first(self, items: list[Item], ctx: RequestContext) -> None:
        """Attach detail-page streams to the first item (best-effort)."""
        if not items:
            return
        first = items[0]
        if first.streams or not first.is_fetchable:
            return
        try:
            detail = await self.resolve_detail(first.id, ctx)
        except Exception:  # noqa: BLE001
            self._log.warning(
                "source_enrich_failed",
                source=self.name,
                item_id=first.id,
                exc_info=True,
            )
            return
        if detail is not None and detail.streams:
            first.streams = list(detail.streams)

    async def resolve_detail(self, reference: str, ctx: RequestContext) -> Item | None:
        """Fetch one detail page and extract its streams.

        The default supports no direct references.
        """
        self._log.debug("direct_reference_unsupported", source=self.name, reference=reference)
        return None

    async def search(self, text: str, ctx: RequestContext) -> list[Item]:
        """Search the source and return listing items.

        Subclasses **must** override this method.
        """
        raise NotImplementedError(f"{type(self).__name__}.search() not implemented")
