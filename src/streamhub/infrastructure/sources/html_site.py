"""Generic adapter for sites described by a YAML site definition.

The definition carries only selectors and request shapes; everything
algorithmic (listing parsing, detail resolution, stream extraction) is
shared here so new sites need configuration, not code.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote_plus

from bs4 import Tag

from streamhub.domain.entities.media import Item, MediaType
from streamhub.domain.sources import SiteDefinition
from streamhub.infrastructure.common.converters import to_int
from streamhub.infrastructure.common.html_selectors import (
    absolute_url,
    find_year,
    first_attr,
    first_text,
    parse_html,
    select_items,
)
from streamhub.infrastructure.extraction import extract_streams

from .httpx_base import HttpxSourceBase, RequestContext


class HtmlSiteSource(HttpxSourceBase):
    """Source adapter driven by a ``SiteDefinition``."""

    def __init__(self, site: SiteDefinition) -> None:
        self.name = site.name
        self.version = site.version
        self.base_url = site.base_url
        if site.user_agent:
            self._user_agent = site.user_agent
        if site.timeout_seconds:
            self._timeout = site.timeout_seconds
        self._site = site
        super().__init__()

    @property
    def site(self) -> SiteDefinition:
        return self._site

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(self, text: str, ctx: RequestContext) -> list[Item]:
        cfg = self._site.search
        url = absolute_url(self.base_url + "/", cfg.path.replace("{query}", quote_plus(text)))
        form = {key: value.replace("{query}", text) for key, value in cfg.form.items()}

        form_kwargs: dict[str, Any] = {}
        if form:
            form_kwargs["data" if cfg.method == "POST" else "params"] = form

        resp = await self._fetch(
            url,
            method=cfg.method,
            context="search",
            headers={"Referer": self.base_url},
            **form_kwargs,
        )
        limit = ctx.query.limit
        if cfg.format == "json":
            items = self.parse_json_listing(self._parse_json(resp, context="search"), limit)
        else:
            items = self.parse_html_listing(resp.text, limit)

        self._log.info("source_search", source=self.name, query=text, count=len(items))
        return items

    def parse_html_listing(self, html: str, limit: int) -> list[Item]:
        """Parse a search result page into items (at most *limit*)."""
        cfg = self._site.search
        soup = parse_html(html)
        items: list[Item] = []

        for el in select_items(soup, cfg.item) if cfg.item else []:
            if len(items) >= limit:
                break
            # An empty link selector means the item element is the anchor.
            link_el = el if cfg.link == "" else el.select_one(cfg.link or "a[href]")
            href = str(link_el.get("href") or "") if link_el else ""
            title = first_text(el, [cfg.title]) if cfg.title else ""
            if not title and link_el is not None:
                title = str(link_el.get("title") or "") or link_el.get_text(" ", strip=True)
            if not href or not title:
                continue

            poster = None
            if cfg.poster:
                poster = absolute_url(self.base_url, first_attr(el, [cfg.poster], cfg.poster_attrs))

            items.append(
                Item(
                    id=absolute_url(self.base_url, href) or href,
                    title=title,
                    media_type=self._listing_media_type(el),
                    year=find_year(el.get_text(" ", strip=True)),
                    poster=poster,
                )
            )

        if not items and cfg.fallback_links:
            for anchor in soup.select(cfg.fallback_links)[:limit]:
                href = str(anchor.get("href") or "")
                title = (str(anchor.get("title") or "") or anchor.get_text(" ", strip=True)).strip()
                if href and title:
                    items.append(Item(id=absolute_url(self.base_url, href) or href, title=title))

        return items

    def parse_json_listing(self, data: Any, limit: int) -> list[Item]:
        """Parse a JSON search response into items (at most *limit*)."""
        cfg = self._site.search
        fields = cfg.json_fields
        hits = data.get(cfg.items_key) if isinstance(data, dict) else data
        if not isinstance(hits, list):
            return []

        items: list[Item] = []
        for hit in hits:
            if len(items) >= limit:
                break
            if not isinstance(hit, dict):
                continue
            link = absolute_url(self.base_url, str(hit.get(fields.link) or ""))
            title = str(hit.get(fields.title) or "").strip()
            if not link or not title:
                continue
            raw_poster = hit.get(fields.poster) if fields.poster else None
            raw_year = hit.get(fields.year) if fields.year else None
            items.append(
                Item(
                    id=link,
                    title=title,
                    year=to_int(raw_year) or find_year(str(raw_year or "")),
                    poster=absolute_url(self.base_url, str(raw_poster)) if raw_poster else None,
                )
            )
        return items

    def _listing_media_type(self, el: Tag) -> MediaType:
        cfg = self._site.search
        if not cfg.series_markers:
            return "movie"
        text = first_text(el, [cfg.media_type]) if cfg.media_type else el.get_text(" ")
        text = text.lower()
        return "series" if any(marker in text for marker in cfg.series_markers) else "movie"

    # ------------------------------------------------------------------
    # Detail
    # ------------------------------------------------------------------

    async def resolve_detail(self, reference: str, ctx: RequestContext) -> Item | None:
        """Fetch the detail page, follow its player iframe, extract streams.

        A failing player fetch degrades to extracting from the detail page.
        """
        detail = self._site.detail
        if not detail.enabled:
            return await super().resolve_detail(reference, ctx)

        url = absolute_url(self.base_url, reference) or reference
        html = await self._fetch_page(url, ctx, context="detail")
        soup = parse_html(html)

        title = first_text(soup, detail.title) or url
        poster = absolute_url(self.base_url, first_attr(soup, detail.poster, detail.poster_attrs))
        year = find_year(first_text(soup, detail.year)) if detail.year else None
        if year is None:
            year = find_year(html)

        player_html: str | None = None
        iframe_src = absolute_url(self.base_url, first_attr(soup, detail.iframe, ("src", "data-src")))
        if iframe_src:
            player_html = await self._fetch_player(iframe_src, url, ctx)

        query = ctx.query
        streams = extract_streams(
            player_html or html,
            query.season,
            query.episode,
            source_name=self.name,
        )

        media_type: MediaType = (
            "series" if query.season is not None or query.episode is not None else "movie"
        )
        return Item(
            id=url,
            title=title,
            media_type=media_type,
            year=year,
            poster=poster,
            streams=streams,
        )
