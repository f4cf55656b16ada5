"""kodikapi.com Python source for StreamHub.

Queries the Kodik JSON API instead of scraping pages:
- GET /search with title, imdb_id or kinopoisk_id (plus season / type filters)
- Each result carries its own player link and, for serials, a
  season -> episode -> link table
- Only the first result gets streams: the requested episode when both
  season and episode are given, otherwise the result's main player link
- The translation (dub studio) title becomes the stream's source label

Requires an API token in ``STREAMHUB_KODIK_TOKEN``; without it every
call fails with ``UpstreamError`` (reported per source by the gateway).
"""

from __future__ import annotations

import os
import re
from typing import Any

from streamhub.domain.entities.media import Item, MediaType, Query, Stream
from streamhub.domain.exceptions import UpstreamError
from streamhub.infrastructure.common.converters import to_int
from streamhub.infrastructure.extraction.collector import StreamCollector
from streamhub.infrastructure.sources.httpx_base import HttpxSourceBase, RequestContext

_API_URL = "https://kodikapi.com"
_IMDB_RE = re.compile(r"^tt\d+$", re.IGNORECASE)


def _episode_link(result: dict[str, Any], season: int, episode: int) -> str | None:
    episodes = result.get("episodes")
    if not isinstance(episodes, dict):
        return None
    season_table = episodes.get(str(season))
    if not isinstance(season_table, dict):
        return None
    entry = season_table.get(str(episode))
    if isinstance(entry, dict):
        entry = entry.get("link")
    return entry if isinstance(entry, str) else None


class KodikSource(HttpxSourceBase):
    """Python source for kodikapi.com using httpx."""

    name = "kodik"
    version = "1.0.0"
    base_url = _API_URL

    _user_agent = "StreamHub/0.1"

    def _search_params(self, query: Query, token: str) -> dict[str, str]:
        params = {
            "token": token,
            "limit": str(query.limit),
            "with_episodes": "true",
            "with_seasons": "true",
            "with_material_data": "true",
        }
        external_id = (query.external_id or "").strip()
        if _IMDB_RE.match(external_id):
            params["imdb_id"] = external_id
        elif external_id.isdigit():
            params["kinopoisk_id"] = external_id
        elif external_id and not query.text:
            params["title"] = external_id
        if query.text:
            params["title"] = query.text
        if query.season:
            params["season"] = str(query.season)
        if query.media_type != "any":
            params["types"] = "serial" if query.media_type == "series" else "movie"
        return params

    async def search(self, text: str, ctx: RequestContext) -> list[Item]:
        token = os.environ.get("STREAMHUB_KODIK_TOKEN", "")
        if not token:
            raise UpstreamError("STREAMHUB_KODIK_TOKEN not set")

        query = ctx.query
        resp = await self._fetch(
            f"{self.base_url}/search",
            context="search",
            params=self._search_params(query, token),
        )
        data = self._parse_json(resp, context="search")
        raw_results = data.get("results") if isinstance(data, dict) else None
        results = [r for r in raw_results or [] if isinstance(r, dict)]
        if query.year is not None:
            results = [r for r in results if to_int(r.get("year")) == query.year]

        self._log.info("kodik_search", query=text, results=len(results))
        if not results:
            return []

        items = [self._to_item(r) for r in results]
        items[0].streams = self._streams_for(results[0], query.season, query.episode)
        return items

    def _to_item(self, result: dict[str, Any]) -> Item:
        title = result.get("title") or result.get("title_orig") or "Unknown"
        material = result.get("material_data")
        poster = material.get("poster_url") if isinstance(material, dict) else None
        media_type: MediaType = "series" if "serial" in str(result.get("type") or "") else "movie"
        return Item(
            id=str(result.get("id") or result.get("link") or title),
            title=str(title),
            media_type=media_type,
            year=to_int(result.get("year")),
            poster=poster,
        )

    def _streams_for(
        self,
        result: dict[str, Any],
        season: int | None,
        episode: int | None,
    ) -> list[Stream]:
        translation = result.get("translation")
        label = translation.get("title") if isinstance(translation, dict) else None
        collector = StreamCollector(self.name)

        if season and episode:
            link = _episode_link(result, season, episode)
            if link and collector.add(link, title=f"S{season}E{episode}", source=label):
                return collector.streams

        collector.add(result.get("link"), title=label or "Kodik", source=label)
        return collector.streams


plugin = KodikSource()
