"""In-memory sample source for local development and end-to-end checks.

Serves a fixed two-title catalogue without any network access. Matches
on IMDb id or case-insensitive title substring and honours the query's
media type.
"""

from __future__ import annotations

from streamhub.domain.entities.media import Item, Stream, StreamQuality
from streamhub.infrastructure.sources.httpx_base import HttpxSourceBase, RequestContext

_CATALOGUE = (
    {
        "imdb": "tt0133093",
        "title": "The Matrix",
        "media_type": "movie",
        "year": 1999,
        "poster": "https://image.tmdb.org/t/p/w500/f89U3ADr1oiB1s9GkdPOEpXUk5H.jpg",
        "stream_id": "matrix-hd",
        "stream_url": "https://example.com/matrix/1080p.m3u8",
    },
    {
        "imdb": "tt2911666",
        "title": "John Wick",
        "media_type": "movie",
        "year": 2014,
        "poster": "https://image.tmdb.org/t/p/w500/fZPSd91yGE9fCcCe6OoQr6E3Bev.jpg",
        "stream_id": "john-wick-hd",
        "stream_url": "https://example.com/johnwick/1080p.m3u8",
    },
)


class SampleSource(HttpxSourceBase):
    name = "sample"
    version = "1.0.0"

    async def search(self, text: str, ctx: RequestContext) -> list[Item]:
        lowered = text.lower()
        media_type = ctx.query.media_type

        items: list[Item] = []
        for entry in _CATALOGUE:
            if entry["imdb"] != text and lowered not in str(entry["title"]).lower():
                continue
            if media_type != "any" and entry["media_type"] != media_type:
                continue
            items.append(
                Item(
                    id=str(entry["imdb"]),
                    title=str(entry["title"]),
                    media_type="series" if entry["media_type"] == "series" else "movie",
                    year=int(entry["year"]),
                    poster=str(entry["poster"]),
                    streams=[
                        Stream(
                            id=str(entry["stream_id"]),
                            url=str(entry["stream_url"]),
                            source=self.name,
                            title="HD",
                            quality=StreamQuality.FHD_1080P,
                        )
                    ],
                )
            )
        return items


plugin = SampleSource()
