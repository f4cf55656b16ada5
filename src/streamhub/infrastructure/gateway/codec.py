"""JSON wire codec for canonical entities (camelCase keys).

Optional keys are omitted when unset.  Decoding is tolerant: malformed
items and streams coming from a remote adapter are skipped and logged,
never raised, so one bad record cannot sink a whole source result.
"""

from __future__ import annotations

from typing import Any

import structlog

from streamhub.domain.entities.media import (
    AggregationResult,
    Item,
    Query,
    SourceResult,
    Stream,
    StreamQuality,
    Subtitle,
)
from streamhub.infrastructure.common.converters import to_int

log = structlog.get_logger(__name__)

_QUALITIES = {q.value: q for q in StreamQuality}


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None}


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def subtitle_to_dict(subtitle: Subtitle) -> dict[str, Any]:
    return _drop_none({"url": subtitle.url, "lang": subtitle.lang, "label": subtitle.label})


def stream_to_dict(stream: Stream) -> dict[str, Any]:
    data = _drop_none(
        {
            "id": stream.id,
            "title": stream.title,
            "url": stream.url,
            "quality": stream.quality.value if stream.quality else None,
            "source": stream.source,
        }
    )
    # Streams decoded without an id or source re-encode without those keys.
    for key in ("id", "source"):
        if not data.get(key):
            data.pop(key, None)
    if stream.subtitles:
        data["subtitles"] = [subtitle_to_dict(s) for s in stream.subtitles]
    return data


def item_to_dict(item: Item) -> dict[str, Any]:
    data = _drop_none(
        {
            "id": item.id,
            "title": item.title,
            "mediaType": item.media_type,
            "year": item.year,
            "poster": item.poster,
        }
    )
    data["streams"] = [stream_to_dict(s) for s in item.streams]
    return data


def query_to_dict(query: Query) -> dict[str, Any]:
    """Normalised query as sent to a remote source adapter."""
    return _drop_none(
        {
            "text": query.text,
            "externalId": query.external_id,
            "directReference": query.direct_reference,
            "mediaType": query.media_type,
            "year": query.year,
            "season": query.season,
            "episode": query.episode,
            "limit": query.limit,
        }
    )


def source_result_to_dict(result: SourceResult) -> dict[str, Any]:
    return {
        "items": [item_to_dict(i) for i in result.items],
        "streams": [stream_to_dict(s) for s in result.streams],
    }


def aggregation_to_dict(result: AggregationResult) -> dict[str, Any]:
    data: dict[str, Any] = {
        "items": [item_to_dict(i) for i in result.items],
        "streams": [stream_to_dict(s) for s in result.streams],
    }
    if result.source_errors:
        data["sourceErrors"] = {name: str(err) for name, err in result.source_errors.items()}
    return data


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def subtitle_from_dict(data: Any) -> Subtitle | None:
    if not isinstance(data, dict) or not isinstance(data.get("url"), str):
        return None
    return Subtitle(url=data["url"], lang=data.get("lang"), label=data.get("label"))


def stream_from_dict(data: Any, default_source: str = "") -> Stream | None:
    """Decode one stream; None when it is not a valid canonical stream."""
    if not isinstance(data, dict):
        return None
    subtitles = tuple(
        s for s in (subtitle_from_dict(raw) for raw in data.get("subtitles") or []) if s
    )
    try:
        return Stream(
            id=str(data.get("id") or ""),
            url=str(data.get("url") or ""),
            source=str(data.get("source") or default_source),
            title=data.get("title"),
            quality=_QUALITIES.get(str(data.get("quality") or "")),
            subtitles=subtitles,
        )
    except ValueError:
        log.warning("stream_decode_skipped", url=data.get("url"), source=default_source)
        return None


def streams_from_list(raw: Any, default_source: str = "") -> list[Stream]:
    if not isinstance(raw, list):
        return []
    return [s for s in (stream_from_dict(d, default_source) for d in raw) if s is not None]


def item_from_dict(data: Any, default_source: str = "") -> Item | None:
    if not isinstance(data, dict):
        return None
    item_id = data.get("id")
    title = data.get("title")
    if not item_id or not title:
        return None
    media_type = data.get("mediaType") or data.get("type")
    return Item(
        id=str(item_id),
        title=str(title),
        media_type="series" if media_type == "series" else "movie",
        year=to_int(data.get("year")),
        poster=data.get("poster") if isinstance(data.get("poster"), str) else None,
        streams=streams_from_list(data.get("streams"), default_source),
    )


def source_result_from_dict(data: Any, source: str) -> SourceResult:
    """Decode a remote adapter's ``{items, streams}`` body."""
    if not isinstance(data, dict):
        raise ValueError("source response must be a JSON object")
    items = [i for i in (item_from_dict(d, source) for d in data.get("items") or []) if i]
    return SourceResult(items=items, streams=streams_from_list(data.get("streams"), source))
