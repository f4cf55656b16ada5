"""Stremio addon API endpoints (manifest, configure, catalog search, stream)."""

from __future__ import annotations

from dataclasses import dataclass
from html import escape
from typing import Any, cast
from urllib.parse import parse_qsl, urlencode

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response

from streamhub.domain.entities.media import Item, Stream
from streamhub.domain.exceptions import InvalidQuery
from streamhub.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/stremio", tags=["stremio"])

_ADDON_ID = "community.streamhub"
_ADDON_VERSION = "0.1.0"
_CONTENT_TYPES = ("movie", "series")
_DEBRID_OPTIONS = ("none", "realdebrid")

_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
}


@dataclass(frozen=True)
class StremioStreamRequest:
    external_id: str
    content_type: str
    season: int | None = None
    episode: int | None = None


def _build_manifest() -> dict[str, Any]:
    """Build the Stremio addon manifest."""
    return {
        "id": _ADDON_ID,
        "version": _ADDON_VERSION,
        "name": "StreamHub",
        "description": "Streams aggregated from every configured source",
        "types": list(_CONTENT_TYPES),
        "catalogs": [
            {
                "type": content_type,
                "id": f"streamhub-{content_type}",
                "name": f"StreamHub {content_type.title()}",
                "extra": [
                    {"name": "search", "isRequired": True},
                    {"name": "year", "isRequired": False},
                ],
            }
            for content_type in _CONTENT_TYPES
        ],
        "resources": ["catalog", "stream"],
        "idPrefixes": ["tt", "http"],
        "behaviorHints": {
            "adult": False,
            "configurable": True,
        },
        "config": [
            {
                "key": "debridProvider",
                "title": "Debrid provider",
                "type": "select",
                "options": list(_DEBRID_OPTIONS),
                "default": "none",
                "required": False,
            },
            {
                "key": "debridToken",
                "title": "Debrid API token",
                "type": "text",
                "required": False,
            },
        ],
    }


def _optional_int(raw: str | None) -> int | None:
    if raw is None or not raw.strip().isdigit():
        return None
    return int(raw)


def _parse_stream_id(
    content_type: str,
    raw_id: str,
    season: str | None = None,
    episode: str | None = None,
) -> StremioStreamRequest | None:
    """Parse a Stremio stream ID.

    IMDb ids: "tt1234567" (movie) or "tt1234567:1:5" (season 1, episode 5).
    Anything else is taken verbatim as a source reference (catalog metas
    carry page URLs); season/episode then come from query parameters.
    """
    if content_type not in _CONTENT_TYPES or not raw_id:
        return None

    if raw_id.startswith("tt"):
        parts = raw_id.split(":")
        if content_type == "series" and len(parts) == 3:
            try:
                return StremioStreamRequest(
                    external_id=parts[0],
                    content_type=content_type,
                    season=int(parts[1]),
                    episode=int(parts[2]),
                )
            except ValueError:
                return None
        return StremioStreamRequest(external_id=parts[0], content_type=content_type)

    return StremioStreamRequest(
        external_id=raw_id,
        content_type=content_type,
        season=_optional_int(season),
        episode=_optional_int(episode),
    )


def _format_meta(item: Item, content_type: str) -> dict[str, Any]:
    meta: dict[str, Any] = {"id": item.id, "type": content_type, "name": item.title}
    if item.poster:
        meta["poster"] = item.poster
    if item.year:
        meta["releaseInfo"] = str(item.year)
    return meta


def _format_stremio_stream(stream: Stream) -> dict[str, str]:
    """Convert a canonical stream to Stremio JSON format."""
    return {
        "name": stream.source,
        "title": stream.title or stream.source,
        "url": stream.url,
        "description": stream.quality.value if stream.quality else "",
    }


@router.get("/manifest.json")
async def stremio_manifest() -> JSONResponse:
    """Serve the Stremio addon manifest."""
    return JSONResponse(content=_build_manifest(), headers=_HEADERS)


@router.get("/configure")
async def stremio_configure(request: Request) -> Response:
    """Build the Stremio install link carrying the debrid settings."""
    params = request.query_params
    provider = (params.get("debridProvider") or "realdebrid").lower()
    token = params.get("debridToken") or params.get("token")
    if not token:
        return JSONResponse(
            status_code=400,
            content={
                "error": "debridToken (or token) query parameter required",
                "example": "/stremio/configure?debridProvider=realdebrid&debridToken=YOUR_TOKEN",
            },
            headers=_HEADERS,
        )

    manifest_url = str(request.url_for("stremio_manifest"))
    install_url = f"{manifest_url}?{urlencode({'debridProvider': provider, 'debridToken': token})}"
    stremio_link = "stremio://" + install_url.split("://", 1)[1]

    page = (
        '<html><body style="font-family: sans-serif">'
        "<p>Click to install in Stremio:</p>"
        f'<p><a href="{escape(stremio_link)}">{escape(stremio_link)}</a></p>'
        "<p>If the link does not open, paste this URL into the Stremio add-on search:</p>"
        f"<code>{escape(install_url)}</code>"
        "</body></html>"
    )
    return HTMLResponse(content=page, headers=_HEADERS)


async def _catalog_metas(
    state: AppState,
    content_type: str,
    catalog_id: str,
    search: str | None,
    year: str | None,
) -> JSONResponse:
    """Serve gateway items as Stremio metas.

    Every item is returned: listings rarely know whether a hit is a film or
    a series, so the requested catalog type is applied to all metas.
    """
    if content_type not in _CONTENT_TYPES or not search or not search.strip():
        return JSONResponse(content={"metas": []}, headers=_HEADERS)

    raw_query: dict[str, Any] = {"text": search, "mediaType": content_type}
    year_value = _optional_int(year)
    if year_value is not None:
        raw_query["year"] = year_value

    try:
        result = await state.aggregate_uc.execute(raw_query)
    except InvalidQuery:
        return JSONResponse(content={"metas": []}, headers=_HEADERS)

    metas = [_format_meta(item, content_type) for item in result.items]
    log.info(
        "stremio_catalog_response",
        catalog_id=catalog_id,
        query=search,
        year=year_value,
        metas=len(metas),
        failed_sources=sorted(result.source_errors),
    )
    return JSONResponse(content={"metas": metas}, headers=_HEADERS)


@router.get("/catalog/{content_type}/{catalog_id}.json")
async def stremio_catalog(
    request: Request,
    content_type: str,
    catalog_id: str,
) -> JSONResponse:
    """Catalog with extras passed as query parameters (``?search=...&year=...``)."""
    state = cast(AppState, request.app.state)
    params = request.query_params
    return await _catalog_metas(
        state, content_type, catalog_id, params.get("search"), params.get("year")
    )


@router.get("/catalog/{content_type}/{catalog_id}/{extra}.json")
async def stremio_catalog_search(
    request: Request,
    content_type: str,
    catalog_id: str,
    extra: str,
) -> JSONResponse:
    """Catalog with extras in the path (``search=matrix&year=1999``)."""
    state = cast(AppState, request.app.state)
    extras = dict(parse_qsl(extra, keep_blank_values=True))
    return await _catalog_metas(
        state, content_type, catalog_id, extras.get("search"), extras.get("year")
    )


@router.get("/stream/{content_type}/{stream_id:path}.json")
async def stremio_stream(
    request: Request,
    content_type: str,
    stream_id: str,
) -> JSONResponse:
    """Resolve streams for a movie or episode.

    1. Parse the Stremio stream ID (IMDb ID + optional season/episode).
    2. Run the aggregation gateway with it as the external id.
    3. Optionally rewrite magnet links through the requested debrid provider.
    4. Format for Stremio.
    """
    state = cast(AppState, request.app.state)
    params = request.query_params

    parsed = _parse_stream_id(
        content_type, stream_id, params.get("season"), params.get("episode")
    )
    if parsed is None:
        return JSONResponse(content={"streams": []}, headers=_HEADERS)

    log.info(
        "stremio_stream_request",
        external_id=parsed.external_id,
        content_type=parsed.content_type,
        season=parsed.season,
        episode=parsed.episode,
    )

    try:
        result = await state.aggregate_uc.execute(
            {
                "externalId": parsed.external_id,
                "mediaType": parsed.content_type,
                "season": parsed.season,
                "episode": parsed.episode,
            }
        )
    except InvalidQuery:
        return JSONResponse(content={"streams": []}, headers=_HEADERS)

    streams = await state.resolve_links_uc.execute(
        result.streams,
        params.get("debridProvider"),
        params.get("debridToken"),
    )

    log.info(
        "stremio_stream_response",
        external_id=parsed.external_id,
        streams_returned=len(streams),
        failed_sources=sorted(result.source_errors),
    )
    return JSONResponse(
        content={"streams": [_format_stremio_stream(s) for s in streams]},
        headers=_HEADERS,
    )
