"""Link resolution endpoint (magnet links -> direct URLs)."""

from __future__ import annotations

from typing import cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from streamhub.infrastructure.gateway.codec import stream_to_dict, streams_from_list
from streamhub.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["resolve"])


@router.post("/resolve")
async def resolve_links(request: Request) -> JSONResponse:
    state = cast(AppState, request.app.state)

    try:
        body = await request.json()
    except ValueError:
        return JSONResponse(status_code=400, content={"error": "Body must be valid JSON"})
    if not isinstance(body, dict):
        return JSONResponse(
            status_code=400, content={"error": "Body must be a JSON object"}
        )

    streams = streams_from_list(body.get("streams"))
    provider = body.get("provider")
    token = body.get("token")

    resolved = await state.resolve_links_uc.execute(
        streams,
        provider if isinstance(provider, str) else None,
        token if isinstance(token, str) else None,
    )
    log.info(
        "resolve_request",
        provider=provider,
        streams=len(streams),
        indirect=sum(1 for s in streams if s.is_indirect),
    )
    return JSONResponse(
        status_code=200, content={"streams": [stream_to_dict(s) for s in resolved]}
    )
