"""Aggregation gateway and single-source adapter endpoints."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from streamhub.application.use_cases import normalize_query
from streamhub.domain.exceptions import (
    InvalidQuery,
    SourceError,
    SourceNotFoundError,
    SourceRegistryError,
)
from streamhub.infrastructure.gateway.codec import (
    aggregation_to_dict,
    source_result_to_dict,
)
from streamhub.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["gateway"])


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        raise InvalidQuery("Body must be valid JSON") from None


@router.post("/query")
async def query_all(request: Request) -> JSONResponse:
    """Fan the query out to every configured source and merge the results.

    Only a malformed query is an error here; per-source failures land in
    ``sourceErrors`` and the response is still 200.
    """
    state = cast(AppState, request.app.state)

    try:
        body = await _json_body(request)
        result = await state.aggregate_uc.execute(body)
    except InvalidQuery as e:
        log.info("query_rejected", error=str(e))
        return JSONResponse(status_code=400, content={"error": str(e)})

    return JSONResponse(status_code=200, content=aggregation_to_dict(result))


@router.get("/sources")
async def list_sources(request: Request) -> dict[str, list[str]]:
    state = cast(AppState, request.app.state)
    return {"sources": state.sources.list_names()}


@router.post("/sources/{name}/query")
async def query_source(request: Request, name: str) -> JSONResponse:
    """Expose one in-process source over the source adapter contract.

    Lets a gateway elsewhere reference this source by URL.
    """
    state = cast(AppState, request.app.state)

    try:
        source = state.sources.get(name)
    except SourceNotFoundError:
        return JSONResponse(
            status_code=404, content={"error": f"Unknown source: {name}"}
        )
    except SourceRegistryError as e:
        log.warning("source_unavailable", source=name, error=str(e))
        return JSONResponse(status_code=502, content={"error": str(e)})

    try:
        body = await _json_body(request)
        query = normalize_query(body, allow_reference_only=True)
    except InvalidQuery as e:
        return JSONResponse(status_code=400, content={"error": str(e)})

    try:
        result = await source.resolve(query)
    except SourceError as e:
        log.warning("source_query_failed", source=name, error=str(e))
        return JSONResponse(status_code=502, content={"error": str(e)})

    return JSONResponse(status_code=200, content=source_result_to_dict(result))
