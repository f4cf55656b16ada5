"""FastAPI application factory (create_app)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable

import structlog
from fastapi import FastAPI, Request
from starlette.responses import Response

from streamhub.infrastructure.config import AppConfig
from streamhub.interfaces.app_state import AppState
from streamhub.interfaces.composition import lifespan

log = structlog.get_logger(__name__)


def create_app(config: AppConfig) -> FastAPI:
    """Create FastAPI app: configuration only, no resource initialization.

    Resources (HTTP client, source registry, use cases) are created in lifespan().
    """
    app = FastAPI(
        title="StreamHub",
        description="Canonical stream resolution across heterogeneous sources",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state = AppState()
    app.state.config = config

    from streamhub.interfaces.api.gateway.router import router as gateway_router
    from streamhub.interfaces.api.resolve.router import router as resolve_router
    from streamhub.interfaces.api.stremio.router import router as stremio_router

    app.include_router(gateway_router, prefix="/api/v1")
    app.include_router(resolve_router, prefix="/api/v1")
    app.include_router(stremio_router, prefix="/api/v1")

    @app.get("/api/v1/healthz")
    async def healthz() -> dict[str, str | int]:
        """Liveness probe: returns 200 as long as the process is running."""
        sources = getattr(app.state, "sources", None)
        return {
            "status": "ok",
            "sources": len(sources.list_names()) if sources else 0,
        }

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ):
        start = time.perf_counter()
        response: Response | None = None
        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = (time.perf_counter() - start) * 1000.0
            log.info(
                "http_request",
                method=request.method,
                path=request.url.path,
                query=str(request.url.query),
                status_code=response.status_code if response is not None else 500,
                duration_ms=round(duration_ms, 2),
                client_host=(request.client.host if request.client else None),
            )

    return app
