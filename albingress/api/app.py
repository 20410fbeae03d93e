"""FastAPI application factory for the albingress health and metrics API.

Usage::

    from albingress.api.app import create_app

    app = create_app(cache=cache, queue=queue)
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app

from albingress.ingress.group import INGRESS_KIND

_log = structlog.get_logger(component="api.app")


def create_app(cache: Any, queue: Any = None) -> FastAPI:
    """Create the health/readiness/metrics application.

    Args:
        cache: ResourceCache; readiness requires the Ingress kind to be synced.
        queue: Optional RateLimitingQueue, reported as queue depth.
    """
    from albingress import __version__

    app = FastAPI(
        title="albingress",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.cache = cache
    app.state.queue = queue

    app.mount("/metrics", make_asgi_app())

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/readyz")
    async def readyz(request: Request) -> JSONResponse:
        synced = request.app.state.cache.is_synced(INGRESS_KIND)
        body: dict[str, Any] = {"status": "ready" if synced else "not_ready", "ingress_cache_synced": synced}
        q = request.app.state.queue
        if q is not None:
            body["queue_depth"] = len(q)
        return JSONResponse(status_code=200 if synced else 503, content=body)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all for unhandled exceptions; never expose stack traces."""
        _log.error(
            "unhandled_exception",
            path=str(request.url.path),
            method=request.method,
            error=str(exc),
        )
        return JSONResponse(status_code=500, content={"error": "INTERNAL_ERROR"})

    return app
