from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from deep_populate.api.lifespan import lifespan
from deep_populate.api.middleware import RequestLoggingMiddleware
from deep_populate.api.routes.content import router as content_router
from deep_populate.api.routes.health import router as health_router
from deep_populate.api.routes.plan import router as plan_router
from deep_populate.api.routes.root import router as root_router
from deep_populate.core.schema import SchemaResolutionError

logger = logging.getLogger(__name__)


async def _schema_resolution_failed(request: Request, exc: Exception) -> JSONResponse:
    # the deployed schema does not match the request; no partial response is sent
    logger.error("Schema resolution failed for %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app() -> FastAPI:
    app = FastAPI(
        title="Deep Populate API",
        description="Deep-populated, sanitized content queries over a content-schema graph.",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_exception_handler(SchemaResolutionError, _schema_resolution_failed)

    app.include_router(root_router, include_in_schema=False)
    app.include_router(health_router, include_in_schema=False)
    app.include_router(content_router)
    app.include_router(plan_router)

    return app
