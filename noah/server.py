"""FastAPI app exposing the archive query and artifact logging routes."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from noah.archive.routes import router as archive_router
from noah.artifacts.routes import router as artifacts_router
from noah.config import runtime_config

logger = logging.getLogger(__name__)


async def _generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(content={"error": "Internal server error"}, status_code=500)


def register_error_handlers(target_app: FastAPI) -> None:
    target_app.add_exception_handler(Exception, _generic_exception_handler)


def create_app() -> FastAPI:
    app = FastAPI(title="Noah Archive")
    register_error_handlers(app)
    app.include_router(archive_router)
    app.include_router(artifacts_router)
    logger.info("Archive config: %s", runtime_config.config_snapshot())
    return app


app = create_app()
