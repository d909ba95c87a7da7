"""
ShowMe Content Server - FastAPI application factory
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from showme.routers import files

if TYPE_CHECKING:
    from showme.services.content_store import TempArtifactStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager - startup and shutdown logging"""
    logger.info("[Backend] Content server starting (%d files held)", len(app.state.store))
    yield
    logger.info("[Backend] Content server shutting down")


def create_app(store: TempArtifactStore) -> FastAPI:
    """Build the app around an injected store; nothing is module-global"""
    app = FastAPI(
        title="ShowMe Content Server",
        description="Serves generated file and diff views to the browser",
        version="1.0.0",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.store = store

    app.include_router(files.router, tags=["files"])

    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {"status": "ok", "tempFiles": len(app.state.store)}

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return PlainTextResponse("Not found", status_code=404)
        return PlainTextResponse(str(exc.detail), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.error("[Backend] Request to %s failed: %s", request.url.path, exc)
        return PlainTextResponse("Internal Server Error", status_code=500)

    return app
