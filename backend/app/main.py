from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from app.api.api_v1 import api_router
from app.core.config import settings
from app.core.errors import StoreError
from app.core.logging import configure_logging
from app.db.base import Base
from app.db.session import SessionLocal, engine
from app.services.session_sweeper import SessionSweeper

import app.models

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    configure_logging()
    app = FastAPI(title=settings.PROJECT_NAME)
    sweeper = SessionSweeper(SessionLocal, settings.SESSION_SWEEP_INTERVAL_SECONDS)
    app.state.session_sweeper = sweeper

    @app.middleware("http")
    async def cors_middleware(request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            response = await call_next(request)

        origin = request.headers.get("origin")
        if origin and ("*" in settings.CORS_ORIGINS or origin in settings.CORS_ORIGINS):
            response.headers["Access-Control-Allow-Origin"] = origin
        elif "*" in settings.CORS_ORIGINS:
            response.headers["Access-Control-Allow-Origin"] = "*"

        response.headers["Access-Control-Allow-Methods"] = "GET, POST, PUT, PATCH, DELETE, OPTIONS"
        request_headers = request.headers.get("Access-Control-Request-Headers")
        if request_headers:
            response.headers["Access-Control-Allow-Headers"] = request_headers
        else:
            response.headers["Access-Control-Allow-Headers"] = "*"

        response.headers["Access-Control-Allow-Credentials"] = "false"
        return response

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.debug("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.on_event("startup")
    def on_startup() -> None:
        Base.metadata.create_all(bind=engine)

    @app.on_event("startup")
    async def start_sweeper() -> None:
        if settings.SESSION_SWEEP_ENABLED:
            sweeper.start()

    @app.on_event("shutdown")
    async def stop_sweeper() -> None:
        await sweeper.stop()

    app.include_router(api_router, prefix=settings.API_V1_STR)

    return app


app = create_app()
