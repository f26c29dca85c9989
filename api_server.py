from __future__ import annotations  # FastAPI server exposing the mock interview API

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from api.auth_routes import router as auth_router
from api.catalog_routes import router as catalog_router
from api.realtime import router as realtime_router
from api.routes import router as interview_router
from config import Settings, settings as default_settings
from interview_session.errors import InterviewError, Unauthorized
from services.container import AppServices, build_services


logger = logging.getLogger(__name__)


def _interview_error_handler(request: Request, exc: InterviewError) -> JSONResponse:  # Map domain errors onto HTTP
    if exc.status_code >= 500:
        logger.error("Request failed path=%s status=%d: %s", request.url.path, exc.status_code, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message}, headers=headers)


def create_app(services: Optional[AppServices] = None, *, settings: Optional[Settings] = None) -> FastAPI:
    """Build the application; services are built on startup unless injected."""

    cfg = services.settings if services is not None else (settings or default_settings)

    media_dir = Path(cfg.MEDIA_DIR)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        media_dir.mkdir(parents=True, exist_ok=True)
        if getattr(app.state, "services", None) is None:
            app.state.services = build_services(cfg)
        yield

    app = FastAPI(title="Mock Interview API", lifespan=lifespan)
    app.state.services = services
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.CORS_ORIGINS,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(InterviewError, _interview_error_handler)
    app.include_router(auth_router)
    app.include_router(catalog_router)
    app.include_router(interview_router)
    app.include_router(realtime_router)

    app.mount(cfg.MEDIA_URL_PREFIX, StaticFiles(directory=str(media_dir), check_dir=False), name="uploads")

    @app.get("/api/health")
    def health() -> dict:
        return {"status": "ok"}

    return app


app = create_app()
