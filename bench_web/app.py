"""FastAPI application for the Sulphuric Bench backend"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from bench.auth import build_auth_service
from bench.services.email_dispatcher import EmailDispatcher
from bench.services.newsletter_service import NewsletterService
from bench.services.object_storage import LocalObjectStorage
from bench.services.session_reaper import SessionReaper
from bench.stores import DataStore, create_store
from bench.utils.clock import Clock, utc_now
from bench.utils.config import Settings, config_manager
from bench.utils.exceptions import BenchError, ConfigError
from bench.utils.logger import get_logger

from . import auth_routes, health_routes, newsletter_routes, upload_routes

logger = get_logger(__name__)


def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def check_worker_count(settings: Settings, workers: int) -> None:
    """Refuse several worker processes on a store that only locks within one process."""
    backend = (settings.store.backend or "json").strip().lower()
    if workers > 1 and backend == "json":
        raise ConfigError(
            f"store.backend=json cannot be shared by {workers} workers; "
            "run a single worker or use the postgrest backend"
        )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DataStore] = None,
    clock: Clock = utc_now,
    email_dispatcher: Optional[EmailDispatcher] = None,
) -> FastAPI:
    """Build the application. Arguments override what settings would build."""
    settings = settings or config_manager.settings
    store = store or create_store(settings.store)
    auth_service = build_auth_service(settings.auth, store, clock=clock)
    dispatcher = email_dispatcher or EmailDispatcher.from_settings(settings.email)

    reaper = SessionReaper(auth_service, interval_minutes=settings.reaper.interval_minutes)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.reaper.enabled:
            reaper.start()
        yield
        if settings.reaper.enabled:
            reaper.stop()

    app = FastAPI(
        title=settings.app.name,
        description="Super-admin sessions, newsletter and uploads",
        version=settings.app.version,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.auth_service = auth_service
    app.state.newsletter_service = NewsletterService(store, dispatcher, clock=clock)
    app.state.object_storage = LocalObjectStorage.from_settings(settings.storage)
    app.state.session_reaper = reaper

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors.origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BenchError)
    async def bench_error_handler(request: Request, exc: BenchError):
        if exc.status_code >= 500:
            logger.error(
                "Request failed",
                path=request.url.path,
                error=str(exc),
                error_type=type(exc).__name__,
            )
        return _error_response(exc.status_code, exc.public_message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error_response(400, "Invalid request body")

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail))

    app.include_router(auth_routes.router)
    app.include_router(newsletter_routes.router)
    app.include_router(upload_routes.router)
    app.include_router(health_routes.router)

    upload_dir = Path(settings.storage.upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=str(upload_dir)), name="uploads")

    logger.info("Application created", environment=settings.app.environment, store=settings.store.backend)
    return app
