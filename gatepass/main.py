"""MyGate API — FastAPI application factory."""


import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gatepass.core.config import settings
from gatepass.core.exceptions import register_exception_handlers
from gatepass.db import create_tables
from gatepass.middleware.request_log import RequestLogMiddleware
from gatepass.schemas.common import HealthResponse

# v1 routers
from gatepass.routers.v1.auth import router as auth_v1_router
from gatepass.routers.v1.dashboard import router as dashboard_v1_router
from gatepass.routers.v1.flats import router as flats_v1_router
from gatepass.routers.v1.profiles import router as profiles_v1_router
from gatepass.routers.v1.visitors import router as visitors_v1_router

logger = logging.getLogger(__name__)


def _configure_logging() -> None:
    """Set up structured logging for the application."""
    level = logging.DEBUG if settings.app_env == "development" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    if settings.auto_create_tables:
        logger.info("Creating database tables (AUTO_CREATE_TABLES=true)")
        await create_tables()
    yield


def create_app() -> FastAPI:
    _configure_logging()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url="/docs" if settings.app_env == "development" else None,
        redoc_url="/redoc" if settings.app_env == "development" else None,
        lifespan=_lifespan,
    )

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # --- Request logging ---
    app.add_middleware(RequestLogMiddleware)

    # --- Global exception handlers ---
    register_exception_handlers(app)

    # --- v1 API routes (/api/v1/*) ---
    app.include_router(auth_v1_router, prefix="/api/v1")
    app.include_router(dashboard_v1_router, prefix="/api/v1")
    app.include_router(flats_v1_router, prefix="/api/v1")
    app.include_router(profiles_v1_router, prefix="/api/v1")
    app.include_router(visitors_v1_router, prefix="/api/v1")

    # --- Health check ---
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health():
        return HealthResponse(app=settings.app_name, env=settings.app_env)

    return app


app = create_app()
