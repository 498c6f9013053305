"""FastAPI application factory.

Creates the app with logging middleware, metrics middleware, CORS, Sentry,
lifespan events for database initialization and meeting service wiring, and
the v1 API router.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.requests import Request
from fastapi.responses import Response

from src.crm.api.middleware.logging import LoggingMiddleware, configure_structlog
from src.crm.api.v1.router import router as v1_router
from src.crm.config import get_settings
from src.crm.core.database import close_db, get_session, init_db
from src.crm.core.monitoring import MetricsMiddleware, get_metrics_response, init_sentry
from src.crm.meetings.repository import MeetingRepository
from src.crm.meetings.service import MeetingService


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: init DB, Sentry, and services on startup; close on shutdown."""
    settings = get_settings()
    configure_structlog()
    log = structlog.get_logger(__name__)

    await init_db(create_tables=settings.AUTO_CREATE_TABLES)

    if settings.SENTRY_DSN:
        init_sentry(dsn=settings.SENTRY_DSN, environment=settings.ENVIRONMENT.value)

    meeting_repository = MeetingRepository(session_factory=get_session)
    app.state.meeting_service = MeetingService(repository=meeting_repository)
    log.info("meetings.service_initialized")

    yield

    await close_db()
    log.info("app.shutdown_complete")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="CRM Meetings API",
        version="0.1.0",
        description="Meeting records for the CRM: create, list, view, soft delete",
        lifespan=lifespan,
    )

    # Middleware is added in reverse order (last added = outermost)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Logging middleware (logs every request with timing)
    app.add_middleware(LoggingMiddleware)

    # Metrics middleware (outermost -- records Prometheus metrics for all requests)
    app.add_middleware(MetricsMiddleware)

    app.include_router(v1_router)

    # Prometheus metrics endpoint (infrastructure route, outside v1 router)
    @app.get("/metrics", include_in_schema=False)
    async def metrics(request: Request) -> Response:
        """Prometheus metrics endpoint."""
        return get_metrics_response()

    return app


# Module-level app for uvicorn
app = create_app()
