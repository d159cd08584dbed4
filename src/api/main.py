"""
FastAPI application factory and configuration.

This module creates the FastAPI application instance,
configures exception handlers, and lifespan events.
"""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import PostgresAccountRepository, run_migrations
from src.adapters.smtp.console import ConsoleEmailSender
from src.adapters.smtp.sender import SmtpEmailSender
from src.api.dependencies import get_repository
from src.api.errors import register_exception_handlers
from src.api.health import APP_VERSION, build_health_report
from src.api.v1 import router as v1_router
from src.config.logging_config import configure_logging
from src.config.settings import Settings, get_settings

logger = logging.getLogger(__name__)

# OpenAPI tags for documentation grouping
tags_metadata = [
    {
        "name": "auth",
        "description": "Registration, activation, login and password recovery",
    },
    {
        "name": "users",
        "description": "Authenticated account information",
    },
    {
        "name": "health",
        "description": "Application and database status",
    },
]


def create_email_sender(settings: Settings) -> ConsoleEmailSender | SmtpEmailSender:
    """Build the process-wide email sender selected by EMAIL_BACKEND."""
    if settings.email_backend == "smtp":
        return SmtpEmailSender(
            host=settings.smtp_host,
            port=settings.smtp_port,
            sender=settings.email_from,
            app_url=settings.app_url,
            username=settings.smtp_user,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
        )
    return ConsoleEmailSender(app_url=settings.app_url)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Manages application startup and shutdown:
    - Creates database connection pool and email sender on startup
    - Runs migrations on startup
    - Closes email sender and connection pool on shutdown
    """
    settings = get_settings()
    configure_logging(settings.log_level)
    settings.validate_for_startup()

    logger.info("Starting application...")
    logger.info("Connecting to database...")

    # Create connection pool with explicit sizing
    pool = ConnectionPool(
        conninfo=settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        open=True,
    )

    # Run migrations
    logger.info("Running database migrations...")
    run_migrations(pool)

    # Store long-lived resources in app state for dependency injection
    app.state.pool = pool
    app.state.email_sender = create_email_sender(settings)
    app.state.started_at = time.monotonic()

    logger.info("Application startup complete (%s email backend)", settings.email_backend)

    yield

    # Shutdown
    logger.info("Shutting down application...")
    app.state.email_sender.close()
    pool.close()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="accounts-api",
    description="Account Lifecycle API - Registration, activation, JWT login and password reset",
    version=APP_VERSION,
    openapi_tags=tags_metadata,
    lifespan=lifespan,
)

register_exception_handlers(app)

# Include v1 API routes
app.include_router(v1_router, prefix="/api/v1")


@app.get("/health", tags=["health"])
def health_check(
    request: Request,
    repository: PostgresAccountRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
) -> JSONResponse:
    """
    Health check endpoint with database validation.

    Returns 200 when the application and database are healthy, 503 otherwise.
    """
    started_at = getattr(request.app.state, "started_at", time.monotonic())
    report = build_health_report(repository, settings, started_at)
    status_code = 200 if report["status"] == "healthy" else 503
    return JSONResponse(status_code=status_code, content=report)
