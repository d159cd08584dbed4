"""Health report - application and database status."""

import logging
import platform
import time
from datetime import datetime, timezone
from typing import Any

import fastapi
from psycopg.conninfo import conninfo_to_dict

from src.adapters.repository.postgres import PostgresAccountRepository
from src.config.settings import Settings

logger = logging.getLogger(__name__)

APP_VERSION = "0.1.0"


def build_health_report(
    repository: PostgresAccountRepository, settings: Settings, started_at: float
) -> dict[str, Any]:
    """
    Collect the health document served by GET /health.

    The database is pinged once; a failure marks the whole report unhealthy
    instead of raising.
    """
    params = conninfo_to_dict(settings.database_url)
    database: dict[str, Any] = {
        "name": params.get("dbname", ""),
        "host": params.get("host", ""),
        "status": "disconnected",
    }
    try:
        database["responseTime"] = round(repository.ping(), 2)
        database["status"] = "connected"
    except Exception as exc:
        logger.error("Error checking database connection: %s", exc)

    healthy = database["status"] == "connected"
    return {
        "status": "healthy" if healthy else "unhealthy",
        "message": "System is healthy" if healthy else "System health check detected issues",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime": round(time.monotonic() - started_at, 3),
        "database": database,
        "framework": {
            "name": "FastAPI",
            "version": fastapi.__version__,
            "pythonVersion": platform.python_version(),
        },
        "application": {
            "environment": settings.environment,
            "version": APP_VERSION,
        },
    }
