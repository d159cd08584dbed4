"""
Error translation - the single boundary between exceptions and HTTP.

Every exception that escapes a route is rendered here into the envelope
``{status, message, code, errors?}``. Domain errors carry their own
ErrorKind. Driver and framework errors are recognised by type and mapped
into the same taxonomy so no infrastructure-specific shape reaches a
client. Anything unrecognised becomes a 500; outside production the raw
message and traceback are attached.
"""

import logging
import traceback
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from psycopg import errors as pg_errors
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.adapters.repository.postgres import duplicate_key_error
from src.config.settings import get_settings
from src.domain.exceptions import AccountError, DuplicateKeyError, ErrorKind, StoreError

logger = logging.getLogger(__name__)

_KIND_BY_STATUS = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
    409: ErrorKind.CONFLICT,
}

_SCHEMA_VIOLATIONS = (
    pg_errors.CheckViolation,
    pg_errors.NotNullViolation,
    pg_errors.StringDataRightTruncation,
)


def _validation_errors(exc: RequestValidationError) -> list[dict[str, str]]:
    errors = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        errors.append({"path": path, "message": error.get("msg", "Invalid value")})
    return errors


def _as_account_error(exc: Exception) -> AccountError | None:
    """Map a known exception shape onto the taxonomy, or None if unknown."""
    if isinstance(exc, AccountError):
        return exc
    if isinstance(exc, RequestValidationError):
        return AccountError.validation(_validation_errors(exc))
    if isinstance(exc, DuplicateKeyError):
        return AccountError.conflict(str(exc))
    if isinstance(exc, pg_errors.UniqueViolation):
        return AccountError.conflict(str(duplicate_key_error(exc)))
    if isinstance(exc, pg_errors.InvalidTextRepresentation):
        return AccountError.bad_request("Invalid id")
    if isinstance(exc, _SCHEMA_VIOLATIONS):
        path = exc.diag.column_name or exc.diag.constraint_name or ""
        message = exc.diag.message_primary or "Invalid value"
        return AccountError.validation([{"path": path, "message": message}])
    if isinstance(exc, StarletteHTTPException) and exc.status_code in _KIND_BY_STATUS:
        return AccountError(_KIND_BY_STATUS[exc.status_code], str(exc.detail))
    return None


def translate_error(exc: Exception, *, production: bool) -> tuple[int, dict[str, Any]]:
    """
    Render exc as (status, body).

    Args:
        exc: Any exception raised while handling a request
        production: Suppress internal details when True

    Returns:
        HTTP status code and JSON-ready envelope
    """
    error = _as_account_error(exc)

    if error is not None:
        status, code = error.kind.status, error.kind.code
        body: dict[str, Any] = {"status": status, "message": error.message, "code": code}
        if error.errors:
            body["errors"] = error.errors
        if status >= 500:
            logger.error("[%s] %s: %s", code, status, error.message)
        else:
            logger.warning("[%s] %s: %s", code, status, error.message)
        return status, body

    if isinstance(exc, StarletteHTTPException):
        # Routing statuses outside the taxonomy (405, 406, ...)
        status = exc.status_code
        code = f"ERROR_{status}"
        logger.warning("[%s] %s: %s", code, status, exc.detail)
        return status, {"status": status, "message": str(exc.detail), "code": code}

    if isinstance(exc, StoreError):
        logger.error("[STORE_ERROR] 500: %s", exc)
    else:
        logger.error("[UNHANDLED_ERROR] 500: %s", exc, exc_info=exc)

    kind = ErrorKind.INTERNAL
    body = {"status": kind.status, "message": "Internal server error", "code": kind.code}
    if not production:
        body["error"] = str(exc)
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return kind.status, body


async def handle_exception(request: Request, exc: Exception) -> JSONResponse:
    """FastAPI exception handler delegating to translate_error."""
    status, body = translate_error(exc, production=get_settings().is_production())
    headers = None
    if status == 401:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=status, content=body, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """Route every exception family through handle_exception."""
    for exc_class in (
        AccountError,
        RequestValidationError,
        StarletteHTTPException,
        StoreError,
        pg_errors.Error,
        Exception,
    ):
        app.add_exception_handler(exc_class, handle_exception)
