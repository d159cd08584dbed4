"""
Domain exceptions - Error taxonomy for the account lifecycle.

Every business failure is an AccountError tagged with an ErrorKind. The kind,
not the message, decides the HTTP status and machine-readable code at the
API boundary. Store-level failures have their own types so the service can
recognise them without importing the database driver.
"""

from enum import Enum
from typing import Any


class ErrorKind(Enum):
    """Closed set of error kinds, each carrying (status, code)."""

    BAD_REQUEST = (400, "BAD_REQUEST")
    VALIDATION = (400, "VALIDATION_ERROR")
    UNAUTHORIZED = (401, "UNAUTHORIZED")
    FORBIDDEN = (403, "FORBIDDEN")
    NOT_FOUND = (404, "RESOURCE_NOT_FOUND")
    CONFLICT = (409, "RESOURCE_CONFLICT")
    INTERNAL = (500, "SERVER_ERROR")

    @property
    def status(self) -> int:
        return self.value[0]

    @property
    def code(self) -> str:
        return self.value[1]


class AccountError(Exception):
    """
    Tagged domain error.

    Attributes:
        kind: ErrorKind deciding status and code
        message: Human-readable message safe to return to clients
        errors: Optional structured detail (field-level validation errors)
    """

    def __init__(self, kind: ErrorKind, message: str, errors: Any = None) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.errors = errors

    @classmethod
    def bad_request(cls, message: str = "Bad Request", errors: Any = None) -> "AccountError":
        return cls(ErrorKind.BAD_REQUEST, message, errors)

    @classmethod
    def validation(cls, errors: Any) -> "AccountError":
        return cls(ErrorKind.VALIDATION, "Validation error", errors)

    @classmethod
    def unauthorized(cls, message: str = "Unauthorized access") -> "AccountError":
        return cls(ErrorKind.UNAUTHORIZED, message)

    @classmethod
    def forbidden(cls, message: str = "Access forbidden") -> "AccountError":
        return cls(ErrorKind.FORBIDDEN, message)

    @classmethod
    def not_found(cls, message: str = "Resource not found") -> "AccountError":
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str = "Resource already exists") -> "AccountError":
        return cls(ErrorKind.CONFLICT, message)

    @classmethod
    def internal(cls, message: str = "Internal server error") -> "AccountError":
        return cls(ErrorKind.INTERNAL, message)

    def __repr__(self) -> str:
        return f"AccountError({self.kind.name}, {self.message!r})"


class StoreError(Exception):
    """Persistence failure raised by a repository adapter."""

    pass


class DuplicateKeyError(StoreError):
    """Unique constraint violated on insert or update."""

    def __init__(self, field: str, value: Any) -> None:
        super().__init__(f'{field} "{value}" already exists')
        self.field = field
        self.value = value


class HashingError(Exception):
    """Password hashing backend failed or a stored hash is malformed."""

    pass


class InvalidTokenError(Exception):
    """Session token is malformed, badly signed, or expired."""

    pass
