"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
Request models are the input validator: the domain service receives fields
that already satisfy format and length rules.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator

from src.domain.ports import Account, Role

# bcrypt only reads the first 72 bytes of a password
PASSWORD_MAX_BYTES = 72


def _check_password_bytes(value: str) -> str:
    if len(value.encode()) > PASSWORD_MAX_BYTES:
        raise ValueError(f"Password cannot exceed {PASSWORD_MAX_BYTES} bytes")
    return value


class RegisterRequest(BaseModel):
    """Request model for user registration."""

    name: str = Field(..., min_length=2, max_length=50, description="Display name")
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72, description="Password (min 6 characters)")
    role: Role = Role.USER

    @field_validator("password")
    @classmethod
    def password_within_bcrypt_limit(cls, value: str) -> str:
        return _check_password_bytes(value)


class LoginRequest(BaseModel):
    """Request model for login."""

    email: EmailStr
    password: str = Field(..., max_length=72)

    @field_validator("password")
    @classmethod
    def password_within_bcrypt_limit(cls, value: str) -> str:
        return _check_password_bytes(value)


class LoginResponse(BaseModel):
    """Response model for successful login."""

    token: str


class ActivateRequest(BaseModel):
    """Request model for account activation."""

    token: str = Field(..., min_length=1, description="Activation token received via email")


class EmailRequest(BaseModel):
    """Request model for endpoints keyed by email only."""

    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Request model for password reset."""

    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(..., min_length=1, description="Token received via email")
    password: str = Field(..., min_length=6, max_length=72)
    confirm_password: str = Field(..., alias="confirmPassword", min_length=6)

    @field_validator("password")
    @classmethod
    def password_within_bcrypt_limit(cls, value: str) -> str:
        return _check_password_bytes(value)

    @field_validator("confirm_password")
    @classmethod
    def passwords_match(cls, value: str, info: ValidationInfo) -> str:
        if "password" in info.data and value != info.data["password"]:
            raise ValueError("Passwords don't match")
        return value


class UserResponse(BaseModel):
    """Public view of an account. Never includes secrets."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    email: str
    role: Role
    is_active: bool = Field(..., alias="isActive")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")

    @classmethod
    def from_account(cls, account: Account) -> "UserResponse":
        return cls(
            id=account.id,
            name=account.name,
            email=account.email,
            role=account.role,
            is_active=account.is_active,
            created_at=account.created_at,
            updated_at=account.updated_at,
        )


class MessageResponse(BaseModel):
    """Response model carrying a human-readable message."""

    message: str


class ActivateResponse(BaseModel):
    """Response model for successful activation."""

    message: str
    user: UserResponse


class CurrentUserResponse(BaseModel):
    """Response model for the authenticated user endpoint."""

    user: UserResponse


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    status: int
    message: str
    code: str
    errors: Any = None
