"""
API v1 routes.

Defines REST endpoints for the account lifecycle API. Routes are plain
functions: FastAPI runs them on its threadpool while the store and mail
adapters block on I/O. Errors are not handled here; they propagate to the
exception handlers in src.api.errors.
"""

from fastapi import APIRouter, Depends, status

from src.api.dependencies import get_account_service, get_current_account
from src.api.models import (
    ActivateRequest,
    ActivateResponse,
    CurrentUserResponse,
    EmailRequest,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    UserResponse,
)
from src.domain.accounts import AccountService
from src.domain.ports import Account

router = APIRouter()

REGISTERED_MESSAGE = (
    "User registered successfully. Please check your email to activate your account."
)
FORGOT_PASSWORD_MESSAGE = (
    "If your email is registered in our system, "
    "you will receive password reset instructions shortly."
)
RESET_PASSWORD_MESSAGE = (
    "Password has been reset successfully. You can now log in with your new password."
)


@router.post(
    "/auth/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["auth"],
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        409: {"model": ErrorResponse, "description": "Email already registered"},
    },
    summary="Register a new user",
    description="Create a pending account. An activation token is sent to the provided email.",
)
def register(
    request_data: RegisterRequest,
    service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    """
    Register a new user and send the activation email.

    - **name**: Display name (2-50 characters)
    - **email**: Valid email address
    - **password**: Password (minimum 6 characters)
    - **role**: `user` (default) or `admin`
    """
    service.register(
        request_data.name,
        request_data.email,
        request_data.password,
        request_data.role,
    )
    return MessageResponse(message=REGISTERED_MESSAGE)


@router.post(
    "/auth/login",
    response_model=LoginResponse,
    tags=["auth"],
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        401: {"model": ErrorResponse, "description": "Invalid credentials or inactive account"},
    },
    summary="Login user",
)
def login(
    request_data: LoginRequest,
    service: AccountService = Depends(get_account_service),
) -> LoginResponse:
    """Exchange email and password for a bearer session token."""
    token = service.login(request_data.email, request_data.password)
    return LoginResponse(token=token)


@router.post(
    "/auth/activate",
    response_model=ActivateResponse,
    tags=["auth"],
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        404: {"model": ErrorResponse, "description": "Invalid activation token"},
    },
    summary="Activate user account",
)
def activate(
    request_data: ActivateRequest,
    service: AccountService = Depends(get_account_service),
) -> ActivateResponse:
    """Consume a single-use activation token."""
    account = service.activate(request_data.token)
    return ActivateResponse(
        message="Account activated successfully",
        user=UserResponse.from_account(account),
    )


@router.post(
    "/auth/resend-activation",
    response_model=MessageResponse,
    tags=["auth"],
    responses={
        404: {"model": ErrorResponse, "description": "User not found"},
        409: {"model": ErrorResponse, "description": "Account already activated"},
    },
    summary="Resend activation email",
)
def resend_activation(
    request_data: EmailRequest,
    service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    service.resend_activation(request_data.email)
    return MessageResponse(message="Activation email sent successfully")


@router.post(
    "/auth/forgot-password",
    response_model=MessageResponse,
    tags=["auth"],
    summary="Request a password reset",
    description="Always succeeds so the response does not reveal whether the email is registered.",
)
def forgot_password(
    request_data: EmailRequest,
    service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    service.forgot_password(request_data.email)
    return MessageResponse(message=FORGOT_PASSWORD_MESSAGE)


@router.post(
    "/auth/reset-password",
    response_model=MessageResponse,
    tags=["auth"],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or expired token, or passwords don't match"},
    },
    summary="Reset password using token",
)
def reset_password(
    request_data: ResetPasswordRequest,
    service: AccountService = Depends(get_account_service),
) -> MessageResponse:
    service.reset_password(request_data.token, request_data.password)
    return MessageResponse(message=RESET_PASSWORD_MESSAGE)


@router.get(
    "/users",
    response_model=CurrentUserResponse,
    tags=["users"],
    responses={
        401: {"model": ErrorResponse, "description": "Invalid or missing token"},
    },
    summary="Get authenticated user information",
)
def get_user(account: Account = Depends(get_current_account)) -> CurrentUserResponse:
    return CurrentUserResponse(user=UserResponse.from_account(account))
