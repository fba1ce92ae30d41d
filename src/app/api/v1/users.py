"""User account and session endpoints."""

from typing import Annotated

from fastapi import APIRouter, Cookie, Query, Response, status
from starlette.requests import Request

from src.app.api.dependencies import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    AppSettings,
    AuthServiceDep,
    CurrentUser,
    UserServiceDep,
)
from src.app.core.config import Settings
from src.app.core.rate_limit import limiter
from src.app.schemas.auth import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    TokenPairResponse,
)
from src.app.schemas.user import UpdateAccountRequest, UserRead

router = APIRouter(prefix="/users", tags=["users"])

_TOKEN_EXAMPLE = "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9..."


def _set_auth_cookies(response: Response, tokens: TokenPairResponse, settings: Settings) -> None:
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        tokens.access_token,
        max_age=settings.access_token_expire_minutes * 60,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )
    response.set_cookie(
        REFRESH_TOKEN_COOKIE,
        tokens.refresh_token,
        max_age=settings.refresh_token_expire_days * 86400,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="lax",
    )


def _clear_auth_cookies(response: Response, settings: Settings) -> None:
    for name in (ACCESS_TOKEN_COOKIE, REFRESH_TOKEN_COOKIE):
        response.delete_cookie(name, httponly=True, secure=settings.cookie_secure, samesite="lax")


@router.post(
    "/register",
    response_model=UserRead,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "User registered, verification email sent"},
        409: {"description": "Username or email already taken"},
    },
)
@limiter.limit("5/hour")
async def register(
    request: Request, register_data: RegisterRequest, service: UserServiceDep
) -> UserRead:
    """Register a new user account."""
    user = await service.register(
        username=register_data.username,
        email=register_data.email,
        full_name=register_data.full_name,
        password=register_data.password,
    )
    return UserRead.model_validate(user)


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        200: {
            "description": "Successful authentication, tokens also set as cookies",
            "content": {
                "application/json": {
                    "example": {
                        "access_token": _TOKEN_EXAMPLE,
                        "refresh_token": _TOKEN_EXAMPLE,
                        "token_type": "bearer",
                        "user": {
                            "id": "550e8400-e29b-41d4-a716-446655440000",
                            "username": "sam",
                            "email": "sam@example.com",
                            "full_name": "Sam Doe",
                            "is_email_verified": False,
                            "created_at": "2024-01-15T10:30:00Z",
                        },
                    }
                }
            },
        },
        401: {"description": "Invalid credentials"},
    },
)
@limiter.limit("5/minute")
async def login(
    request: Request,
    response: Response,
    login_data: LoginRequest,
    service: AuthServiceDep,
    settings: AppSettings,
) -> LoginResponse:
    """Authenticate with username or email and password."""
    user, tokens = await service.login(
        password=login_data.password,
        username=login_data.username,
        email=login_data.email,
    )
    _set_auth_cookies(response, tokens, settings)
    return LoginResponse(
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
        user=UserRead.model_validate(user),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    response: Response,
    current_user: CurrentUser,
    service: AuthServiceDep,
    settings: AppSettings,
) -> MessageResponse:
    """Revoke the refresh token and clear the auth cookies."""
    await service.logout(current_user)
    _clear_auth_cookies(response, settings)
    return MessageResponse(message="User logged out")


@router.post(
    "/refresh-token",
    response_model=TokenPairResponse,
    responses={
        200: {"description": "Token pair rotated"},
        401: {"description": "Invalid, expired or already used refresh token"},
    },
)
@limiter.limit("10/minute")
async def refresh_token(
    request: Request,
    response: Response,
    service: AuthServiceDep,
    settings: AppSettings,
    refresh_data: RefreshRequest | None = None,
    refresh_cookie: Annotated[str | None, Cookie(alias=REFRESH_TOKEN_COOKIE)] = None,
) -> TokenPairResponse:
    """Exchange a refresh token (cookie or body) for a new pair.

    The presented token stops working as soon as this call succeeds.
    """
    presented = refresh_cookie or (refresh_data.refresh_token if refresh_data else None)
    tokens = await service.refresh(presented)
    _set_auth_cookies(response, tokens, settings)
    return tokens


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    current_user: CurrentUser,
    service: UserServiceDep,
) -> MessageResponse:
    """Change the password. Other sessions must log in again."""
    await service.change_password(current_user, data.old_password, data.new_password)
    return MessageResponse(message="Password changed successfully")


@router.get("/current-user", response_model=UserRead)
async def get_current_user(current_user: CurrentUser) -> UserRead:
    """Get current authenticated user."""
    return UserRead.model_validate(current_user)


@router.patch("/update-account", response_model=UserRead)
async def update_account(
    data: UpdateAccountRequest,
    current_user: CurrentUser,
    service: UserServiceDep,
) -> UserRead:
    """Update full name and email."""
    user = await service.update_account(current_user, data.full_name, data.email)
    return UserRead.model_validate(user)


@router.get(
    "/verify-email",
    response_model=MessageResponse,
    responses={400: {"description": "Missing, invalid or expired token"}},
)
async def verify_email(
    service: UserServiceDep,
    token: Annotated[str | None, Query(max_length=2048)] = None,
) -> MessageResponse:
    """Verify an email address with the link from the verification email."""
    await service.verify_email(token or "")
    return MessageResponse(message="Email verified successfully.")
