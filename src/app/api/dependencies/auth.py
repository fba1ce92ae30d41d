"""Authentication dependencies."""

from typing import Annotated

from fastapi import Cookie, Depends, Header

from src.app.api.dependencies.db import AppSettings
from src.app.api.dependencies.services import SessionGuardDep
from src.app.core.logging import bind_user_context
from src.app.models import User

ACCESS_TOKEN_COOKIE = "accessToken"
REFRESH_TOKEN_COOKIE = "refreshToken"


def extract_bearer_credential(
    cookie_token: str | None, authorization: str | None
) -> str | None:
    """Pick the access token from the cookie, falling back to the Authorization header."""
    if cookie_token:
        return cookie_token
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return None


async def get_current_user(
    guard: SessionGuardDep,
    settings: AppSettings,
    access_token: Annotated[str | None, Cookie(alias=ACCESS_TOKEN_COOKIE)] = None,
    authorization: Annotated[str | None, Header()] = None,
) -> User:
    """Resolve the request's access token to a live user."""
    user = await guard.resolve(extract_bearer_credential(access_token, authorization))
    bind_user_context(user.id, user.email, log_email=settings.log_user_emails)
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]
