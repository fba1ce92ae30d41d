"""Token issuer - access/refresh pairs with rotate-on-use refresh tokens."""

import hmac
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from src.app.core.config import Settings
from src.app.core.exceptions import UnauthorizedError, ValidationFailedError
from src.app.core.logging import get_logger
from src.app.core.security import TokenType, decode_token, encode_token
from src.app.models import User
from src.app.repositories import UserRepository
from src.app.schemas.auth import AccessClaims, TokenPairResponse

logger = get_logger(__name__)

INVALID_ACCESS_TOKEN = "Invalid access token"
INVALID_REFRESH_TOKEN = "Invalid refresh token"
INVALID_VERIFICATION_TOKEN = "Invalid or expired token."


def _aware_utc_now() -> datetime:
    return datetime.now(UTC)


class TokenService:
    """Mints and verifies signed tokens and tracks each user's refresh token.

    Per user the session moves NO_SESSION -> ACTIVE on login, stays ACTIVE
    across rotations and returns to NO_SESSION on logout. Only the refresh
    token currently stored on the user row can be rotated.

    ``clock`` decides the issue time of new tokens. Expiry is always checked
    against the real current time.
    """

    def __init__(
        self,
        user_repo: UserRepository,
        session: AsyncSession,
        settings: Settings,
        clock: Callable[[], datetime] = _aware_utc_now,
    ):
        self.user_repo = user_repo
        self.session = session
        self.settings = settings
        self._clock = clock

    def create_access_token(self, user: User) -> str:
        """Sign a short-lived access token carrying the user's display claims."""
        return encode_token(
            {
                "sub": str(user.id),
                "email": user.email,
                "username": user.username,
                "full_name": user.full_name,
            },
            token_type=TokenType.ACCESS,
            secret=self.settings.access_token_secret,
            algorithm=self.settings.jwt_algorithm,
            issued_at=self._clock(),
            expires_delta=timedelta(minutes=self.settings.access_token_expire_minutes),
        )

    def create_refresh_token(self, user_id: UUID) -> str:
        """Sign a long-lived refresh token carrying only the user id."""
        return encode_token(
            {"sub": str(user_id)},
            token_type=TokenType.REFRESH,
            secret=self.settings.refresh_token_secret,
            algorithm=self.settings.jwt_algorithm,
            issued_at=self._clock(),
            expires_delta=timedelta(days=self.settings.refresh_token_expire_days),
        )

    async def issue_pair(self, user: User) -> TokenPairResponse:
        """Issue a new token pair and store the refresh token on the user.

        Overwriting the stored value revokes whatever refresh token the user
        held before.
        """
        access_token = self.create_access_token(user)
        refresh_token = self.create_refresh_token(user.id)
        try:
            await self.user_repo.set_refresh_token(user.id, refresh_token)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Token pair issued", user_id=str(user.id))
        return TokenPairResponse(access_token=access_token, refresh_token=refresh_token)

    def verify_access(self, token: str) -> AccessClaims:
        """Verify an access token and return its claims.

        Raises:
            UnauthorizedError: If the token is forged, expired, malformed or
                not an access token.
        """
        payload = decode_token(
            token,
            token_type=TokenType.ACCESS,
            secret=self.settings.access_token_secret,
            algorithm=self.settings.jwt_algorithm,
        )
        if payload is None:
            raise UnauthorizedError(INVALID_ACCESS_TOKEN)
        try:
            return AccessClaims(
                user_id=UUID(payload["sub"]),
                email=payload["email"],
                username=payload["username"],
                full_name=payload["full_name"],
                expires_at=datetime.fromtimestamp(payload["exp"], UTC),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise UnauthorizedError(INVALID_ACCESS_TOKEN) from e

    def _refresh_subject(self, token: str) -> UUID | None:
        payload = decode_token(
            token,
            token_type=TokenType.REFRESH,
            secret=self.settings.refresh_token_secret,
            algorithm=self.settings.jwt_algorithm,
        )
        if payload is None:
            return None
        try:
            return UUID(payload["sub"])
        except (KeyError, TypeError, ValueError):
            return None

    async def rotate(self, presented: str) -> TokenPairResponse:
        """Exchange the current refresh token for a new pair.

        The stored token is swapped with a compare-and-set, so of two
        concurrent calls presenting the same token at most one succeeds.

        Raises:
            UnauthorizedError: For a bad signature, an expired token, a
                deleted user or a stale token. All share one message.
        """
        user_id = self._refresh_subject(presented)
        if user_id is None:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        user = await self.user_repo.get_by_id(user_id)
        if user is None or user.refresh_token is None:
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        # Use constant-time comparison to prevent timing attacks
        if not hmac.compare_digest(user.refresh_token, presented):
            logger.warning("Stale refresh token presented", user_id=str(user_id))
            raise UnauthorizedError(INVALID_REFRESH_TOKEN)

        access_token = self.create_access_token(user)
        refresh_token = self.create_refresh_token(user.id)
        try:
            swapped = await self.user_repo.swap_refresh_token(user.id, presented, refresh_token)
            if not swapped:
                await self.session.rollback()
                logger.warning("Refresh token already rotated", user_id=str(user_id))
                raise UnauthorizedError(INVALID_REFRESH_TOKEN)
            await self.session.commit()
        except UnauthorizedError:
            raise
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Refresh token rotated", user_id=str(user_id))
        return TokenPairResponse(access_token=access_token, refresh_token=refresh_token)

    async def revoke(self, user_id: UUID) -> None:
        """Clear the stored refresh token. Rotation fails until the next login."""
        try:
            await self.user_repo.set_refresh_token(user_id, None)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        logger.info("Refresh token revoked", user_id=str(user_id))

    def create_email_verification_token(self, user: User) -> str:
        """Sign an email verification token bound to the user's current address."""
        return encode_token(
            {"sub": str(user.id), "email": user.email},
            token_type=TokenType.EMAIL_VERIFICATION,
            secret=self.settings.email_verification_secret,
            algorithm=self.settings.jwt_algorithm,
            issued_at=self._clock(),
            expires_delta=timedelta(hours=self.settings.email_verification_expire_hours),
        )

    def verify_email_verification_token(self, token: str) -> tuple[UUID, str]:
        """Return the (user id, email) an email verification token was issued for.

        Raises:
            ValidationFailedError: If the token is invalid or expired.
        """
        payload: dict[str, Any] | None = decode_token(
            token,
            token_type=TokenType.EMAIL_VERIFICATION,
            secret=self.settings.email_verification_secret,
            algorithm=self.settings.jwt_algorithm,
        )
        if payload is None:
            raise ValidationFailedError(INVALID_VERIFICATION_TOKEN)
        try:
            return UUID(payload["sub"]), str(payload["email"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationFailedError(INVALID_VERIFICATION_TOKEN) from e
