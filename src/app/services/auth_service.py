"""Authentication service - login, logout and token refresh."""

from sqlalchemy.ext.asyncio import AsyncSession

from src.app.core.exceptions import UnauthorizedError, ValidationFailedError
from src.app.core.logging import get_logger
from src.app.core.security import CredentialStore
from src.app.models import User
from src.app.models.base import utc_now
from src.app.repositories import UserRepository
from src.app.schemas.auth import TokenPairResponse
from src.app.services.token_service import TokenService

logger = get_logger(__name__)

INVALID_CREDENTIALS = "Invalid user credentials"


class AuthService:
    """Authentication service - handles login, logout and token refresh."""

    def __init__(
        self,
        user_repo: UserRepository,
        token_service: TokenService,
        credentials: CredentialStore,
        session: AsyncSession,
    ):
        self.user_repo = user_repo
        self.token_service = token_service
        self.credentials = credentials
        self.session = session

    async def login(
        self,
        password: str,
        username: str | None = None,
        email: str | None = None,
    ) -> tuple[User, TokenPairResponse]:
        """Authenticate by username or email and issue a token pair.

        An unknown identifier and a wrong password fail with the same error.

        Raises:
            ValidationFailedError: If no identifier or no password was given.
            UnauthorizedError: If the credentials do not match a user.
        """
        username = username.strip().lower() if username else None
        email = email.strip().lower() if email else None
        if not username and not email:
            raise ValidationFailedError("username or email is required")
        if not password:
            raise ValidationFailedError("Password is required.")

        user = await self.user_repo.get_by_username_or_email(username, email)

        # Always perform password verification to prevent timing attacks
        # that could reveal whether an identifier exists in the system
        password_hash = user.hashed_password if user else self.credentials.dummy_hash
        password_valid = self.credentials.verify(password, password_hash)

        if user is None or not password_valid:
            logger.info("Login failed", username=username)
            raise UnauthorizedError(INVALID_CREDENTIALS)

        if self.credentials.needs_rehash(user.hashed_password):
            user.hashed_password = self.credentials.hash(password)
            user.updated_at = utc_now()
            self.session.add(user)

        # issue_pair commits, which also persists a rehashed password
        tokens = await self.token_service.issue_pair(user)
        logger.info("User logged in", user_id=str(user.id))
        return user, tokens

    async def logout(self, user: User) -> None:
        """End the user's session by revoking the stored refresh token."""
        await self.token_service.revoke(user.id)
        logger.info("User logged out", user_id=str(user.id))

    async def refresh(self, refresh_token: str | None) -> TokenPairResponse:
        """Rotate a refresh token into a fresh pair."""
        if not refresh_token:
            raise UnauthorizedError("Unauthorized request: No refresh token provided.")
        return await self.token_service.rotate(refresh_token)
