"""User account service - registration, profile and email verification."""

from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.core.config import Settings
from src.app.core.exceptions import (
    ConflictError,
    DeliveryError,
    NotFoundError,
    ValidationFailedError,
)
from src.app.core.logging import get_logger
from src.app.core.notifications import Notifier, build_verification_email
from src.app.core.security import CredentialStore
from src.app.models import User
from src.app.models.base import utc_now
from src.app.repositories import UserRepository
from src.app.services.token_service import TokenService

logger = get_logger(__name__)

DUPLICATE_USER = "A user with this email or username already exists."


class UserService:
    """User management service."""

    def __init__(
        self,
        user_repo: UserRepository,
        token_service: TokenService,
        credentials: CredentialStore,
        notifier: Notifier,
        session: AsyncSession,
        settings: Settings,
    ):
        self.user_repo = user_repo
        self.token_service = token_service
        self.credentials = credentials
        self.notifier = notifier
        self.session = session
        self.settings = settings

    async def get_by_id(self, user_id: UUID) -> User | None:
        """Get user by ID."""
        return await self.user_repo.get_by_id(user_id)

    async def register(self, username: str, email: str, full_name: str, password: str) -> User:
        """Create a user and send an email verification link.

        Username and email are stored trimmed and lower-cased. A failed
        verification email does not undo the registration.

        Raises:
            ValidationFailedError: If a field is blank.
            ConflictError: If the username or email is taken.
        """
        username = username.strip().lower()
        email = email.strip().lower()
        full_name = full_name.strip()
        if not all((username, email, full_name, password)):
            raise ValidationFailedError("All fields are required")

        if await self.user_repo.get_by_username_or_email(username, email):
            raise ConflictError(DUPLICATE_USER)

        user = User(
            username=username,
            email=email,
            full_name=full_name,
            hashed_password=self.credentials.hash(password),
        )
        self.user_repo.add(user)
        try:
            await self.session.commit()
        except IntegrityError as e:
            # Lost a race against a concurrent registration
            await self.session.rollback()
            raise ConflictError(DUPLICATE_USER) from e

        await self.session.refresh(user)
        logger.info("User registered", user_id=str(user.id))

        await self._send_verification(user)
        return user

    async def change_password(self, user: User, old_password: str, new_password: str) -> None:
        """Re-hash the password and revoke the refresh token.

        Raises:
            ValidationFailedError: If the old password is wrong or the new one is blank.
        """
        if not new_password:
            raise ValidationFailedError("New password is required")
        if not self.credentials.verify(old_password, user.hashed_password):
            raise ValidationFailedError("Invalid old password")

        user.hashed_password = self.credentials.hash(new_password)
        user.refresh_token = None
        user.updated_at = utc_now()
        self.session.add(user)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        logger.info("Password changed", user_id=str(user.id))

    async def update_account(self, user: User, full_name: str, email: str) -> User:
        """Update full name and email. A new email must be verified again.

        Raises:
            ValidationFailedError: If either field is blank.
            ConflictError: If another user already has the email.
        """
        full_name = full_name.strip() if full_name else ""
        email = email.strip().lower() if email else ""
        if not full_name or not email:
            raise ValidationFailedError("All fields are required")

        email_changed = email != user.email
        if email_changed:
            existing = await self.user_repo.get_by_email(email)
            if existing is not None and existing.id != user.id:
                raise ConflictError("A user with this email already exists.")
            user.email = email
            user.is_email_verified = False

        user.full_name = full_name
        user.updated_at = utc_now()
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictError("A user with this email already exists.") from e

        await self.session.refresh(user)
        logger.info("Account updated", user_id=str(user.id), email_changed=email_changed)

        if email_changed:
            await self._send_verification(user)
        return user

    async def verify_email(self, token: str) -> User:
        """Mark the user's email verified.

        Raises:
            ValidationFailedError: If the token is missing, invalid, expired,
                issued for an earlier address, or the email is already verified.
            NotFoundError: If the user no longer exists.
        """
        if not token:
            raise ValidationFailedError("Verification token is missing.")

        user_id, email = self.token_service.verify_email_verification_token(token)
        user = await self.user_repo.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found.")
        if user.email != email:
            raise ValidationFailedError("Invalid or expired token.")
        if user.is_email_verified:
            raise ValidationFailedError("Email is already verified.")

        user.is_email_verified = True
        user.updated_at = utc_now()
        self.session.add(user)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("User email verified", user_id=str(user.id))
        return user

    async def _send_verification(self, user: User) -> None:
        token = self.token_service.create_email_verification_token(user)
        message = build_verification_email(self.settings, user.email, user.full_name, token)
        try:
            await self.notifier.send(message)
        except DeliveryError as e:
            logger.warning(
                "Verification email not delivered",
                user_id=str(user.id),
                error=e.message,
            )
