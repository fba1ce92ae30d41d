"""Repository for User entity."""

from uuid import UUID

from sqlalchemy import or_, update
from sqlmodel import select

from src.app.models import User
from src.app.models.base import utc_now
from src.app.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for User entity."""

    model = User

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email address."""
        result = await self.session.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        """Get user by username."""
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_by_username_or_email(
        self, username: str | None, email: str | None
    ) -> User | None:
        """Get the user matching either identifier. Blank identifiers are ignored."""
        conditions = []
        if username:
            conditions.append(User.username == username)
        if email:
            conditions.append(User.email == email)
        if not conditions:
            return None
        result = await self.session.execute(select(User).where(or_(*conditions)).limit(1))
        return result.scalar_one_or_none()

    async def set_refresh_token(self, user_id: UUID, refresh_token: str | None) -> bool:
        """Overwrite the stored refresh token (None clears it)."""
        result = await self.session.execute(
            update(User)
            .where(User.id == user_id)  # type: ignore[arg-type]
            .values(refresh_token=refresh_token, updated_at=utc_now())
        )
        return (result.rowcount or 0) == 1  # type: ignore[attr-defined]

    async def swap_refresh_token(self, user_id: UUID, expected: str, replacement: str) -> bool:
        """Compare-and-set the stored refresh token.

        Succeeds only while the stored value still equals ``expected``. Two
        callers presenting the same token cannot both win.
        """
        result = await self.session.execute(
            update(User)
            .where(User.id == user_id)  # type: ignore[arg-type]
            .where(User.refresh_token == expected)  # type: ignore[arg-type]
            .values(refresh_token=replacement, updated_at=utc_now())
        )
        return (result.rowcount or 0) == 1  # type: ignore[attr-defined]
