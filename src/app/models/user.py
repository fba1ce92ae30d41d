"""User model - the principal that logs in and administers gyms."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.app.models.base import utc_now


class User(SQLModel, table=True):
    """User account.

    ``refresh_token`` holds the single currently valid refresh token. It is
    overwritten on every login and rotation and cleared on logout.
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    username: str = Field(max_length=50, unique=True, index=True)
    email: str = Field(max_length=255, unique=True, index=True)
    full_name: str = Field(max_length=100, index=True)
    hashed_password: str = Field(max_length=255)
    refresh_token: str | None = Field(default=None, max_length=1024)
    is_email_verified: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
