"""Gym model - the tenant trainers are invited into."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field, SQLModel

from src.app.models.base import utc_now


class Gym(SQLModel, table=True):
    """Gym registry. Only identity and display name matter to invitations."""

    __tablename__ = "gyms"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(max_length=100, unique=True, index=True)
    admin_user_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=utc_now)
