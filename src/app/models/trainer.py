"""Trainer models - a cross-gym identity, its memberships and invitation tokens."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import Column, ForeignKey, UniqueConstraint
from sqlalchemy import Uuid as SAUuid
from sqlmodel import Field, SQLModel

from src.app.models.base import utc_now


class Trainer(SQLModel, table=True):
    """Trainer identity, addressed by a globally unique email.

    ``version`` is bumped with a compare-and-set on every change to the
    trainer's membership set, which serializes writers per trainer.
    """

    __tablename__ = "trainers"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(max_length=255, unique=True, index=True)
    version: int = Field(default=1)
    created_at: datetime = Field(default_factory=utc_now, index=True)
    updated_at: datetime = Field(default_factory=utc_now)


class TrainerGymMembership(SQLModel, table=True):
    """A trainer's relationship to one gym."""

    __tablename__ = "trainer_gym_memberships"
    __table_args__ = (UniqueConstraint("trainer_id", "gym_id", name="uq_trainer_gym"),)

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    trainer_id: UUID = Field(
        sa_column=Column(
            SAUuid, ForeignKey("trainers.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    gym_id: UUID = Field(
        sa_column=Column(
            SAUuid, ForeignKey("gyms.id", ondelete="CASCADE"), nullable=False, index=True
        )
    )
    gym_name: str = Field(max_length=100)
    access_code: str = Field(max_length=6)
    is_invitation_accepted: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utc_now)
    accepted_at: datetime | None = Field(default=None)


class InvitationToken(SQLModel, table=True):
    """Single-use invitation token for one membership.

    Only the SHA-256 hash is stored; the plaintext travels in the invitation
    email. Rows are deleted when the membership is accepted.
    """

    __tablename__ = "invitation_tokens"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    membership_id: UUID = Field(
        sa_column=Column(
            SAUuid,
            ForeignKey("trainer_gym_memberships.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )
    )
    token_hash: str = Field(max_length=64, unique=True, index=True)
    expires_at: datetime = Field(index=True)
    created_at: datetime = Field(default_factory=utc_now)
