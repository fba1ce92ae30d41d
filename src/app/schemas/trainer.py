"""Trainer invitation and roster schemas.

None of the read models here carry invitation token values. Only the roster
view exposes the access code, and only to the gym's administrator.
"""

from datetime import datetime
from enum import StrEnum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, EmailStr, Field

from src.app.schemas.pagination import PaginatedResponse


class InviteTrainersRequest(BaseModel):
    """Batch invitation. Entries are validated one by one, not up front.

    Entries of any JSON type are accepted here; anything that is not a valid
    address is reported back as an ``invalid_email`` failure.
    """

    emails: list[Any] = Field(max_length=100)


class ResendInvitationRequest(BaseModel):
    email: EmailStr


class InvitationFailureReason(StrEnum):
    INVALID_EMAIL = "invalid_email"
    ALREADY_INVITED = "already_invited"
    DELIVERY_FAILED = "delivery_failed"
    CONCURRENT_UPDATE = "concurrent_update"


class InvitationFailure(BaseModel):
    email: str | None
    reason: InvitationFailureReason
    message: str


class InvitedTrainer(BaseModel):
    trainer_id: UUID
    email: str
    gym_id: UUID
    gym_name: str
    is_invitation_accepted: bool
    created_at: datetime


class InvitationBatchResult(BaseModel):
    invited: list[InvitedTrainer] = Field(default_factory=list)
    failed: list[InvitationFailure] = Field(default_factory=list)
    message: str = "Trainers invitation process completed"


class AcceptedInvitation(BaseModel):
    trainer_id: UUID
    email: str
    gym_id: UUID
    gym_name: str
    is_invitation_accepted: bool
    accepted_at: datetime | None


class MembershipSummary(BaseModel):
    gym_id: UUID
    gym_name: str
    is_invitation_accepted: bool
    access_code: str

    model_config = {"from_attributes": True}


class TrainerRosterEntry(BaseModel):
    email: str
    memberships: list[MembershipSummary]


TrainerRosterPage = PaginatedResponse[TrainerRosterEntry]
