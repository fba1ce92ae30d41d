"""Gym trainer endpoints - invitations and roster."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, status

from src.app.api.dependencies import CurrentUser, InvitationServiceDep, MembershipServiceDep
from src.app.schemas.trainer import (
    InvitationBatchResult,
    InvitedTrainer,
    InviteTrainersRequest,
    ResendInvitationRequest,
    TrainerRosterPage,
)

router = APIRouter(prefix="/gyms", tags=["trainers"])


@router.post(
    "/{gym_id}/trainers/invite",
    response_model=InvitationBatchResult,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {
            "description": "Batch processed; per-address failures are listed, not raised",
            "content": {
                "application/json": {
                    "example": {
                        "invited": [
                            {
                                "trainer_id": "6fa459ea-ee8a-3ca4-894e-db77e160355e",
                                "email": "coach@example.com",
                                "gym_id": "550e8400-e29b-41d4-a716-446655440000",
                                "gym_name": "Iron Temple",
                                "is_invitation_accepted": False,
                                "created_at": "2024-01-15T10:30:00Z",
                            }
                        ],
                        "failed": [
                            {
                                "email": "bad",
                                "reason": "invalid_email",
                                "message": "Invalid email format",
                            }
                        ],
                        "message": "Trainers invitation process completed",
                    }
                }
            },
        },
        400: {"description": "Empty email list"},
        404: {"description": "Gym not found or not administered by the caller"},
    },
)
async def invite_trainers(
    gym_id: UUID,
    data: InviteTrainersRequest,
    current_user: CurrentUser,
    service: InvitationServiceDep,
) -> InvitationBatchResult:
    """Invite trainers to a gym by email."""
    return await service.invite_trainers(current_user.id, gym_id, data.emails)


@router.post(
    "/{gym_id}/trainers/resend-invite",
    response_model=InvitedTrainer,
    responses={
        404: {"description": "Gym or invitation not found"},
        409: {"description": "Invitation already accepted"},
        502: {"description": "Invitation email could not be sent"},
    },
)
async def resend_invite(
    gym_id: UUID,
    data: ResendInvitationRequest,
    current_user: CurrentUser,
    service: InvitationServiceDep,
) -> InvitedTrainer:
    """Issue a fresh access code and link for a pending invitation."""
    return await service.resend_invitation(current_user.id, gym_id, data.email)


@router.get(
    "/{gym_id}/trainers",
    response_model=TrainerRosterPage,
    responses={404: {"description": "Gym not found or no trainers found for this gym"}},
)
async def list_trainers(
    gym_id: UUID,
    current_user: CurrentUser,
    service: MembershipServiceDep,
    cursor: Annotated[str | None, Query(description="Cursor for pagination")] = None,
    limit: Annotated[int | None, Query(ge=1, description="Number of items per page")] = None,
) -> TrainerRosterPage:
    """List a gym's trainers with their membership in that gym."""
    return await service.list_for_gym(current_user.id, gym_id, cursor, limit)
