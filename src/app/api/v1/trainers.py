"""Public trainer endpoints."""

from typing import Annotated

from fastapi import APIRouter, Query

from src.app.api.dependencies import InvitationServiceDep
from src.app.schemas.trainer import AcceptedInvitation

router = APIRouter(prefix="/trainers", tags=["trainers"])


@router.get(
    "/accept-invitation",
    response_model=AcceptedInvitation,
    responses={400: {"description": "Missing, invalid or expired invitation link"}},
)
async def accept_invitation(
    service: InvitationServiceDep,
    token: Annotated[str | None, Query()] = None,
) -> AcceptedInvitation:
    """Accept a gym invitation with the token from the invitation email."""
    return await service.accept_invitation(token or "")
