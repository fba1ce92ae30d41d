from src.app.schemas.auth import (
    AccessClaims,
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    TokenPairResponse,
)
from src.app.schemas.pagination import PaginatedResponse
from src.app.schemas.trainer import (
    AcceptedInvitation,
    InvitationBatchResult,
    InvitationFailure,
    InvitationFailureReason,
    InvitedTrainer,
    InviteTrainersRequest,
    MembershipSummary,
    ResendInvitationRequest,
    TrainerRosterEntry,
    TrainerRosterPage,
)
from src.app.schemas.user import UpdateAccountRequest, UserRead

__all__ = [
    # Auth
    "AccessClaims",
    "ChangePasswordRequest",
    "LoginRequest",
    "LoginResponse",
    "MessageResponse",
    "RefreshRequest",
    "RegisterRequest",
    "TokenPairResponse",
    # Pagination
    "PaginatedResponse",
    # Trainer
    "AcceptedInvitation",
    "InvitationBatchResult",
    "InvitationFailure",
    "InvitationFailureReason",
    "InvitedTrainer",
    "InviteTrainersRequest",
    "MembershipSummary",
    "ResendInvitationRequest",
    "TrainerRosterEntry",
    "TrainerRosterPage",
    # User
    "UpdateAccountRequest",
    "UserRead",
]
