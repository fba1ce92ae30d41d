from src.app.services.auth_service import AuthService
from src.app.services.invitation_service import InvitationService
from src.app.services.membership_service import MembershipService
from src.app.services.session_guard import SessionGuard
from src.app.services.token_service import TokenService
from src.app.services.user_service import UserService

__all__ = [
    "AuthService",
    "InvitationService",
    "MembershipService",
    "SessionGuard",
    "TokenService",
    "UserService",
]
