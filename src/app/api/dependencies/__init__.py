"""FastAPI dependency injection definitions."""

from src.app.api.dependencies.auth import (
    ACCESS_TOKEN_COOKIE,
    REFRESH_TOKEN_COOKIE,
    CurrentUser,
    extract_bearer_credential,
    get_current_user,
)
from src.app.api.dependencies.db import AppSettings, DBSession, get_db_session
from src.app.api.dependencies.repositories import (
    GymRepo,
    TrainerRepo,
    UserRepo,
    get_gym_repository,
    get_trainer_repository,
    get_user_repository,
)
from src.app.api.dependencies.services import (
    AuthServiceDep,
    CredentialStoreDep,
    InvitationServiceDep,
    MembershipServiceDep,
    NotifierDep,
    SessionGuardDep,
    TokenServiceDep,
    UserServiceDep,
    get_auth_service,
    get_credential_store,
    get_invitation_service,
    get_membership_service,
    get_notifier,
    get_session_guard,
    get_token_service,
    get_user_service,
)

__all__ = [
    # Database
    "AppSettings",
    "DBSession",
    "get_db_session",
    # Auth
    "ACCESS_TOKEN_COOKIE",
    "REFRESH_TOKEN_COOKIE",
    "CurrentUser",
    "extract_bearer_credential",
    "get_current_user",
    # Repositories
    "GymRepo",
    "TrainerRepo",
    "UserRepo",
    "get_gym_repository",
    "get_trainer_repository",
    "get_user_repository",
    # Services
    "AuthServiceDep",
    "CredentialStoreDep",
    "InvitationServiceDep",
    "MembershipServiceDep",
    "NotifierDep",
    "SessionGuardDep",
    "TokenServiceDep",
    "UserServiceDep",
    "get_auth_service",
    "get_credential_store",
    "get_invitation_service",
    "get_membership_service",
    "get_notifier",
    "get_session_guard",
    "get_token_service",
    "get_user_service",
]
