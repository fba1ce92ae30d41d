"""Service factory dependencies."""

from typing import Annotated

from fastapi import Depends

from src.app.api.dependencies.db import AppSettings, DBSession
from src.app.api.dependencies.repositories import GymRepo, TrainerRepo, UserRepo
from src.app.core.notifications import Notifier, ResendNotifier
from src.app.core.security import CredentialStore
from src.app.services import (
    AuthService,
    InvitationService,
    MembershipService,
    SessionGuard,
    TokenService,
    UserService,
)


def get_notifier(settings: AppSettings) -> Notifier:
    """Get the email notifier."""
    return ResendNotifier(settings)


def get_credential_store(settings: AppSettings) -> CredentialStore:
    """Get the password hasher configured from settings."""
    return CredentialStore(settings)


NotifierDep = Annotated[Notifier, Depends(get_notifier)]
CredentialStoreDep = Annotated[CredentialStore, Depends(get_credential_store)]


def get_token_service(
    user_repo: UserRepo, session: DBSession, settings: AppSettings
) -> TokenService:
    """Get token service."""
    return TokenService(user_repo, session, settings)


TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]


def get_session_guard(token_service: TokenServiceDep, user_repo: UserRepo) -> SessionGuard:
    """Get session guard."""
    return SessionGuard(token_service, user_repo)


def get_auth_service(
    user_repo: UserRepo,
    token_service: TokenServiceDep,
    credentials: CredentialStoreDep,
    session: DBSession,
) -> AuthService:
    """Get auth service."""
    return AuthService(user_repo, token_service, credentials, session)


def get_user_service(
    user_repo: UserRepo,
    token_service: TokenServiceDep,
    credentials: CredentialStoreDep,
    notifier: NotifierDep,
    session: DBSession,
    settings: AppSettings,
) -> UserService:
    """Get user service."""
    return UserService(user_repo, token_service, credentials, notifier, session, settings)


def get_invitation_service(
    trainer_repo: TrainerRepo,
    gym_repo: GymRepo,
    notifier: NotifierDep,
    session: DBSession,
    settings: AppSettings,
) -> InvitationService:
    """Get trainer invitation service."""
    return InvitationService(trainer_repo, gym_repo, notifier, session, settings)


def get_membership_service(
    trainer_repo: TrainerRepo, gym_repo: GymRepo, settings: AppSettings
) -> MembershipService:
    """Get trainer roster service."""
    return MembershipService(trainer_repo, gym_repo, settings)


SessionGuardDep = Annotated[SessionGuard, Depends(get_session_guard)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
UserServiceDep = Annotated[UserService, Depends(get_user_service)]
InvitationServiceDep = Annotated[InvitationService, Depends(get_invitation_service)]
MembershipServiceDep = Annotated[MembershipService, Depends(get_membership_service)]
