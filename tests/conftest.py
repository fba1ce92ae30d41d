"""Root test fixtures shared across all test types.

Every test runs against its own in-memory SQLite database, so unit and
integration tests alike need no external services.
"""

import os

# Set APP_ENV to testing before any app imports to disable rate limiting
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
# The test client talks plain http, so cookies must not be marked secure
os.environ.setdefault("COOKIE_SECURE", "false")
os.environ.setdefault("ACCESS_TOKEN_SECRET", "test-access-secret-" + "a" * 32)
os.environ.setdefault("REFRESH_TOKEN_SECRET", "test-refresh-secret-" + "b" * 32)
os.environ.setdefault("EMAIL_VERIFICATION_SECRET", "test-verify-secret-" + "c" * 32)
# Cheap hashing keeps the suite fast
os.environ.setdefault("ARGON2_TIME_COST", "1")
os.environ.setdefault("ARGON2_MEMORY_COST", "1024")
os.environ.setdefault("ARGON2_PARALLELISM", "1")

# ruff: noqa: E402 - Imports must be after env var setup
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from src.app.api.dependencies import get_db_session, get_notifier
from src.app.core.config import Settings, get_settings
from src.app.core.db import create_session_factory
from src.app.core.security import CredentialStore
from src.app.main import create_app
from src.app.models import Gym, User
from src.app.repositories import GymRepository, TrainerRepository, UserRepository
from src.app.services import (
    AuthService,
    InvitationService,
    MembershipService,
    SessionGuard,
    TokenService,
    UserService,
)
from tests.factories import GymFactory, UserFactory
from tests.helpers import FakeNotifier

# Clear settings cache to ensure test environment variables are picked up
get_settings.cache_clear()


# --- Settings & Database ---


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine]:
    """Fresh in-memory database with all tables created.

    StaticPool keeps the single connection alive so every session sees the
    same database.
    """
    test_engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield test_engine

    await test_engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def notifier() -> FakeNotifier:
    return FakeNotifier()


# --- Repositories & Services ---


@pytest.fixture
def user_repo(db_session: AsyncSession) -> UserRepository:
    return UserRepository(db_session)


@pytest.fixture
def gym_repo(db_session: AsyncSession) -> GymRepository:
    return GymRepository(db_session)


@pytest.fixture
def trainer_repo(db_session: AsyncSession) -> TrainerRepository:
    return TrainerRepository(db_session)


@pytest.fixture
def credential_store(settings: Settings) -> CredentialStore:
    return CredentialStore(settings)


@pytest.fixture
def token_service(
    user_repo: UserRepository, db_session: AsyncSession, settings: Settings
) -> TokenService:
    return TokenService(user_repo, db_session, settings)


@pytest.fixture
def session_guard(token_service: TokenService, user_repo: UserRepository) -> SessionGuard:
    return SessionGuard(token_service, user_repo)


@pytest.fixture
def auth_service(
    user_repo: UserRepository,
    token_service: TokenService,
    credential_store: CredentialStore,
    db_session: AsyncSession,
) -> AuthService:
    return AuthService(user_repo, token_service, credential_store, db_session)


@pytest.fixture
def user_service(
    user_repo: UserRepository,
    token_service: TokenService,
    credential_store: CredentialStore,
    notifier: FakeNotifier,
    db_session: AsyncSession,
    settings: Settings,
) -> UserService:
    return UserService(user_repo, token_service, credential_store, notifier, db_session, settings)


@pytest.fixture
def invitation_service(
    trainer_repo: TrainerRepository,
    gym_repo: GymRepository,
    notifier: FakeNotifier,
    db_session: AsyncSession,
    settings: Settings,
) -> InvitationService:
    return InvitationService(trainer_repo, gym_repo, notifier, db_session, settings)


@pytest.fixture
def membership_service(
    trainer_repo: TrainerRepository, gym_repo: GymRepository, settings: Settings
) -> MembershipService:
    return MembershipService(trainer_repo, gym_repo, settings)


# --- HTTP Client ---


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession], notifier: FakeNotifier
) -> AsyncGenerator[AsyncClient]:
    """Test client whose requests share the test database and notifier."""
    app = create_app()

    async def _get_test_session() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _get_test_session
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


# --- Seed Data ---


@pytest.fixture
async def user(db_session: AsyncSession) -> User:
    """A persisted, verified user whose password is DEFAULT_TEST_PASSWORD."""
    entity = UserFactory.build()
    db_session.add(entity)
    await db_session.commit()
    return entity


@pytest.fixture
async def gym(db_session: AsyncSession, user: User) -> Gym:
    """A persisted gym administered by ``user``."""
    entity = GymFactory.build(name="Iron Temple", admin_user_id=user.id)
    db_session.add(entity)
    await db_session.commit()
    return entity
