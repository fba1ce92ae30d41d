"""Integration test fixtures - authenticated HTTP clients."""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.models import User
from tests.factories import DEFAULT_TEST_PASSWORD, UserFactory


async def _bearer_headers(client: AsyncClient, user: User) -> dict[str, str]:
    response = await client.post(
        "/api/v1/users/login",
        json={"username": user.username, "password": DEFAULT_TEST_PASSWORD},
    )
    assert response.status_code == 200, response.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
async def auth_headers(client: AsyncClient, user: User) -> dict[str, str]:
    """Bearer header for ``user``. Login cookies are dropped so only the header authenticates."""
    return await _bearer_headers(client, user)


@pytest.fixture
async def other_auth_headers(client: AsyncClient, db_session: AsyncSession) -> dict[str, str]:
    """Bearer header for a second verified user who administers no gym."""
    other = UserFactory.build()
    db_session.add(other)
    await db_session.commit()
    return await _bearer_headers(client, other)
