"""Repository for Gym entity."""

from uuid import UUID

from sqlmodel import select

from src.app.models import Gym
from src.app.repositories.base import BaseRepository


class GymRepository(BaseRepository[Gym]):
    """Repository for Gym entity."""

    model = Gym

    async def get_administered(self, gym_id: UUID, admin_user_id: UUID) -> Gym | None:
        """Get a gym only if ``admin_user_id`` is its administrator."""
        result = await self.session.execute(
            select(Gym).where(Gym.id == gym_id).where(Gym.admin_user_id == admin_user_id)
        )
        return result.scalar_one_or_none()
