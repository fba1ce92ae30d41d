"""Membership aggregator - sanitized trainer roster per gym."""

from collections import defaultdict
from uuid import UUID

from src.app.core.config import Settings
from src.app.core.exceptions import NotFoundError
from src.app.models import TrainerGymMembership
from src.app.repositories import GymRepository, TrainerRepository
from src.app.schemas.trainer import MembershipSummary, TrainerRosterEntry, TrainerRosterPage


class MembershipService:
    """Read-side projection of trainers and their memberships in one gym."""

    def __init__(
        self, trainer_repo: TrainerRepository, gym_repo: GymRepository, settings: Settings
    ):
        self.trainer_repo = trainer_repo
        self.gym_repo = gym_repo
        self.settings = settings

    async def list_for_gym(
        self,
        admin_user_id: UUID,
        gym_id: UUID,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> TrainerRosterPage:
        """List trainers of a gym, each with only that gym's membership.

        Invitation tokens are never part of the projection. Access codes are,
        so the roster is only served to the gym's administrator.

        Raises:
            NotFoundError: If the gym is not administered by ``admin_user_id``,
                or no trainer has a membership in it.
        """
        if await self.gym_repo.get_administered(gym_id, admin_user_id) is None:
            raise NotFoundError("Gym not found")

        page_size = min(
            limit or self.settings.trainer_page_size, self.settings.trainer_page_size_max
        )
        trainers, next_cursor, has_more = await self.trainer_repo.list_for_gym(
            gym_id, cursor, page_size
        )
        if not trainers and cursor is None:
            raise NotFoundError("No trainers found for this gym")

        memberships = await self.trainer_repo.get_memberships_in_gym(
            [trainer.id for trainer in trainers], gym_id
        )
        by_trainer: dict[UUID, list[TrainerGymMembership]] = defaultdict(list)
        for membership in memberships:
            by_trainer[membership.trainer_id].append(membership)

        items = [
            TrainerRosterEntry(
                email=trainer.email,
                memberships=[MembershipSummary.model_validate(m) for m in by_trainer[trainer.id]],
            )
            for trainer in trainers
        ]
        return TrainerRosterPage(items=items, next_cursor=next_cursor, has_more=has_more)
