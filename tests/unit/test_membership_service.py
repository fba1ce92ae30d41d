"""Tests for the per-gym trainer roster."""

from datetime import timedelta
from uuid import uuid4

import pytest

from src.app.core.exceptions import NotFoundError
from src.app.models import Gym
from src.app.services import InvitationService, MembershipService
from tests.factories import GymFactory, TrainerFactory, TrainerGymMembershipFactory, utc_now

pytestmark = pytest.mark.unit


async def _seed_trainers(db_session, gym: Gym, count: int) -> list[str]:
    """Insert ``count`` trainers with memberships in ``gym``, one second apart."""
    base = utc_now()
    emails = []
    for i in range(count):
        trainer = TrainerFactory.build(created_at=base - timedelta(seconds=i))
        db_session.add(trainer)
        db_session.add(
            TrainerGymMembershipFactory.build(
                trainer_id=trainer.id, gym_id=gym.id, gym_name=gym.name
            )
        )
        emails.append(trainer.email)
    await db_session.commit()
    return emails


class TestListForGym:
    async def test_roster_shows_only_this_gym(
        self,
        invitation_service: InvitationService,
        membership_service: MembershipService,
        db_session,
        gym: Gym,
    ):
        other = GymFactory.build(name="Other Gym", admin_user_id=gym.admin_user_id)
        db_session.add(other)
        await db_session.commit()
        await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])
        await invitation_service.invite_trainers(
            other.admin_user_id,
            other.id,
            ["a@x.com", "b@x.com"],
        )

        page = await membership_service.list_for_gym(gym.admin_user_id, gym.id)

        assert [entry.email for entry in page.items] == ["a@x.com"]
        [membership] = page.items[0].memberships
        assert membership.gym_id == gym.id
        assert membership.gym_name == gym.name
        assert membership.is_invitation_accepted is False
        assert len(membership.access_code) == 6
        assert page.has_more is False
        assert page.next_cursor is None

    async def test_roster_never_exposes_tokens(
        self,
        invitation_service: InvitationService,
        membership_service: MembershipService,
        gym: Gym,
    ):
        await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])

        dumped = (await membership_service.list_for_gym(gym.admin_user_id, gym.id)).model_dump()

        membership = dumped["items"][0]["memberships"][0]
        assert set(membership) == {"gym_id", "gym_name", "is_invitation_accepted", "access_code"}

    async def test_newest_first_with_cursor(
        self, membership_service: MembershipService, db_session, gym: Gym
    ):
        emails = await _seed_trainers(db_session, gym, 3)

        first = await membership_service.list_for_gym(gym.admin_user_id, gym.id, limit=2)
        assert [e.email for e in first.items] == emails[:2]
        assert first.has_more is True
        assert first.next_cursor

        second = await membership_service.list_for_gym(
            gym.admin_user_id,
            gym.id,
            cursor=first.next_cursor,
            limit=2,
        )
        assert [e.email for e in second.items] == emails[2:]
        assert second.has_more is False

    async def test_cursor_walks_trainers_created_together(
        self, membership_service: MembershipService, db_session, gym: Gym
    ):
        created_at = utc_now()
        emails = set()
        for _ in range(3):
            trainer = TrainerFactory.build(created_at=created_at)
            db_session.add(trainer)
            db_session.add(
                TrainerGymMembershipFactory.build(
                    trainer_id=trainer.id, gym_id=gym.id, gym_name=gym.name
                )
            )
            emails.add(trainer.email)
        await db_session.commit()

        seen = []
        cursor = None
        for _ in range(3):
            page = await membership_service.list_for_gym(
                gym.admin_user_id, gym.id, cursor=cursor, limit=1
            )
            seen.extend(entry.email for entry in page.items)
            cursor = page.next_cursor

        assert sorted(seen) == sorted(emails)
        assert page.has_more is False
        assert cursor is None

    async def test_limit_capped_by_settings(
        self, membership_service: MembershipService, db_session, settings, gym: Gym
    ):
        await _seed_trainers(db_session, gym, 3)
        capped = MembershipService(
            membership_service.trainer_repo,
            membership_service.gym_repo,
            settings.model_copy(update={"trainer_page_size_max": 2}),
        )

        page = await capped.list_for_gym(gym.admin_user_id, gym.id, limit=1000)
        assert len(page.items) == 2
        assert page.has_more is True

    async def test_empty_gym_not_found(self, membership_service: MembershipService, gym: Gym):
        with pytest.raises(NotFoundError, match="No trainers found for this gym"):
            await membership_service.list_for_gym(gym.admin_user_id, gym.id)

    async def test_unknown_gym_not_found(self, membership_service: MembershipService, user):
        with pytest.raises(NotFoundError, match="Gym not found"):
            await membership_service.list_for_gym(user.id, uuid4())

    async def test_roster_hidden_from_other_users(
        self,
        invitation_service: InvitationService,
        membership_service: MembershipService,
        gym: Gym,
    ):
        await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])

        with pytest.raises(NotFoundError, match="Gym not found"):
            await membership_service.list_for_gym(uuid4(), gym.id)
