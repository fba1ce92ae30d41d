"""Tests for trainer invitations: batch invites, acceptance and re-invites."""

from datetime import datetime, timedelta
from uuid import uuid4

import pytest

from src.app.core.exceptions import (
    AlreadyInvitedError,
    ConflictError,
    DeliveryError,
    NotFoundError,
    ValidationFailedError,
)
from src.app.core.security import hash_token
from src.app.models import Gym
from src.app.repositories import GymRepository, TrainerRepository
from src.app.schemas.trainer import InvitationFailureReason
from src.app.services import InvitationService
from src.app.services.invitation_service import normalize_email
from tests.factories import GymFactory
from tests.helpers import FakeNotifier, extract_link_token

pytestmark = pytest.mark.unit


def _invitation_token(notifier: FakeNotifier, address: str) -> str:
    return extract_link_token(notifier.sent_to(address)[-1], "trainer/confirm-invite")


@pytest.fixture
async def second_gym(db_session, user) -> Gym:
    entity = GymFactory.build(name="Pump House", admin_user_id=user.id)
    db_session.add(entity)
    await db_session.commit()
    return entity


class TestNormalizeEmail:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("a@x.com", "a@x.com"),
            ("  A@X.Com ", "a@x.com"),
            ("bad", None),
            ("", None),
            ("a@", None),
            (None, None),
            (42, None),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize_email(raw) == expected


class TestInviteTrainers:
    async def test_partial_batch(
        self, invitation_service: InvitationService, notifier: FakeNotifier, gym: Gym
    ):
        """One bad address and one duplicate never sink the whole batch."""
        result = await invitation_service.invite_trainers(
            gym.admin_user_id,
            gym.id,
            ["a@x.com", "bad", "a@x.com"],
        )

        assert result.message == "Trainers invitation process completed"
        assert [t.email for t in result.invited] == ["a@x.com"]
        assert [(f.email, f.reason) for f in result.failed] == [
            ("bad", InvitationFailureReason.INVALID_EMAIL),
            ("a@x.com", InvitationFailureReason.ALREADY_INVITED),
        ]
        assert len(notifier.sent_to("a@x.com")) == 1

    async def test_invitation_email_carries_code_and_link(
        self,
        invitation_service: InvitationService,
        trainer_repo: TrainerRepository,
        notifier: FakeNotifier,
        gym: Gym,
    ):
        await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])

        [message] = notifier.sent_to("a@x.com")
        membership = await trainer_repo.get_membership("a@x.com", gym.id)
        assert membership is not None
        assert membership.access_code in message.html
        assert f"Your MPIN is {membership.access_code}" in (message.text or "")
        assert gym.name in message.html

    async def test_only_token_hash_is_stored(
        self,
        invitation_service: InvitationService,
        trainer_repo: TrainerRepository,
        notifier: FakeNotifier,
        gym: Gym,
    ):
        await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])
        token = _invitation_token(notifier, "a@x.com")

        membership = await trainer_repo.get_membership("a@x.com", gym.id)
        assert membership is not None
        [stored] = await trainer_repo.list_invitation_tokens(membership.id)
        assert stored.token_hash == hash_token(token)
        assert stored.token_hash != token

    async def test_addresses_are_normalized(
        self, invitation_service: InvitationService, gym: Gym
    ):
        result = await invitation_service.invite_trainers(
            gym.admin_user_id,
            gym.id,
            [" A@X.com ", "a@x.com"],
        )
        assert [t.email for t in result.invited] == ["a@x.com"]
        assert result.failed[0].reason == InvitationFailureReason.ALREADY_INVITED

    async def test_same_trainer_joins_several_gyms(
        self,
        invitation_service: InvitationService,
        trainer_repo: TrainerRepository,
        gym: Gym,
        second_gym: Gym,
    ):
        first = await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])
        second = await invitation_service.invite_trainers(
            second_gym.admin_user_id,
            second_gym.id,
            ["a@x.com"],
        )

        assert first.invited[0].trainer_id == second.invited[0].trainer_id
        trainer = await trainer_repo.get_by_email("a@x.com")
        assert trainer is not None
        # One bump per appended membership
        assert await trainer_repo.get_version(trainer.id) == 3

    async def test_delivery_failure_keeps_membership(
        self,
        invitation_service: InvitationService,
        trainer_repo: TrainerRepository,
        notifier: FakeNotifier,
        gym: Gym,
    ):
        notifier.fail_for.add("b@x.com")

        result = await invitation_service.invite_trainers(
            gym.admin_user_id,
            gym.id,
            ["a@x.com", "b@x.com"],
        )

        assert [t.email for t in result.invited] == ["a@x.com"]
        assert [(f.email, f.reason) for f in result.failed] == [
            ("b@x.com", InvitationFailureReason.DELIVERY_FAILED)
        ]
        assert await trainer_repo.membership_exists("b@x.com", gym.id)

    async def test_racing_duplicate_maps_to_already_invited(
        self,
        invitation_service: InvitationService,
        trainer_repo: TrainerRepository,
        gym: Gym,
        monkeypatch,
    ):
        """The unique constraint catches a duplicate the pre-check missed."""
        await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])

        async def _missed(email, gym_id):
            return False

        monkeypatch.setattr(trainer_repo, "membership_exists", _missed)
        result = await invitation_service.invite_trainers(
            gym.admin_user_id,
            gym.id,
            ["a@x.com", "c@x.com"],
        )

        assert result.failed[0].reason == InvitationFailureReason.ALREADY_INVITED
        assert [t.email for t in result.invited] == ["c@x.com"]

    async def test_lost_version_race_reported_per_address(
        self,
        invitation_service: InvitationService,
        trainer_repo: TrainerRepository,
        gym: Gym,
        monkeypatch,
    ):
        async def _always_lose(trainer_id, expected_version):
            return False

        monkeypatch.setattr(trainer_repo, "bump_version", _always_lose)
        result = await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])

        assert result.invited == []
        assert result.failed[0].reason == InvitationFailureReason.CONCURRENT_UPDATE
        assert result.failed[0].message == "Trainer was modified concurrently, please retry"

    async def test_duplicate_raises_already_invited(
        self, invitation_service: InvitationService, gym: Gym
    ):
        await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])

        with pytest.raises(AlreadyInvitedError):
            await invitation_service._create_membership("a@x.com", gym.id, gym.name)

    async def test_empty_batch_rejected(self, invitation_service: InvitationService, gym: Gym):
        with pytest.raises(ValidationFailedError, match="A list of emails is required"):
            await invitation_service.invite_trainers(gym.admin_user_id, gym.id, [])

    async def test_unknown_gym(self, invitation_service: InvitationService, user):
        with pytest.raises(NotFoundError, match="Gym not found"):
            await invitation_service.invite_trainers(user.id, uuid4(), ["a@x.com"])

    async def test_gym_of_another_admin_not_found(
        self,
        invitation_service: InvitationService,
        trainer_repo: TrainerRepository,
        notifier: FakeNotifier,
        gym: Gym,
    ):
        with pytest.raises(NotFoundError, match="Gym not found"):
            await invitation_service.invite_trainers(uuid4(), gym.id, ["a@x.com"])

        assert notifier.sent == []
        assert not await trainer_repo.membership_exists("a@x.com", gym.id)

    async def test_non_string_entries_are_invalid_emails(
        self, invitation_service: InvitationService, gym: Gym
    ):
        result = await invitation_service.invite_trainers(
            gym.admin_user_id, gym.id, ["a@x.com", None, 42]
        )

        assert [t.email for t in result.invited] == ["a@x.com"]
        assert [(f.email, f.reason) for f in result.failed] == [
            (None, InvitationFailureReason.INVALID_EMAIL),
            ("42", InvitationFailureReason.INVALID_EMAIL),
        ]


class TestAcceptInvitation:
    async def test_accept_consumes_tokens(
        self,
        invitation_service: InvitationService,
        trainer_repo: TrainerRepository,
        notifier: FakeNotifier,
        gym: Gym,
    ):
        await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])
        token = _invitation_token(notifier, "a@x.com")

        accepted = await invitation_service.accept_invitation(token)

        assert accepted.email == "a@x.com"
        assert accepted.gym_id == gym.id
        assert accepted.gym_name == gym.name
        assert accepted.is_invitation_accepted is True
        membership = await trainer_repo.get_membership("a@x.com", gym.id)
        assert membership is not None
        assert membership.is_invitation_accepted is True
        assert membership.accepted_at is not None
        assert await trainer_repo.list_invitation_tokens(membership.id) == []

    async def test_second_acceptance_fails_like_unknown_token(
        self, invitation_service: InvitationService, notifier: FakeNotifier, gym: Gym
    ):
        await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])
        token = _invitation_token(notifier, "a@x.com")
        await invitation_service.accept_invitation(token)

        with pytest.raises(ValidationFailedError) as reused:
            await invitation_service.accept_invitation(token)
        with pytest.raises(ValidationFailedError) as unknown:
            await invitation_service.accept_invitation("f" * 64)
        assert reused.value.message == unknown.value.message == "Invalid or expired invitation link."

    async def test_missing_token(self, invitation_service: InvitationService):
        with pytest.raises(ValidationFailedError, match="Token is required"):
            await invitation_service.accept_invitation("")

    async def test_acceptance_only_touches_its_gym(
        self,
        invitation_service: InvitationService,
        trainer_repo: TrainerRepository,
        notifier: FakeNotifier,
        gym: Gym,
        second_gym: Gym,
    ):
        await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])
        await invitation_service.invite_trainers(
            second_gym.admin_user_id,
            second_gym.id,
            ["a@x.com"],
        )
        first_token, second_token = (
            extract_link_token(m, "trainer/confirm-invite") for m in notifier.sent_to("a@x.com")
        )

        await invitation_service.accept_invitation(first_token)

        other = await trainer_repo.get_membership("a@x.com", second_gym.id)
        assert other is not None
        assert other.is_invitation_accepted is False
        accepted = await invitation_service.accept_invitation(second_token)
        assert accepted.gym_id == second_gym.id


class TestExpiry:
    @pytest.fixture
    def clock(self):
        state = {"now": datetime(2026, 1, 1, 12, 0, 0)}

        def _now() -> datetime:
            return state["now"]

        _now.state = state  # type: ignore[attr-defined]
        return _now

    @pytest.fixture
    def clocked_service(
        self, trainer_repo, gym_repo, notifier, db_session, settings, clock
    ) -> InvitationService:
        return InvitationService(trainer_repo, gym_repo, notifier, db_session, settings, clock=clock)

    async def test_token_rejected_exactly_at_expiry(
        self, clocked_service: InvitationService, notifier: FakeNotifier, settings, clock, gym: Gym
    ):
        await clocked_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])
        token = _invitation_token(notifier, "a@x.com")

        clock.state["now"] += timedelta(days=settings.invitation_expire_days)
        with pytest.raises(ValidationFailedError, match="Invalid or expired invitation link."):
            await clocked_service.accept_invitation(token)

    async def test_token_accepted_one_second_before_expiry(
        self, clocked_service: InvitationService, notifier: FakeNotifier, settings, clock, gym: Gym
    ):
        await clocked_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])
        token = _invitation_token(notifier, "a@x.com")

        clock.state["now"] += timedelta(days=settings.invitation_expire_days, seconds=-1)
        accepted = await clocked_service.accept_invitation(token)
        assert accepted.is_invitation_accepted is True


class TestResendInvitation:
    async def test_resend_replaces_code_and_token(
        self,
        invitation_service: InvitationService,
        trainer_repo: TrainerRepository,
        notifier: FakeNotifier,
        gym: Gym,
    ):
        await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])
        old_token = _invitation_token(notifier, "a@x.com")

        resent = await invitation_service.resend_invitation(gym.admin_user_id, gym.id, "A@x.com")

        assert resent.email == "a@x.com"
        assert len(notifier.sent_to("a@x.com")) == 2
        new_token = _invitation_token(notifier, "a@x.com")
        assert new_token != old_token
        membership = await trainer_repo.get_membership("a@x.com", gym.id)
        assert membership is not None
        assert len(await trainer_repo.list_invitation_tokens(membership.id)) == 1

        with pytest.raises(ValidationFailedError):
            await invitation_service.accept_invitation(old_token)
        accepted = await invitation_service.accept_invitation(new_token)
        assert accepted.is_invitation_accepted is True

    async def test_batch_reinvite_still_conflicts(
        self, invitation_service: InvitationService, gym: Gym
    ):
        await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])
        result = await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])
        assert result.failed[0].reason == InvitationFailureReason.ALREADY_INVITED
        assert result.failed[0].message == "Trainer already invited to this gym"

    async def test_resend_after_acceptance_conflicts(
        self, invitation_service: InvitationService, notifier: FakeNotifier, gym: Gym
    ):
        await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])
        await invitation_service.accept_invitation(_invitation_token(notifier, "a@x.com"))

        with pytest.raises(ConflictError, match="already accepted"):
            await invitation_service.resend_invitation(gym.admin_user_id, gym.id, "a@x.com")

    async def test_resend_to_uninvited_address(
        self, invitation_service: InvitationService, gym: Gym
    ):
        with pytest.raises(NotFoundError, match="has not been invited"):
            await invitation_service.resend_invitation(gym.admin_user_id, gym.id, "nobody@x.com")

    async def test_resend_by_another_admin_not_found(
        self, invitation_service: InvitationService, notifier: FakeNotifier, gym: Gym
    ):
        await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])

        with pytest.raises(NotFoundError, match="Gym not found"):
            await invitation_service.resend_invitation(uuid4(), gym.id, "a@x.com")
        assert len(notifier.sent_to("a@x.com")) == 1

    async def test_resend_delivery_failure_keeps_new_token(
        self,
        invitation_service: InvitationService,
        trainer_repo: TrainerRepository,
        notifier: FakeNotifier,
        gym: Gym,
    ):
        await invitation_service.invite_trainers(gym.admin_user_id, gym.id, ["a@x.com"])
        old_token = _invitation_token(notifier, "a@x.com")
        notifier.fail_for.add("a@x.com")

        with pytest.raises(DeliveryError):
            await invitation_service.resend_invitation(gym.admin_user_id, gym.id, "a@x.com")

        membership = await trainer_repo.get_membership("a@x.com", gym.id)
        assert membership is not None
        [stored] = await trainer_repo.list_invitation_tokens(membership.id)
        assert stored.token_hash != hash_token(old_token)


class TestGymRepository:
    async def test_get_administered_checks_admin(self, gym_repo: GymRepository, gym: Gym):
        assert gym.admin_user_id is not None
        found = await gym_repo.get_administered(gym.id, gym.admin_user_id)
        assert found is not None
        assert found.id == gym.id
        assert await gym_repo.get_administered(gym.id, uuid4()) is None
