"""Repository for trainers, their gym memberships and invitation tokens."""

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import delete, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import col, select

from src.app.core.exceptions import ConflictError
from src.app.core.logging import get_logger
from src.app.models import InvitationToken, Trainer, TrainerGymMembership
from src.app.models.base import utc_now
from src.app.repositories.base import BaseRepository

logger = get_logger(__name__)


class TrainerRepository(BaseRepository[Trainer]):
    """Repository for the trainer aggregate.

    Trainer rows are created lazily by the first invitation and extended by
    later ones. Every change to a trainer's membership set first wins a
    compare-and-set on ``Trainer.version``.
    """

    model = Trainer

    async def get_by_email(self, email: str) -> Trainer | None:
        """Get trainer by email address."""
        result = await self.session.execute(select(Trainer).where(Trainer.email == email))
        return result.scalar_one_or_none()

    async def get_version(self, trainer_id: UUID) -> int | None:
        """Read the trainer's current version straight from the database."""
        result = await self.session.execute(
            select(Trainer.version).where(Trainer.id == trainer_id)
        )
        return result.scalar_one_or_none()

    async def get_membership(self, email: str, gym_id: UUID) -> TrainerGymMembership | None:
        """Get the membership of the trainer with ``email`` in ``gym_id``."""
        result = await self.session.execute(
            select(TrainerGymMembership)
            .join(Trainer, col(Trainer.id) == col(TrainerGymMembership.trainer_id))
            .where(Trainer.email == email)
            .where(TrainerGymMembership.gym_id == gym_id)
        )
        return result.scalar_one_or_none()

    async def membership_exists(self, email: str, gym_id: UUID) -> bool:
        """Check if the trainer with ``email`` already has a membership in ``gym_id``."""
        return await self.get_membership(email, gym_id) is not None

    async def ensure_trainer(self, email: str) -> Trainer:
        """Create the trainer row if absent and return it.

        Uses ``INSERT ... ON CONFLICT (email) DO NOTHING`` so two concurrent
        first invitations to the same address both end up on one row.
        """
        dialect = self.session.get_bind().dialect.name
        insert = postgresql.insert if dialect == "postgresql" else sqlite.insert
        now = utc_now()
        stmt = (
            insert(Trainer)
            .values(id=uuid4(), email=email, version=1, created_at=now, updated_at=now)
            .on_conflict_do_nothing(index_elements=["email"])
        )
        await self.session.execute(stmt)
        trainer = await self.get_by_email(email)
        if trainer is None:
            raise RuntimeError(f"Trainer row for {email!r} missing after upsert")
        return trainer

    async def bump_version(self, trainer_id: UUID, expected_version: int) -> bool:
        """Compare-and-set the trainer version. Returns False if another writer won."""
        result = await self.session.execute(
            update(Trainer)
            .where(col(Trainer.id) == trainer_id)
            .where(col(Trainer.version) == expected_version)
            .values(version=expected_version + 1, updated_at=utc_now())
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) == 1  # type: ignore[attr-defined]

    async def claim_trainer(self, trainer_id: UUID, max_retries: int) -> int:
        """Win the version compare-and-set for ``trainer_id``.

        Re-reads the version and retries up to ``max_retries`` times. Returns
        the new version.

        Raises:
            ConflictError: If every attempt lost to a concurrent writer.
        """
        for attempt in range(1, max_retries + 1):
            version = await self.get_version(trainer_id)
            if version is None:
                break
            if await self.bump_version(trainer_id, version):
                return version + 1
            logger.info(
                "Trainer version conflict, retrying",
                trainer_id=str(trainer_id),
                attempt=attempt,
            )
        raise ConflictError("Trainer was modified concurrently, please retry")

    async def append_membership(
        self,
        email: str,
        gym_id: UUID,
        gym_name: str,
        access_code: str,
        token_hash: str,
        expires_at: datetime,
        max_retries: int,
    ) -> tuple[Trainer, TrainerGymMembership]:
        """Append a membership to the trainer with ``email``, creating the trainer if absent.

        The membership carries one invitation token. A racing duplicate for
        the same (trainer, gym) pair fails on the ``uq_trainer_gym`` unique
        constraint with an ``IntegrityError`` at flush time.
        """
        trainer = await self.ensure_trainer(email)
        await self.claim_trainer(trainer.id, max_retries)

        membership = TrainerGymMembership(
            trainer_id=trainer.id,
            gym_id=gym_id,
            gym_name=gym_name,
            access_code=access_code,
        )
        self.session.add(membership)
        await self.session.flush()

        self.session.add(
            InvitationToken(
                membership_id=membership.id,
                token_hash=token_hash,
                expires_at=expires_at,
            )
        )
        await self.session.flush()
        return trainer, membership

    async def find_pending_invitation(
        self, token_hash: str, now: datetime
    ) -> TrainerGymMembership | None:
        """Find the unaccepted membership owning an unexpired token with this hash.

        A token expiring exactly at ``now`` is no longer honoured.
        """
        result = await self.session.execute(
            select(TrainerGymMembership)
            .join(
                InvitationToken,
                col(InvitationToken.membership_id) == col(TrainerGymMembership.id),
            )
            .where(InvitationToken.token_hash == token_hash)
            .where(col(InvitationToken.expires_at) > now)
            .where(col(TrainerGymMembership.is_invitation_accepted).is_(False))
        )
        return result.scalar_one_or_none()

    async def mark_accepted(self, membership_id: UUID, accepted_at: datetime) -> bool:
        """Flip the acceptance flag if it is still false. Returns True if this call flipped it."""
        result = await self.session.execute(
            update(TrainerGymMembership)
            .where(col(TrainerGymMembership.id) == membership_id)
            .where(col(TrainerGymMembership.is_invitation_accepted).is_(False))
            .values(is_invitation_accepted=True, accepted_at=accepted_at)
            .execution_options(synchronize_session="fetch")
        )
        return (result.rowcount or 0) == 1  # type: ignore[attr-defined]

    async def delete_invitation_tokens(self, membership_id: UUID) -> int:
        """Delete every invitation token of a membership. Returns the number removed."""
        result = await self.session.execute(
            delete(InvitationToken).where(col(InvitationToken.membership_id) == membership_id)
        )
        return result.rowcount or 0  # type: ignore[attr-defined]

    async def list_invitation_tokens(self, membership_id: UUID) -> list[InvitationToken]:
        """List the invitation tokens still attached to a membership."""
        result = await self.session.execute(
            select(InvitationToken).where(InvitationToken.membership_id == membership_id)
        )
        return list(result.scalars().all())

    async def reissue_invitation(
        self,
        membership: TrainerGymMembership,
        access_code: str,
        token_hash: str,
        expires_at: datetime,
    ) -> None:
        """Replace a pending membership's access code and invitation tokens."""
        await self.delete_invitation_tokens(membership.id)
        membership.access_code = access_code
        self.session.add(membership)
        self.session.add(
            InvitationToken(
                membership_id=membership.id,
                token_hash=token_hash,
                expires_at=expires_at,
            )
        )
        await self.session.flush()

    async def list_for_gym(
        self, gym_id: UUID, cursor: str | None, limit: int
    ) -> tuple[list[Trainer], str | None, bool]:
        """List trainers holding a membership in ``gym_id``, newest first."""
        query = (
            select(Trainer)
            .join(
                TrainerGymMembership,
                col(TrainerGymMembership.trainer_id) == col(Trainer.id),
            )
            .where(TrainerGymMembership.gym_id == gym_id)
        )
        return await self.paginate(
            query, cursor, limit, col(Trainer.created_at), tiebreaker_field=col(Trainer.id)
        )

    async def get_memberships_in_gym(
        self, trainer_ids: list[UUID], gym_id: UUID
    ) -> list[TrainerGymMembership]:
        """Get the memberships of the given trainers in ``gym_id``."""
        if not trainer_ids:
            return []
        result = await self.session.execute(
            select(TrainerGymMembership)
            .where(col(TrainerGymMembership.trainer_id).in_(trainer_ids))
            .where(TrainerGymMembership.gym_id == gym_id)
        )
        return list(result.scalars().all())
