"""Trainer invitation service - batch invites, acceptance and re-invites."""

from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import UUID

from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.app.core.config import Settings
from src.app.core.exceptions import (
    AlreadyInvitedError,
    ConflictError,
    DeliveryError,
    NotFoundError,
    ValidationFailedError,
)
from src.app.core.logging import get_logger
from src.app.core.notifications import Notifier, build_invitation_email
from src.app.core.security import generate_access_code, generate_invitation_token, hash_token
from src.app.models import Gym
from src.app.models.base import utc_now
from src.app.repositories import GymRepository, TrainerRepository
from src.app.schemas.trainer import (
    AcceptedInvitation,
    InvitationBatchResult,
    InvitationFailure,
    InvitationFailureReason,
    InvitedTrainer,
)

logger = get_logger(__name__)

INVALID_INVITATION = "Invalid or expired invitation link."


def normalize_email(raw: object) -> str | None:
    """Return the trimmed, lower-cased address, or None if it is not a valid email."""
    if not isinstance(raw, str) or not raw.strip():
        return None
    try:
        validated = validate_email(raw.strip(), check_deliverability=False)
    except EmailNotValidError:
        return None
    return validated.normalized.lower()


class InvitationService:
    """Creates, delivers and consumes trainer invitations.

    Each invited address gets a membership in the gym with a 6-digit access
    code and one invitation token. Only the token's SHA-256 hash is stored.
    ``clock`` returns naive UTC, matching the stored timestamps.
    """

    def __init__(
        self,
        trainer_repo: TrainerRepository,
        gym_repo: GymRepository,
        notifier: Notifier,
        session: AsyncSession,
        settings: Settings,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.trainer_repo = trainer_repo
        self.gym_repo = gym_repo
        self.notifier = notifier
        self.session = session
        self.settings = settings
        self._clock = clock

    async def _get_gym(self, gym_id: UUID, admin_user_id: UUID) -> Gym:
        gym = await self.gym_repo.get_administered(gym_id, admin_user_id)
        if gym is None:
            raise NotFoundError("Gym not found")
        return gym

    def _new_invitation(self) -> tuple[str, str, datetime]:
        """Generate (access code, plaintext token, expiry)."""
        expires_at = self._clock() + timedelta(days=self.settings.invitation_expire_days)
        return generate_access_code(), generate_invitation_token(), expires_at

    async def invite_trainers(
        self, admin_user_id: UUID, gym_id: UUID, emails: list[object]
    ) -> InvitationBatchResult:
        """Invite every address in ``emails`` to a gym ``admin_user_id`` administers.

        Addresses are handled one at a time and fail independently. Each
        membership is committed before its email goes out, so a delivery
        failure leaves the membership in place.

        Raises:
            ValidationFailedError: If ``emails`` is empty.
            NotFoundError: If the gym does not exist or is not administered
                by ``admin_user_id``.
        """
        if not emails:
            raise ValidationFailedError("A list of emails is required")

        gym = await self._get_gym(gym_id, admin_user_id)
        # Plain values survive the per-address rollbacks below
        gym_name = gym.name

        result = InvitationBatchResult()
        for raw in emails:
            email = normalize_email(raw)
            if email is None:
                result.failed.append(
                    InvitationFailure(
                        email=None if raw is None else str(raw),
                        reason=InvitationFailureReason.INVALID_EMAIL,
                        message="Invalid email format",
                    )
                )
                continue

            try:
                invited, access_code, token = await self._create_membership(
                    email, gym_id, gym_name
                )
            except AlreadyInvitedError as e:
                result.failed.append(
                    InvitationFailure(
                        email=email,
                        reason=InvitationFailureReason.ALREADY_INVITED,
                        message=e.message,
                    )
                )
                continue
            except ConflictError as e:
                result.failed.append(
                    InvitationFailure(
                        email=email,
                        reason=InvitationFailureReason.CONCURRENT_UPDATE,
                        message=e.message,
                    )
                )
                continue

            try:
                await self.notifier.send(
                    build_invitation_email(self.settings, email, gym_name, access_code, token)
                )
            except DeliveryError as e:
                logger.warning(
                    "Invitation email not delivered",
                    gym_id=str(gym_id),
                    trainer_id=str(invited.trainer_id),
                    error=e.message,
                )
                result.failed.append(
                    InvitationFailure(
                        email=email,
                        reason=InvitationFailureReason.DELIVERY_FAILED,
                        message="Failed to send invitation email",
                    )
                )
                continue

            result.invited.append(invited)

        logger.info(
            "Trainer invitation batch completed",
            gym_id=str(gym_id),
            invited=len(result.invited),
            failed=len(result.failed),
        )
        return result

    async def _create_membership(
        self, email: str, gym_id: UUID, gym_name: str
    ) -> tuple[InvitedTrainer, str, str]:
        """Persist one membership and return its projection, access code and token."""
        if await self.trainer_repo.membership_exists(email, gym_id):
            raise AlreadyInvitedError()

        access_code, token, expires_at = self._new_invitation()
        try:
            trainer, membership = await self.trainer_repo.append_membership(
                email=email,
                gym_id=gym_id,
                gym_name=gym_name,
                access_code=access_code,
                token_hash=hash_token(token),
                expires_at=expires_at,
                max_retries=self.settings.trainer_update_max_retries,
            )
            invited = InvitedTrainer(
                trainer_id=trainer.id,
                email=trainer.email,
                gym_id=membership.gym_id,
                gym_name=membership.gym_name,
                is_invitation_accepted=membership.is_invitation_accepted,
                created_at=membership.created_at,
            )
            await self.session.commit()
        except IntegrityError as e:
            # A concurrent invite created the same membership first
            await self.session.rollback()
            raise AlreadyInvitedError() from e
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Trainer invited", gym_id=str(gym_id), trainer_id=str(invited.trainer_id))
        return invited, access_code, token

    async def accept_invitation(self, token: str) -> AcceptedInvitation:
        """Accept the membership an invitation token belongs to.

        Every token of the membership is deleted, so the same link cannot be
        used twice. Unknown, expired and already used tokens all fail with
        the same message.

        Raises:
            ValidationFailedError: If the token is missing or not honourable.
        """
        if not token:
            raise ValidationFailedError("Token is required")

        now = self._clock()
        membership = await self.trainer_repo.find_pending_invitation(hash_token(token), now)
        if membership is None:
            raise ValidationFailedError(INVALID_INVITATION)

        membership_id = membership.id
        trainer_id = membership.trainer_id
        gym_id = membership.gym_id
        gym_name = membership.gym_name

        try:
            await self.trainer_repo.claim_trainer(
                trainer_id, self.settings.trainer_update_max_retries
            )
            if not await self.trainer_repo.mark_accepted(membership_id, now):
                raise ValidationFailedError(INVALID_INVITATION)
            await self.trainer_repo.delete_invitation_tokens(membership_id)
            trainer = await self.trainer_repo.get_by_id(trainer_id)
            if trainer is None:
                raise ValidationFailedError(INVALID_INVITATION)
            email = trainer.email
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info("Invitation accepted", gym_id=str(gym_id), trainer_id=str(trainer_id))
        return AcceptedInvitation(
            trainer_id=trainer_id,
            email=email,
            gym_id=gym_id,
            gym_name=gym_name,
            is_invitation_accepted=True,
            accepted_at=now,
        )

    async def resend_invitation(
        self, admin_user_id: UUID, gym_id: UUID, email: str
    ) -> InvitedTrainer:
        """Refresh a pending invitation and send it again.

        The membership gets a new access code and a single new token; earlier
        tokens stop working. The refreshed invitation stays persisted even
        when delivery fails.

        Raises:
            NotFoundError: If the gym or the membership does not exist, or the
                gym is not administered by ``admin_user_id``.
            ValidationFailedError: If the email is malformed.
            ConflictError: If the invitation was already accepted.
            DeliveryError: If the email could not be sent.
        """
        gym = await self._get_gym(gym_id, admin_user_id)
        gym_name = gym.name

        normalized = normalize_email(email)
        if normalized is None:
            raise ValidationFailedError("Invalid email format")

        membership = await self.trainer_repo.get_membership(normalized, gym_id)
        if membership is None:
            raise NotFoundError("Trainer has not been invited to this gym")
        if membership.is_invitation_accepted:
            raise ConflictError("Trainer has already accepted the invitation")

        access_code, token, expires_at = self._new_invitation()
        try:
            await self.trainer_repo.claim_trainer(
                membership.trainer_id, self.settings.trainer_update_max_retries
            )
            await self.trainer_repo.reissue_invitation(
                membership, access_code, hash_token(token), expires_at
            )
            invited = InvitedTrainer(
                trainer_id=membership.trainer_id,
                email=normalized,
                gym_id=gym_id,
                gym_name=membership.gym_name,
                is_invitation_accepted=False,
                created_at=membership.created_at,
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        await self.notifier.send(
            build_invitation_email(self.settings, normalized, gym_name, access_code, token)
        )
        logger.info(
            "Invitation resent", gym_id=str(gym_id), trainer_id=str(invited.trainer_id)
        )
        return invited
