"""Trainers, gym memberships and invitation tokens

Revision ID: 002
Revises: 001
Create Date: 2024-01-02 00:00:00.000000

"""

from collections.abc import Sequence

import sqlalchemy as sa
import sqlmodel

from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # 1. Trainers - one row per email, across all gyms
    op.create_table(
        "trainers",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("email", sqlmodel.sql.sqltypes.AutoString(length=255), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_trainers_email", "trainers", ["email"], unique=True)
    op.create_index("ix_trainers_created_at", "trainers", ["created_at"], unique=False)

    # 2. Memberships - one per (trainer, gym)
    op.create_table(
        "trainer_gym_memberships",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("trainer_id", sa.Uuid(), nullable=False),
        sa.Column("gym_id", sa.Uuid(), nullable=False),
        sa.Column("gym_name", sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column("access_code", sqlmodel.sql.sqltypes.AutoString(length=6), nullable=False),
        sa.Column(
            "is_invitation_accepted",
            sa.Boolean(),
            nullable=False,
            server_default=sa.text("false"),
        ),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("accepted_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["trainer_id"], ["trainers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["gym_id"], ["gyms.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("trainer_id", "gym_id", name="uq_trainer_gym"),
    )
    op.create_index(
        "ix_trainer_gym_memberships_trainer_id",
        "trainer_gym_memberships",
        ["trainer_id"],
        unique=False,
    )
    op.create_index(
        "ix_trainer_gym_memberships_gym_id", "trainer_gym_memberships", ["gym_id"], unique=False
    )

    # 3. Invitation tokens - hashed, deleted on acceptance
    op.create_table(
        "invitation_tokens",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("membership_id", sa.Uuid(), nullable=False),
        sa.Column("token_hash", sqlmodel.sql.sqltypes.AutoString(length=64), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ["membership_id"], ["trainer_gym_memberships.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_invitation_tokens_membership_id", "invitation_tokens", ["membership_id"], unique=False
    )
    op.create_index(
        "ix_invitation_tokens_token_hash", "invitation_tokens", ["token_hash"], unique=True
    )
    op.create_index(
        "ix_invitation_tokens_expires_at", "invitation_tokens", ["expires_at"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_invitation_tokens_expires_at", table_name="invitation_tokens")
    op.drop_index("ix_invitation_tokens_token_hash", table_name="invitation_tokens")
    op.drop_index("ix_invitation_tokens_membership_id", table_name="invitation_tokens")
    op.drop_table("invitation_tokens")
    op.drop_index("ix_trainer_gym_memberships_gym_id", table_name="trainer_gym_memberships")
    op.drop_index("ix_trainer_gym_memberships_trainer_id", table_name="trainer_gym_memberships")
    op.drop_table("trainer_gym_memberships")
    op.drop_index("ix_trainers_created_at", table_name="trainers")
    op.drop_index("ix_trainers_email", table_name="trainers")
    op.drop_table("trainers")
