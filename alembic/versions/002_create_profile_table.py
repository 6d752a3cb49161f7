"""Create profile table

Revision ID: 002
Revises: 001
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "profile",
        sa.Column("id", sa.String(length=36), sa.ForeignKey("user.id", ondelete="CASCADE"), nullable=False),
        sa.Column("email", sa.String(length=256), nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False, server_default="25"),
        sa.Column("current_plan", sa.String(length=32), nullable=False, server_default="free"),
        sa.Column("has_purchased_app", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("cloud_sync_enabled", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("auto_cloud_sync", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("deletion_policy_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("plan_selected", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("credits >= 0", name="ck_profile_credits_non_negative"),
        sa.CheckConstraint("deletion_policy_days >= 0", name="ck_profile_deletion_policy_non_negative"),
    )


def downgrade() -> None:
    op.drop_table("profile")
