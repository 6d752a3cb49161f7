"""Create gift_code table

Revision ID: 003
Revises: 002
Create Date: 2026-10-18

"""

from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

revision: str = "003"
down_revision: str | None = "002"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "gift_code",
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("credits", sa.Integer(), nullable=False),
        sa.Column("redeemed_by", sa.String(length=36), sa.ForeignKey("user.id"), nullable=True),
        sa.Column("redeemed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("code"),
        sa.CheckConstraint("credits > 0", name="ck_gift_code_credits_positive"),
    )
    op.create_index(op.f("ix_gift_code_redeemed_by"), "gift_code", ["redeemed_by"])


def downgrade() -> None:
    op.drop_index(op.f("ix_gift_code_redeemed_by"), table_name="gift_code")
    op.drop_table("gift_code")
