"""Rewards: points ledger, badge catalog, earned badges.

Revision ID: 002_reward_tables
Revises: 001_baseline
Create Date: 2026-10-12
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "002_reward_tables"
down_revision: str | None = "001_baseline"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Reward ledger ---
    op.create_table(
        "reward_history",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("activity_type", sa.String(16), nullable=False),
        sa.Column("activity_id", sa.String(128), nullable=False),
        sa.Column("points", sa.Integer, nullable=False),
        sa.Column("awarded_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.UniqueConstraint("user_id", "activity_type", "activity_id", name="uq_reward_history_activity"),
        sa.CheckConstraint("activity_type IN ('lesson', 'course')", name="ck_reward_history_activity_type"),
    )
    op.create_index("idx_reward_history_user_awarded", "reward_history", ["user_id", "awarded_at"])

    # --- Badge catalog ---
    op.create_table(
        "badges",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("key", sa.String(64), unique=True, nullable=False),
        sa.Column("name", sa.String(128), nullable=False),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("icon", sa.String(64), nullable=True),
    )

    # --- Earned badges ---
    op.create_table(
        "user_badges",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.BigInteger, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("badge_id", sa.Integer, sa.ForeignKey("badges.id"), nullable=False),
        sa.Column("awarded_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("NOW()")),
        sa.UniqueConstraint("user_id", "badge_id", name="uq_user_badges_user_badge"),
    )
    op.create_index("idx_user_badges_user", "user_badges", ["user_id"])


def downgrade() -> None:
    op.drop_index("idx_user_badges_user", table_name="user_badges")
    op.drop_table("user_badges")
    op.drop_table("badges")
    op.drop_index("idx_reward_history_user_awarded", table_name="reward_history")
    op.drop_table("reward_history")
