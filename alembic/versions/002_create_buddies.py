"""Create buddies table.

Revision ID: 002
Revises: 001
Create Date: 2026-06-21

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "buddies",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("buddy_id", sa.String(64), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("pair_key", sa.String(140), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["buddy_id"], ["profiles.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("pair_key", name="uq_buddies_pair_key"),
        sa.CheckConstraint("status IN ('pending', 'accepted', 'blocked')", name="ck_buddies_status"),
        sa.CheckConstraint("user_id <> buddy_id", name="ck_buddies_not_self"),
    )
    op.create_index(op.f("ix_buddies_user_id"), "buddies", ["user_id"], unique=False)
    op.create_index(op.f("ix_buddies_buddy_id"), "buddies", ["buddy_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_buddies_buddy_id"), table_name="buddies")
    op.drop_index(op.f("ix_buddies_user_id"), table_name="buddies")
    op.drop_table("buddies")
