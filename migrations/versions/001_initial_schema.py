"""Initial schema: tasks and claims.

Revision ID: 001
Revises: None
Create Date: 2026-10-19

For databases created with SQLModel's create_all, this migration is
stamped (not executed).
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "tasks",
        sa.Column("id", sa.VARCHAR(), nullable=False),
        sa.Column("requester_id", sa.VARCHAR(), nullable=False),
        sa.Column("title", sa.VARCHAR(), nullable=False),
        sa.Column("description", sa.VARCHAR(), nullable=True),
        sa.Column("status", sa.VARCHAR(), nullable=False, server_default="OPEN"),
        sa.Column("version", sa.INTEGER(), nullable=False, server_default="0"),
        sa.Column("max_claims", sa.INTEGER(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("version >= 0", name="ck_tasks_version_non_negative"),
        sa.CheckConstraint("max_claims > 0", name="ck_tasks_max_claims_positive"),
    )
    op.create_index("ix_tasks_requester_id", "tasks", ["requester_id"])
    op.create_index("ix_tasks_status", "tasks", ["status"])
    op.create_index("ix_tasks_created_at", "tasks", ["created_at"])

    op.create_table(
        "claims",
        sa.Column("id", sa.VARCHAR(), nullable=False),
        sa.Column("task_id", sa.VARCHAR(), nullable=False),
        sa.Column("helper_id", sa.VARCHAR(), nullable=False),
        sa.Column("fee", sa.FLOAT(), nullable=False),
        sa.Column("notes", sa.VARCHAR(length=10000), nullable=True),
        sa.Column("status", sa.VARCHAR(), nullable=False, server_default="PENDING"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["task_id"], ["tasks.id"]),
        sa.CheckConstraint("fee > 0", name="ck_claims_fee_positive"),
    )
    op.create_index("ix_claims_task_status", "claims", ["task_id", "status"])
    op.create_index("ix_claims_helper_id", "claims", ["helper_id"])
    op.create_index("ix_claims_expires_at", "claims", ["expires_at"])


def downgrade() -> None:
    op.drop_index("ix_claims_expires_at", "claims")
    op.drop_index("ix_claims_helper_id", "claims")
    op.drop_index("ix_claims_task_status", "claims")
    op.drop_table("claims")
    op.drop_index("ix_tasks_created_at", "tasks")
    op.drop_index("ix_tasks_status", "tasks")
    op.drop_index("ix_tasks_requester_id", "tasks")
    op.drop_table("tasks")
