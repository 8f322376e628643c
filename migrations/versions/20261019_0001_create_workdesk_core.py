"""create workdesk core tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _uuid_pk() -> sa.Column:
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _timestamp(name: str, *, nullable: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=None if nullable else sa.text("NOW()"),
    )


def upgrade() -> None:
    op.create_table(
        "teams",
        _uuid_pk(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=20), nullable=True),
        _timestamp("created_at"),
    )

    op.create_table(
        "users",
        _uuid_pk(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False, unique=True),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="USER"),
        sa.Column("team_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"], ondelete="SET NULL"),
        sa.CheckConstraint(
            "role IN ('USER', 'AGENT', 'MANAGER', 'ADMIN')",
            name="ck_users_role_valid",
        ),
    )

    op.create_table(
        "categories",
        _uuid_pk(),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=20), nullable=True),
    )

    op.create_table(
        "projects",
        _uuid_pk(),
        sa.Column("name", sa.String(length=200), nullable=False),
    )

    op.create_table(
        "work_item_counters",
        sa.Column("type", sa.String(length=10), primary_key=True),
        sa.Column("last_value", sa.Integer(), nullable=False),
    )

    op.create_table(
        "work_items",
        _uuid_pk(),
        sa.Column("type", sa.String(length=10), nullable=False),
        sa.Column("ticket_number", sa.String(length=20), nullable=True, unique=True),
        sa.Column("task_number", sa.String(length=20), nullable=True, unique=True),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="OPEN"),
        sa.Column("priority", sa.String(length=20), nullable=False, server_default="MEDIUM"),
        sa.Column("assignment_mode", sa.String(length=20), nullable=True),
        sa.Column("team_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("assignee_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("creator_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("category_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("estimated_hours", sa.Float(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        _timestamp("completed_at", nullable=True),
        sa.ForeignKeyConstraint(["team_id"], ["teams.id"]),
        sa.ForeignKeyConstraint(["assignee_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["creator_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["category_id"], ["categories.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="SET NULL"),
        sa.CheckConstraint("type IN ('TICKET', 'TASK')", name="ck_work_items_type_valid"),
        sa.CheckConstraint(
            "status IN ('OPEN', 'IN_PROGRESS', 'ON_HOLD', 'RESOLVED', 'CLOSED', 'CANCELLED')",
            name="ck_work_items_status_valid",
        ),
        sa.CheckConstraint(
            "priority IN ('LOW', 'MEDIUM', 'HIGH', 'CRITICAL')",
            name="ck_work_items_priority_valid",
        ),
        sa.CheckConstraint(
            "(type = 'TICKET' AND ticket_number IS NOT NULL AND task_number IS NULL) OR "
            "(type = 'TASK' AND task_number IS NOT NULL AND ticket_number IS NULL)",
            name="ck_work_items_number_matches_type",
        ),
        sa.CheckConstraint(
            "(assignment_mode IS NULL AND team_id IS NULL AND assignee_id IS NULL) OR "
            "(assignment_mode = 'team' AND team_id IS NOT NULL AND assignee_id IS NULL) OR "
            "(assignment_mode = 'individuals' AND team_id IS NULL)",
            name="ck_work_items_assignment_mode_exclusive",
        ),
    )

    op.create_table(
        "work_item_assignees",
        sa.Column("work_item_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("assigned_by", postgresql.UUID(as_uuid=True), nullable=True),
        _timestamp("assigned_at"),
        sa.ForeignKeyConstraint(["work_item_id"], ["work_items.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["assigned_by"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("work_item_id", "user_id", name="pk_work_item_assignees"),
    )

    op.create_table(
        "activity_logs",
        _uuid_pk(),
        sa.Column("work_item_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column(
            "changes",
            postgresql.JSONB(),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["work_item_id"], ["work_items.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    )

    op.create_table(
        "notifications",
        _uuid_pk(),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("link", sa.String(length=255), nullable=True),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )

    op.create_table(
        "time_logs",
        _uuid_pk(),
        sa.Column("work_item_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        _timestamp("started_at"),
        _timestamp("ended_at", nullable=True),
        sa.Column("duration_mins", sa.Integer(), nullable=True),
        sa.Column("is_running", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["work_item_id"], ["work_items.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "(is_running AND ended_at IS NULL) OR (NOT is_running AND ended_at IS NOT NULL)",
            name="ck_time_logs_running_matches_end",
        ),
    )

    op.create_table(
        "comments",
        _uuid_pk(),
        sa.Column("work_item_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("is_internal", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["work_item_id"], ["work_items.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    )

    op.create_index("idx_work_items_type_created", "work_items", ["type", "created_at"])
    op.create_index("idx_work_items_team_id", "work_items", ["team_id"])
    op.create_index("idx_work_items_creator_id", "work_items", ["creator_id"])
    op.create_index("idx_work_item_assignees_user_id", "work_item_assignees", ["user_id"])
    op.create_index(
        "idx_activity_logs_work_item_created",
        "activity_logs",
        ["work_item_id", "created_at"],
    )
    op.create_index("idx_notifications_user_id", "notifications", ["user_id"])
    op.execute(
        "CREATE UNIQUE INDEX uk_time_logs_one_running_per_user "
        "ON time_logs (user_id) WHERE is_running"
    )


def downgrade() -> None:
    op.execute("DROP INDEX IF EXISTS uk_time_logs_one_running_per_user")
    op.drop_index("idx_notifications_user_id", table_name="notifications")
    op.drop_index("idx_activity_logs_work_item_created", table_name="activity_logs")
    op.drop_index("idx_work_item_assignees_user_id", table_name="work_item_assignees")
    op.drop_index("idx_work_items_creator_id", table_name="work_items")
    op.drop_index("idx_work_items_team_id", table_name="work_items")
    op.drop_index("idx_work_items_type_created", table_name="work_items")

    op.drop_table("comments")
    op.drop_table("time_logs")
    op.drop_table("notifications")
    op.drop_table("activity_logs")
    op.drop_table("work_item_assignees")
    op.drop_table("work_items")
    op.drop_table("work_item_counters")
    op.drop_table("projects")
    op.drop_table("categories")
    op.drop_table("users")
    op.drop_table("teams")
