"""Initial schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-16 00:00:00
"""
from typing import Sequence, Union
import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def _approval_stamps() -> list[sa.Column]:
    return [
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("submitted_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("approved_by", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_by", postgresql.UUID(as_uuid=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default="active"),
        sa.Column("timezone", sa.String(64), nullable=False, server_default="UTC"),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slug"),
    )

    # ── Projects / activity codes ────────────────────────────────────────────
    op.create_table(
        "projects",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="active"),
        sa.Column("billable", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("requires_activity_code", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("default_hourly_rate", sa.Float, nullable=True),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "code", name="uq_project_tenant_code"),
    )
    op.create_index("ix_projects_tenant_id", "projects", ["tenant_id"])

    op.create_table(
        "project_assignments",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("employee_id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "employee_id", name="uq_project_assignment"),
    )
    op.create_index("ix_project_assignments_tenant_id", "project_assignments", ["tenant_id"])
    op.create_index("ix_project_assignments_project_id", "project_assignments", ["project_id"])
    op.create_index("ix_project_assignments_employee_id", "project_assignments", ["employee_id"])

    op.create_table(
        "activity_codes",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("code", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("billable", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="true"),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "code", name="uq_activity_code_tenant_code"),
    )
    op.create_index("ix_activity_codes_tenant_id", "activity_codes", ["tenant_id"])

    op.create_table(
        "project_activity_codes",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("activity_code_id", postgresql.UUID(as_uuid=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["activity_code_id"], ["activity_codes.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("project_id", "activity_code_id", name="uq_project_activity_code"),
    )
    op.create_index("ix_project_activity_codes_project_id", "project_activity_codes", ["project_id"])

    # ── Timesheets ───────────────────────────────────────────────────────────
    op.create_table(
        "timesheets",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("employee_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("period_start", sa.Date, nullable=False),
        sa.Column("period_end", sa.Date, nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default="draft"),
        sa.Column("total_hours", sa.Float, nullable=False, server_default="0"),
        sa.Column("total_billable_hours", sa.Float, nullable=False, server_default="0"),
        sa.Column("total_cost", sa.Float, nullable=False, server_default="0"),
        sa.Column("entry_count", sa.Integer, nullable=False, server_default="0"),
        sa.Column("rejection_reason", sa.Text, nullable=True),
        sa.Column("locked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("locked_by", postgresql.UUID(as_uuid=True), nullable=True),
        *_approval_stamps(),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("period_end >= period_start", name="ck_timesheet_period"),
    )
    op.create_index("ix_timesheets_tenant_id", "timesheets", ["tenant_id"])
    op.create_index("ix_timesheets_employee_id", "timesheets", ["employee_id"])
    op.create_index(
        "uq_timesheet_employee_period", "timesheets", ["tenant_id", "employee_id", "period_start"],
        unique=True, postgresql_where=sa.text("is_deleted = false"),
    )

    # ── Presence (written by the presence system) ────────────────────────────
    op.create_table(
        "presence_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("employee_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("work_date", sa.Date, nullable=False),
        sa.Column("clock_in_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("clock_out_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="present"),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("actual_work_hours", sa.Float, nullable=True),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "employee_id", "work_date", name="uq_presence_employee_date"),
    )
    op.create_index("ix_presence_entries_tenant_id", "presence_entries", ["tenant_id"])
    op.create_index("ix_presence_entries_employee_id", "presence_entries", ["employee_id"])
    op.create_index("ix_presence_entries_tenant_date", "presence_entries", ["tenant_id", "work_date", "id"])

    op.create_table(
        "presence_breaks",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("presence_entry_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("break_type", sa.String(50), nullable=False, server_default="break"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["presence_entry_id"], ["presence_entries.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_presence_breaks_presence_entry_id", "presence_breaks", ["presence_entry_id"])

    # ── Time entries ─────────────────────────────────────────────────────────
    op.create_table(
        "time_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("timesheet_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("employee_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("work_date", sa.Date, nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("duration_minutes", sa.Integer, nullable=False),
        sa.Column("project_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("activity_code_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("billable", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("hourly_rate", sa.Float, nullable=True),
        sa.Column("total_cost", sa.Float, nullable=True),
        sa.Column("description", sa.Text, nullable=False),
        sa.Column("tags", postgresql.JSONB, nullable=False, server_default=sa.text("'[]'::jsonb")),
        sa.Column("status", sa.String(50), nullable=False, server_default="draft"),
        sa.Column("source", sa.String(20), nullable=False, server_default="manual"),
        sa.Column("presence_entry_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("import_reference", sa.String(255), nullable=True),
        *_approval_stamps(),
        sa.Column("is_deleted", sa.Boolean, nullable=False, server_default="false"),
        *_timestamps(),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["timesheet_id"], ["timesheets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["project_id"], ["projects.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["activity_code_id"], ["activity_codes.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["presence_entry_id"], ["presence_entries.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("duration_minutes >= 0 AND duration_minutes <= 1440", name="ck_time_entry_duration"),
        sa.CheckConstraint("source IN ('manual', 'presence', 'import')", name="ck_time_entry_source"),
    )
    op.create_index("ix_time_entries_tenant_id", "time_entries", ["tenant_id"])
    op.create_index("ix_time_entries_timesheet_id", "time_entries", ["timesheet_id"])
    op.create_index("ix_time_entries_employee_id", "time_entries", ["employee_id"])
    op.create_index("ix_time_entries_project_id", "time_entries", ["project_id"])
    op.create_index("ix_time_entries_presence_entry_id", "time_entries", ["presence_entry_id"])
    op.create_index("ix_time_entries_employee_date", "time_entries", ["tenant_id", "employee_id", "work_date"])

    # ── Audit ────────────────────────────────────────────────────────────────
    op.create_table(
        "audit_log",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("tenant_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("action", sa.String(100), nullable=False),
        sa.Column("resource_type", sa.String(100), nullable=False),
        sa.Column("resource_id", sa.String(255), nullable=True),
        sa.Column("detail", postgresql.JSONB, nullable=True),
        sa.Column("ip_address", sa.String(45), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["tenant_id"], ["tenants.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_audit_log_tenant_id", "audit_log", ["tenant_id"])
    op.create_index("ix_audit_log_user_id", "audit_log", ["user_id"])
    op.create_index("ix_audit_log_tenant_created", "audit_log", ["tenant_id", "created_at"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("time_entries")
    op.drop_table("presence_breaks")
    op.drop_table("presence_entries")
    op.drop_table("timesheets")
    op.drop_table("project_activity_codes")
    op.drop_table("activity_codes")
    op.drop_table("project_assignments")
    op.drop_table("projects")
    op.drop_table("tenants")
