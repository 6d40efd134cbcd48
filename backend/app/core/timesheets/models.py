import uuid
from datetime import datetime, date
from sqlalchemy import DateTime, Date, Float, Index, Integer, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base, TimestampMixin, SoftDeleteMixin, TenantScopedMixin, ApprovalStampMixin

EDITABLE_TIMESHEET_STATUSES = {"draft"}


class Timesheet(Base, TimestampMixin, SoftDeleteMixin, TenantScopedMixin, ApprovalStampMixin):
    """
    Aggregate of time entries for one employee over one period.
    status: draft → submitted → approved → locked
    submitted → draft on reject, locked → approved on unlock.
    Totals are a cached snapshot; entries remain the source of truth.
    locked_at/locked_by are set only while locked.
    """
    __tablename__ = "timesheets"
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    total_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_billable_hours: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    total_cost: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    entry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    locked_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    __table_args__ = (
        Index(
            "uq_timesheet_employee_period", "tenant_id", "employee_id", "period_start",
            unique=True, postgresql_where=text("is_deleted = false"),
        ),
    )

    @property
    def is_editable(self) -> bool:
        return self.status in EDITABLE_TIMESHEET_STATUSES

    @property
    def is_deletable(self) -> bool:
        return self.status == "draft"

    def contains(self, day: date) -> bool:
        return self.period_start <= day <= self.period_end
