import uuid
from datetime import datetime, date
from sqlalchemy import (
    Boolean, DateTime, Date, Float, String, Text,
    ForeignKey, Integer, Index,
)
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base, TimestampMixin, SoftDeleteMixin, TenantScopedMixin, ApprovalStampMixin

ENTRY_SOURCES = ("manual", "presence", "import")
EDITABLE_ENTRY_STATUSES = {"draft", "rejected"}


class TimeEntry(Base, TimestampMixin, SoftDeleteMixin, TenantScopedMixin, ApprovalStampMixin):
    """
    One recorded work interval, owned by exactly one timesheet.
    status: draft → submitted → approved | rejected, rejected → draft
    duration_minutes is always set; start_time/end_time are optional but come as a pair.
    Origin is a fixed struct per source:
      manual   – no extra fields
      presence – presence_entry_id (non-owning back-reference)
      import   – import_reference
    """
    __tablename__ = "time_entries"
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    timesheet_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("timesheets.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    duration_minutes: Mapped[int] = mapped_column(Integer, nullable=False)
    project_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("projects.id", ondelete="SET NULL"), nullable=True, index=True)
    activity_code_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("activity_codes.id", ondelete="SET NULL"), nullable=True)
    billable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    hourly_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    total_cost: Mapped[float | None] = mapped_column(Float, nullable=True)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    tags: Mapped[list[str]] = mapped_column(JSONB, nullable=False, default=list)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="draft")
    # Origin
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="manual")
    presence_entry_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), ForeignKey("presence_entries.id", ondelete="SET NULL"), nullable=True, index=True)
    import_reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    __table_args__ = (
        Index("ix_time_entries_employee_date", "tenant_id", "employee_id", "work_date"),
    )

    @property
    def is_editable(self) -> bool:
        return self.status in EDITABLE_ENTRY_STATUSES

    @property
    def duration_hours(self) -> float:
        return self.duration_minutes / 60

    @property
    def has_times(self) -> bool:
        return self.start_time is not None and self.end_time is not None

    @property
    def origin(self) -> dict:
        if self.source == "presence":
            return {"source": "presence", "presence_entry_id": self.presence_entry_id}
        if self.source == "import":
            return {"source": "import", "import_reference": self.import_reference}
        return {"source": "manual"}
