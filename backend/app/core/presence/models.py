import uuid
from datetime import datetime, date
from sqlalchemy import DateTime, Date, Float, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.db.base import Base, TimestampMixin, SoftDeleteMixin, TenantScopedMixin


class PresenceEntry(Base, TimestampMixin, SoftDeleteMixin, TenantScopedMixin):
    """
    Clock-in/out record for one employee and day, written by the presence system.
    Read-only here: the engine derives and reconciles time entries from it.
    status: present | late | early_leave | overtime | absent | on_leave
    """
    __tablename__ = "presence_entries"
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    employee_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    clock_in_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    clock_out_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="present")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    actual_work_hours: Mapped[float | None] = mapped_column(Float, nullable=True)
    breaks: Mapped[list["PresenceBreak"]] = relationship(
        back_populates="presence_entry", lazy="selectin", order_by="PresenceBreak.start_time",
    )
    __table_args__ = (
        UniqueConstraint("tenant_id", "employee_id", "work_date", name="uq_presence_employee_date"),
    )

    @property
    def total_break_minutes(self) -> float:
        return sum(
            (b.end_time - b.start_time).total_seconds() / 60
            for b in self.breaks if b.end_time is not None
        )

    @property
    def work_span_minutes(self) -> float:
        if self.clock_in_time is None or self.clock_out_time is None:
            return 0
        return (self.clock_out_time - self.clock_in_time).total_seconds() / 60

    @property
    def expected_work_hours(self) -> float:
        return max(0.0, self.work_span_minutes - self.total_break_minutes) / 60

    @property
    def effective_work_hours(self) -> float:
        """Hours recorded by the presence system, or span minus breaks when not yet computed."""
        if self.actual_work_hours is not None:
            return self.actual_work_hours
        return self.expected_work_hours


class PresenceBreak(Base, TimestampMixin):
    __tablename__ = "presence_breaks"
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    presence_entry_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("presence_entries.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    break_type: Mapped[str] = mapped_column(String(50), nullable=False, default="break")
    presence_entry: Mapped["PresenceEntry"] = relationship(back_populates="breaks")
