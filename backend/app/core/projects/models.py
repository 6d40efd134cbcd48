import uuid
from sqlalchemy import Boolean, Float, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from app.db.base import Base, TimestampMixin, SoftDeleteMixin, TenantScopedMixin


class Project(Base, TimestampMixin, SoftDeleteMixin, TenantScopedMixin):
    """
    Project that time can be booked against.
    status: active | on_hold | completed | cancelled
    Only active projects accept time entries.
    """
    __tablename__ = "projects"
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(50), nullable=False, default="active")
    billable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    requires_activity_code: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    default_hourly_rate: Mapped[float | None] = mapped_column(Float, nullable=True)
    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_project_tenant_code"),)


class ProjectAssignment(Base, TimestampMixin, TenantScopedMixin):
    """Employee allowed to book time on a project."""
    __tablename__ = "project_assignments"
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    employee_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    __table_args__ = (UniqueConstraint("project_id", "employee_id", name="uq_project_assignment"),)


class ActivityCode(Base, TimestampMixin, SoftDeleteMixin, TenantScopedMixin):
    __tablename__ = "activity_codes"
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    billable: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    __table_args__ = (UniqueConstraint("tenant_id", "code", name="uq_activity_code_tenant_code"),)


class ProjectActivityCode(Base, TimestampMixin):
    """Activity codes associated with a project."""
    __tablename__ = "project_activity_codes"
    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    project_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    activity_code_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), ForeignKey("activity_codes.id", ondelete="CASCADE"), nullable=False)
    __table_args__ = (UniqueConstraint("project_id", "activity_code_id", name="uq_project_activity_code"),)
