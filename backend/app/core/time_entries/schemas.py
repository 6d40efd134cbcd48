import uuid
from datetime import datetime, date
from typing import Annotated, Literal
from pydantic import BaseModel, Field, model_validator

VALID_ENTRY_STATUSES = Literal["draft", "submitted", "approved", "rejected"]


# ── Origin ────────────────────────────────────────────────────────────────────

class ManualOrigin(BaseModel):
    source: Literal["manual"] = "manual"


class PresenceOrigin(BaseModel):
    source: Literal["presence"] = "presence"
    presence_entry_id: uuid.UUID


class ImportOrigin(BaseModel):
    source: Literal["import"] = "import"
    import_reference: str | None = Field(None, max_length=255)


EntryOrigin = Annotated[ManualOrigin | PresenceOrigin | ImportOrigin, Field(discriminator="source")]


# ── Time entries ──────────────────────────────────────────────────────────────

class TimeEntryCreate(BaseModel):
    timesheet_id: uuid.UUID
    work_date: date
    duration_minutes: int | None = Field(None, ge=0)
    start_time: datetime | None = None
    end_time: datetime | None = None
    project_id: uuid.UUID | None = None
    activity_code_id: uuid.UUID | None = None
    billable: bool = False
    hourly_rate: float | None = None
    description: str
    tags: list[str] = Field(default_factory=list)
    origin: EntryOrigin = Field(default_factory=ManualOrigin)

    @model_validator(mode="after")
    def validate_times(self) -> "TimeEntryCreate":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        if self.duration_minutes is None and self.start_time is None:
            raise ValueError("duration_minutes is required when no times are given")
        return self


class TimeEntryUpdate(BaseModel):
    work_date: date | None = None
    duration_minutes: int | None = Field(None, ge=0)
    start_time: datetime | None = None
    end_time: datetime | None = None
    clear_times: bool = False
    project_id: uuid.UUID | None = None
    activity_code_id: uuid.UUID | None = None
    billable: bool | None = None
    hourly_rate: float | None = None
    description: str | None = None
    tags: list[str] | None = None

    @model_validator(mode="after")
    def validate_times(self) -> "TimeEntryUpdate":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        if self.clear_times and self.start_time is not None:
            raise ValueError("clear_times cannot be combined with new times")
        return self


class TimeEntryImportItem(TimeEntryCreate):
    """One externally sourced entry; its origin is always `import`."""
    import_reference: str | None = Field(None, max_length=255)


class TimeEntryImportRequest(BaseModel):
    entries: list[TimeEntryImportItem] = Field(..., min_length=1, max_length=500)


class RejectRequest(BaseModel):
    reason: str | None = Field(None, max_length=500)


class CopyRequest(BaseModel):
    work_date: date


class TimeEntryRead(BaseModel):
    model_config = {"from_attributes": True}
    id: uuid.UUID
    tenant_id: uuid.UUID
    timesheet_id: uuid.UUID
    employee_id: uuid.UUID
    work_date: date
    start_time: datetime | None
    end_time: datetime | None
    duration_minutes: int
    project_id: uuid.UUID | None
    activity_code_id: uuid.UUID | None
    billable: bool
    hourly_rate: float | None
    total_cost: float | None
    description: str
    tags: list[str]
    status: str
    is_editable: bool
    origin: EntryOrigin
    submitted_at: datetime | None
    approved_at: datetime | None
    rejected_at: datetime | None
    created_at: datetime


class TimeEntryWriteResult(BaseModel):
    entry: TimeEntryRead
    warnings: list[str] = Field(default_factory=list)


class EntryAnomaliesRead(BaseModel):
    entry_id: uuid.UUID
    anomalies: list[str]


class FailedImportRead(BaseModel):
    index: int
    import_reference: str | None
    error: str


class BulkImportRead(BaseModel):
    imported: list[TimeEntryRead]
    failed: list[FailedImportRead]
