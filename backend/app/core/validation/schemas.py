import uuid
from datetime import datetime, date
from pydantic import BaseModel, Field, model_validator


class EntryValidationRequest(BaseModel):
    """A candidate entry checked without saving. `entry_id` excludes a stored entry from overlap and weekly sums."""
    entry_id: uuid.UUID | None = None
    employee_id: uuid.UUID
    work_date: date
    duration_minutes: int | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    project_id: uuid.UUID | None = None
    activity_code_id: uuid.UUID | None = None
    billable: bool = False
    hourly_rate: float | None = None
    description: str = ""
    tags: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_times(self) -> "EntryValidationRequest":
        if (self.start_time is None) != (self.end_time is None):
            raise ValueError("start_time and end_time must be given together")
        return self


class OverlapRequest(BaseModel):
    employee_id: uuid.UUID
    work_date: date
    start_time: datetime
    end_time: datetime
    exclude_entry_id: uuid.UUID | None = None


class ConflictRead(BaseModel):
    model_config = {"from_attributes": True}
    conflict_type: str
    existing_entry_id: uuid.UUID
    conflict_details: str
    suggested_resolution: str


class OverlapRead(BaseModel):
    has_conflicts: bool
    conflicts: list[ConflictRead]


class EntryValidationRead(BaseModel):
    model_config = {"from_attributes": True}
    is_valid: bool
    errors: list[str]
    warnings: list[str]
