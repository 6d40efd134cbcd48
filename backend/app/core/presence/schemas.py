import uuid
from datetime import datetime, date
from pydantic import BaseModel, Field, model_validator


class ConversionDefaults(BaseModel):
    project_id: uuid.UUID | None = None
    activity_code_id: uuid.UUID | None = None
    hourly_rate: float | None = Field(None, ge=0)


class ConvertRequest(ConversionDefaults):
    timesheet_id: uuid.UUID | None = None


class PrefillRequest(ConversionDefaults):
    pass


class ImportRequest(ConversionDefaults):
    employee_id: uuid.UUID
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def validate_range(self) -> "ImportRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class ImportResultRead(BaseModel):
    model_config = {"from_attributes": True}
    timesheet_id: uuid.UUID | None
    imported: int
    skipped: int
    errors: list[str]


class PresenceBreakRead(BaseModel):
    model_config = {"from_attributes": True}
    start_time: datetime
    end_time: datetime | None
    break_type: str


class PresenceRead(BaseModel):
    model_config = {"from_attributes": True}
    id: uuid.UUID
    employee_id: uuid.UUID
    work_date: date
    clock_in_time: datetime | None
    clock_out_time: datetime | None
    status: str
    notes: str | None
    breaks: list[PresenceBreakRead]
    effective_work_hours: float
