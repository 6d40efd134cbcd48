import uuid
from datetime import date
from pydantic import BaseModel, Field, model_validator


class ReconciliationRead(BaseModel):
    model_config = {"from_attributes": True}
    employee_id: uuid.UUID
    work_date: date
    presence_id: uuid.UUID | None
    presence_hours: float | None
    entry_hours: float
    entry_count: int
    is_consistent: bool
    discrepancies: list[str]
    suggestions: list[str]


class ConsistencyRead(BaseModel):
    model_config = {"from_attributes": True}
    employee_id: uuid.UUID
    start_date: date
    end_date: date
    is_consistent: bool
    days_checked: int
    inconsistent_days: int
    days: list[ReconciliationRead]


class SyncRequest(BaseModel):
    start_date: date
    end_date: date
    offset: int = Field(0, ge=0)
    page_size: int | None = Field(None, ge=1, le=5000)

    @model_validator(mode="after")
    def validate_range(self) -> "SyncRequest":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date")
        return self


class SyncResultRead(BaseModel):
    model_config = {"from_attributes": True}
    success: bool
    records_processed: int
    created: int
    updated: int
    skipped: int
    errors: list[str]
    has_more: bool
    next_offset: int | None
