import uuid
from datetime import datetime, date
from pydantic import BaseModel, Field, model_validator
from typing import Literal

VALID_TIMESHEET_STATUSES = Literal["draft", "submitted", "approved", "locked"]


# ── Timesheet ─────────────────────────────────────────────────────────────────

class TimesheetCreate(BaseModel):
    employee_id: uuid.UUID
    period_start: date
    period_end: date

    @model_validator(mode="after")
    def validate_period(self) -> "TimesheetCreate":
        if self.period_end < self.period_start:
            raise ValueError("period_end must be on or after period_start")
        return self


class TimesheetRead(BaseModel):
    model_config = {"from_attributes": True}
    id: uuid.UUID
    tenant_id: uuid.UUID
    employee_id: uuid.UUID
    period_start: date
    period_end: date
    status: str
    total_hours: float
    total_billable_hours: float
    total_cost: float
    entry_count: int
    is_editable: bool
    rejection_reason: str | None
    submitted_at: datetime | None
    submitted_by: uuid.UUID | None
    approved_at: datetime | None
    approved_by: uuid.UUID | None
    locked_at: datetime | None
    locked_by: uuid.UUID | None
    created_at: datetime


class TimesheetRejectRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=500)


# ── Checks ────────────────────────────────────────────────────────────────────

class CompletenessRead(BaseModel):
    model_config = {"from_attributes": True}
    is_complete: bool
    missing_days: list[date]
    errors: list[str]
    warnings: list[str]


class TimesheetAnomaliesRead(BaseModel):
    timesheet_id: uuid.UUID
    period_type: str
    anomalies: list[str]
    productive_hours: float


class ValidationResultRead(BaseModel):
    model_config = {"from_attributes": True}
    is_valid: bool
    errors: list[str]
    warnings: list[str]
