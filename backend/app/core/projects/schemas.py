import uuid
from datetime import datetime
from typing import Literal
from pydantic import BaseModel, Field

VALID_PROJECT_STATUSES = Literal["active", "on_hold", "completed", "cancelled"]


class ProjectCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., max_length=255)
    description: str | None = None
    status: VALID_PROJECT_STATUSES = "active"
    billable: bool = True
    requires_activity_code: bool = False
    default_hourly_rate: float | None = Field(None, ge=0)


class ProjectRead(BaseModel):
    model_config = {"from_attributes": True}
    id: uuid.UUID
    tenant_id: uuid.UUID
    code: str
    name: str
    description: str | None
    status: str
    billable: bool
    requires_activity_code: bool
    default_hourly_rate: float | None
    created_at: datetime


class AssignmentCreate(BaseModel):
    employee_id: uuid.UUID


class ActivityCodeCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., max_length=255)
    billable: bool = True
    is_active: bool = True
    project_ids: list[uuid.UUID] = Field(default_factory=list)


class ActivityCodeRead(BaseModel):
    model_config = {"from_attributes": True}
    id: uuid.UUID
    tenant_id: uuid.UUID
    code: str
    name: str
    billable: bool
    is_active: bool
    created_at: datetime
