from fastapi import APIRouter, Depends

from app.core.engine import Engine
from app.core.time_entries.lifecycle import new_entry
from app.core.validation.overlap import check_overlap
from app.core.validation.schemas import (
    EntryValidationRequest, EntryValidationRead, OverlapRequest, OverlapRead, ConflictRead,
)
from app.core.validation.service import validate_time_entry
from app.dependencies import get_engine, get_current_user, CurrentUser

router = APIRouter(prefix="/validation", tags=["validation"])


@router.post("/time-entries", response_model=EntryValidationRead)
async def validate_entry(
    data: EntryValidationRequest,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    """Dry run of the checks applied on create/update. Nothing is saved."""
    candidate = new_entry(
        tenant_id=current.tenant_id,
        timesheet_id=None,
        employee_id=data.employee_id,
        work_date=data.work_date,
        description=data.description,
        duration_minutes=data.duration_minutes,
        start_time=data.start_time,
        end_time=data.end_time,
        project_id=data.project_id,
        activity_code_id=data.activity_code_id,
        billable=data.billable,
        hourly_rate=data.hourly_rate,
        tags=data.tags,
    )
    if data.entry_id:
        candidate.id = data.entry_id
    return await validate_time_entry(engine, current.tenant_id, candidate)


@router.post("/overlap", response_model=OverlapRead)
async def overlap(
    data: OverlapRequest,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    conflicts = await check_overlap(
        engine.entries, current.tenant_id, data.employee_id, data.work_date,
        data.start_time, data.end_time, exclude_entry_id=data.exclude_entry_id,
    )
    return OverlapRead(
        has_conflicts=bool(conflicts),
        conflicts=[ConflictRead.model_validate(c) for c in conflicts],
    )
