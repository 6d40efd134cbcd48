import uuid
from fastapi import APIRouter, Depends, Query

from app.core.engine import Engine
from app.core.presence import service as presence_service
from app.core.presence.schemas import ImportResultRead, PrefillRequest
from app.core.time_entries.schemas import TimeEntryRead
from app.core.timesheets import service
from app.core.timesheets.lifecycle import period_type
from app.core.timesheets.schemas import (
    TimesheetCreate, TimesheetRead, TimesheetRejectRequest,
    CompletenessRead, TimesheetAnomaliesRead, ValidationResultRead,
)
from app.core.validation.anomalies import productive_hours
from app.dependencies import get_engine, get_current_user, CurrentUser

router = APIRouter(prefix="/timesheets", tags=["timesheets"])


# ── Timesheets ────────────────────────────────────────────────────────────────

@router.post("", response_model=TimesheetRead, status_code=201)
async def create_timesheet(
    data: TimesheetCreate,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.create_timesheet(engine, current.tenant_id, current.user_id, data)


@router.get("", response_model=list[TimesheetRead])
async def list_timesheets(
    employee_id: uuid.UUID | None = Query(None),
    status: str | None = Query(None),
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.list_timesheets(engine, current.tenant_id, employee_id=employee_id, status=status)


@router.get("/{timesheet_id}", response_model=TimesheetRead)
async def get_timesheet(
    timesheet_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.get_timesheet(engine, current.tenant_id, timesheet_id)


@router.delete("/{timesheet_id}", status_code=204)
async def delete_timesheet(
    timesheet_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    await service.delete_timesheet(engine, current.tenant_id, timesheet_id, current.user_id)


@router.get("/{timesheet_id}/entries", response_model=list[TimeEntryRead])
async def list_entries(
    timesheet_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.list_timesheet_entries(engine, current.tenant_id, timesheet_id)


@router.post("/{timesheet_id}/recalculate", response_model=TimesheetRead)
async def recalculate_timesheet(
    timesheet_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.recalculate_timesheet(engine, current.tenant_id, timesheet_id)


@router.post("/{timesheet_id}/prefill", response_model=ImportResultRead)
async def prefill_timesheet(
    timesheet_id: uuid.UUID,
    data: PrefillRequest,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    """Create entries from the employee's presence records inside the period."""
    return await presence_service.prefill_from_presence(
        engine, current.tenant_id, timesheet_id, current.user_id,
        project_id=data.project_id, activity_code_id=data.activity_code_id,
        hourly_rate=data.hourly_rate,
    )


# ── State machine ─────────────────────────────────────────────────────────────

@router.post("/{timesheet_id}/submit", response_model=TimesheetRead)
async def submit_timesheet(
    timesheet_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.submit_timesheet(engine, current.tenant_id, timesheet_id, current.user_id)


@router.post("/{timesheet_id}/approve", response_model=TimesheetRead)
async def approve_timesheet(
    timesheet_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.approve_timesheet(engine, current.tenant_id, timesheet_id, current.user_id)


@router.post("/{timesheet_id}/reject", response_model=TimesheetRead)
async def reject_timesheet(
    timesheet_id: uuid.UUID,
    data: TimesheetRejectRequest,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.reject_timesheet(engine, current.tenant_id, timesheet_id, current.user_id, data.reason)


@router.post("/{timesheet_id}/lock", response_model=TimesheetRead)
async def lock_timesheet(
    timesheet_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.lock_timesheet(engine, current.tenant_id, timesheet_id, current.user_id)


@router.post("/{timesheet_id}/unlock", response_model=TimesheetRead)
async def unlock_timesheet(
    timesheet_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.unlock_timesheet(engine, current.tenant_id, timesheet_id, current.user_id)


# ── Checks ────────────────────────────────────────────────────────────────────

@router.get("/{timesheet_id}/completeness", response_model=CompletenessRead)
async def timesheet_completeness(
    timesheet_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.check_completeness(engine, current.tenant_id, timesheet_id)


@router.get("/{timesheet_id}/anomalies", response_model=TimesheetAnomaliesRead)
async def timesheet_anomalies(
    timesheet_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    sheet, anomalies, entries = await service.check_anomalies(engine, current.tenant_id, timesheet_id)
    return TimesheetAnomaliesRead(
        timesheet_id=sheet.id,
        period_type=period_type(sheet),
        anomalies=anomalies,
        productive_hours=productive_hours(entries, engine.rules),
    )


@router.get("/{timesheet_id}/closure", response_model=ValidationResultRead)
async def timesheet_closure(
    timesheet_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.check_period_closure(engine, current.tenant_id, timesheet_id)
