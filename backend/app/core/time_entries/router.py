import uuid
from datetime import date
from fastapi import APIRouter, Depends, Query

from app.core.engine import Engine
from app.core.time_entries import service
from app.core.time_entries.repository import TimeEntryQuery
from app.core.time_entries.schemas import (
    TimeEntryCreate, TimeEntryUpdate, TimeEntryRead, TimeEntryWriteResult,
    RejectRequest, CopyRequest, EntryAnomaliesRead,
    TimeEntryImportRequest, BulkImportRead, FailedImportRead,
)
from app.dependencies import get_engine, get_current_user, CurrentUser

router = APIRouter(prefix="/time-entries", tags=["time-entries"])


@router.post("", response_model=TimeEntryWriteResult, status_code=201)
async def create_time_entry(
    data: TimeEntryCreate,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    saved = await service.create_time_entry(engine, current.tenant_id, current.user_id, data)
    return TimeEntryWriteResult(entry=TimeEntryRead.model_validate(saved.entry), warnings=saved.warnings)


@router.get("", response_model=list[TimeEntryRead])
async def search_time_entries(
    employee_id: uuid.UUID | None = Query(None),
    timesheet_id: uuid.UUID | None = Query(None),
    date_from: date | None = Query(None),
    date_to: date | None = Query(None),
    status: list[str] | None = Query(None),
    project_id: uuid.UUID | None = Query(None),
    billable: bool | None = Query(None),
    source: str | None = Query(None),
    q: str | None = Query(None, description="Description or tag substring"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    query = TimeEntryQuery(
        employee_id=employee_id, timesheet_id=timesheet_id,
        date_from=date_from, date_to=date_to, statuses=tuple(status or ()),
        project_id=project_id, billable=billable, source=source,
        text=q, limit=limit, offset=offset,
    )
    return await service.search_time_entries(engine, current.tenant_id, query)


@router.post("/import", response_model=BulkImportRead)
async def import_time_entries(
    data: TimeEntryImportRequest,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    result = await service.bulk_import_time_entries(engine, current.tenant_id, current.user_id, data.entries)
    return BulkImportRead(
        imported=[TimeEntryRead.model_validate(e) for e in result.imported],
        failed=[FailedImportRead(index=f.index, import_reference=f.import_reference, error=f.error) for f in result.failed],
    )


@router.get("/{entry_id}", response_model=TimeEntryRead)
async def get_time_entry(
    entry_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.get_time_entry(engine, current.tenant_id, entry_id)


@router.patch("/{entry_id}", response_model=TimeEntryWriteResult)
async def update_time_entry(
    entry_id: uuid.UUID,
    data: TimeEntryUpdate,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    saved = await service.update_time_entry(engine, current.tenant_id, entry_id, current.user_id, data)
    return TimeEntryWriteResult(entry=TimeEntryRead.model_validate(saved.entry), warnings=saved.warnings)


@router.delete("/{entry_id}", status_code=204)
async def delete_time_entry(
    entry_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    await service.delete_time_entry(engine, current.tenant_id, entry_id, current.user_id)


@router.post("/{entry_id}/copy", response_model=TimeEntryWriteResult, status_code=201)
async def copy_time_entry(
    entry_id: uuid.UUID,
    data: CopyRequest,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    saved = await service.copy_time_entry(engine, current.tenant_id, entry_id, current.user_id, data.work_date)
    return TimeEntryWriteResult(entry=TimeEntryRead.model_validate(saved.entry), warnings=saved.warnings)


@router.get("/{entry_id}/anomalies", response_model=EntryAnomaliesRead)
async def time_entry_anomalies(
    entry_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    anomalies = await service.entry_anomalies(engine, current.tenant_id, entry_id)
    return EntryAnomaliesRead(entry_id=entry_id, anomalies=anomalies)


# ── State machine ─────────────────────────────────────────────────────────────

@router.post("/{entry_id}/submit", response_model=TimeEntryRead)
async def submit_time_entry(
    entry_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.submit_time_entry(engine, current.tenant_id, entry_id, current.user_id)


@router.post("/{entry_id}/approve", response_model=TimeEntryRead)
async def approve_time_entry(
    entry_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.approve_time_entry(engine, current.tenant_id, entry_id, current.user_id)


@router.post("/{entry_id}/reject", response_model=TimeEntryRead)
async def reject_time_entry(
    entry_id: uuid.UUID,
    data: RejectRequest,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.reject_time_entry(engine, current.tenant_id, entry_id, current.user_id, data.reason)


@router.post("/{entry_id}/return-to-draft", response_model=TimeEntryRead)
async def return_time_entry_to_draft(
    entry_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.return_time_entry_to_draft(engine, current.tenant_id, entry_id, current.user_id)
