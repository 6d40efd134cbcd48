import uuid
from fastapi import APIRouter, Depends, Query

from app.core.calendar import parse_iso_date
from app.core.engine import Engine
from app.core.reconciliation import service
from app.core.reconciliation.schemas import ReconciliationRead, ConsistencyRead, SyncRequest, SyncResultRead
from app.dependencies import get_engine, get_current_user, CurrentUser

router = APIRouter(prefix="/reconciliation", tags=["reconciliation"])


@router.get("", response_model=ReconciliationRead)
async def reconcile_day(
    employee_id: uuid.UUID = Query(...),
    date: str = Query(..., description="YYYY-MM-DD"),
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.reconcile(engine, current.tenant_id, employee_id, parse_iso_date(date))


@router.get("/range", response_model=ConsistencyRead)
async def reconcile_range(
    employee_id: uuid.UUID = Query(...),
    start: str = Query(..., description="YYYY-MM-DD"),
    end: str = Query(..., description="YYYY-MM-DD"),
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.validate_presence_consistency(
        engine, current.tenant_id, employee_id, parse_iso_date(start), parse_iso_date(end),
    )


@router.post("/sync", response_model=SyncResultRead)
async def sync_presence(
    data: SyncRequest,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    """One page of a tenant-wide presence sync; repeat with `next_offset` while `has_more`."""
    return await service.sync_presence_range(
        engine, current.tenant_id, data.start_date, data.end_date,
        offset=data.offset, page_size=data.page_size, user_id=current.user_id,
    )
