import uuid
from fastapi import APIRouter, Depends

from app.core.engine import Engine
from app.core.presence import service
from app.core.presence.schemas import ConvertRequest, ImportRequest, ImportResultRead, PresenceRead
from app.core.time_entries.schemas import TimeEntryRead
from app.dependencies import get_engine, get_current_user, CurrentUser

router = APIRouter(prefix="/presence", tags=["presence"])


@router.get("/{presence_id}", response_model=PresenceRead)
async def get_presence(
    presence_id: uuid.UUID,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.get_presence(engine, current.tenant_id, presence_id)


@router.post("/{presence_id}/convert", response_model=list[TimeEntryRead], status_code=201)
async def convert_presence(
    presence_id: uuid.UUID,
    data: ConvertRequest,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.convert_presence(
        engine, current.tenant_id, presence_id, current.user_id, data.timesheet_id,
        project_id=data.project_id, activity_code_id=data.activity_code_id,
        hourly_rate=data.hourly_rate,
    )


@router.post("/import", response_model=ImportResultRead)
async def import_presence(
    data: ImportRequest,
    engine: Engine = Depends(get_engine),
    current: CurrentUser = Depends(get_current_user),
):
    return await service.import_from_presence(
        engine, current.tenant_id, data.employee_id, data.start_date, data.end_date, current.user_id,
        project_id=data.project_id, activity_code_id=data.activity_code_id,
        hourly_rate=data.hourly_rate,
    )
