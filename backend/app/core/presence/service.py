import logging
import uuid
from dataclasses import dataclass, field
from datetime import date

from app.core.engine import Engine
from app.core.presence.converter import convert_presence_to_entries, weekly_draft_timesheet
from app.core.presence.models import PresenceEntry
from app.core.time_entries.models import TimeEntry
from app.core.timesheets import lifecycle as sheet_lifecycle
from app.core.timesheets.models import Timesheet
from app.core.timesheets.service import get_or_create_timesheet, get_timesheet, refresh_totals
from app.exceptions import DomainError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    timesheet_id: uuid.UUID | None = None
    imported: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)


async def get_presence(engine: Engine, tenant_id: uuid.UUID, presence_id: uuid.UUID) -> PresenceEntry:
    presence = await engine.presence.find_by_id(tenant_id, presence_id)
    if not presence:
        raise NotFoundError("Presence entry not found")
    return presence


async def convert_presence(
    engine: Engine,
    tenant_id: uuid.UUID,
    presence_id: uuid.UUID,
    converted_by: uuid.UUID,
    timesheet_id: uuid.UUID | None = None,
    *,
    project_id: uuid.UUID | None = None,
    activity_code_id: uuid.UUID | None = None,
    hourly_rate: float | None = None,
) -> list[TimeEntry]:
    """Convert one presence record into entries on the given or the weekly draft timesheet."""
    presence = await get_presence(engine, tenant_id, presence_id)
    if presence.clock_in_time is None or presence.clock_out_time is None:
        raise ValidationError("Presence entry must have both clock in and clock out times")

    if timesheet_id:
        sheet = await get_timesheet(engine, tenant_id, timesheet_id, for_update=True)
        sheet_lifecycle.ensure_editable(sheet)
        if sheet.employee_id != presence.employee_id or not sheet.contains(presence.work_date):
            raise ValidationError("Timesheet does not cover this presence entry")
    else:
        sheet = await weekly_draft_timesheet(engine, tenant_id, presence, converted_by)

    entries = await convert_presence_to_entries(
        engine, tenant_id, presence, sheet,
        project_id=project_id, activity_code_id=activity_code_id,
        hourly_rate=hourly_rate, created_by=converted_by,
    )
    await refresh_totals(engine, tenant_id, sheet)

    await engine.audit.record(
        tenant_id=tenant_id, user_id=converted_by,
        action="presence.convert", resource_type="presence_entry",
        resource_id=str(presence.id),
        detail={"timesheet_id": str(sheet.id), "entries_created": len(entries)},
    )
    return entries


async def _import_into(
    engine: Engine,
    tenant_id: uuid.UUID,
    sheet: Timesheet,
    imported_by: uuid.UUID,
    project_id: uuid.UUID | None,
    activity_code_id: uuid.UUID | None,
    hourly_rate: float | None,
) -> ImportResult:
    sheet_lifecycle.ensure_editable(sheet)
    result = ImportResult(timesheet_id=sheet.id)

    records = await engine.presence.find_by_employee_and_date_range(
        tenant_id, sheet.employee_id, sheet.period_start, sheet.period_end,
    )
    for presence in records:
        if presence.clock_in_time is None or presence.clock_out_time is None:
            result.skipped += 1
            continue
        if await engine.entries.find_by_presence_entry(tenant_id, presence.id):
            result.skipped += 1
            continue
        try:
            entries = await convert_presence_to_entries(
                engine, tenant_id, presence, sheet,
                project_id=project_id, activity_code_id=activity_code_id,
                hourly_rate=hourly_rate, created_by=imported_by,
            )
        except DomainError as exc:
            logger.warning("Failed to import presence entry %s: %s", presence.id, exc.message)
            result.errors.append(f"Failed to import presence entry {presence.id}: {exc.message}")
            continue
        result.imported += len(entries)

    await refresh_totals(engine, tenant_id, sheet)
    await engine.audit.record(
        tenant_id=tenant_id, user_id=imported_by,
        action="presence.import", resource_type="timesheet",
        resource_id=str(sheet.id),
        detail={"imported": result.imported, "skipped": result.skipped, "errors": len(result.errors)},
    )
    logger.info(
        "Imported %d entries from presence into timesheet %s (%d skipped, %d errors)",
        result.imported, sheet.id, result.skipped, len(result.errors),
    )
    return result


async def import_from_presence(
    engine: Engine,
    tenant_id: uuid.UUID,
    employee_id: uuid.UUID,
    start: date,
    end: date,
    imported_by: uuid.UUID,
    *,
    project_id: uuid.UUID | None = None,
    activity_code_id: uuid.UUID | None = None,
    hourly_rate: float | None = None,
) -> ImportResult:
    """
    Import an employee's presence records for a period into the draft timesheet
    of that period, creating the timesheet when needed. Days that already have
    presence-derived entries are skipped, so the import can be re-run.
    """
    records = await engine.presence.find_by_employee_and_date_range(tenant_id, employee_id, start, end)
    if not records:
        return ImportResult()

    sheet = await get_or_create_timesheet(engine, tenant_id, employee_id, start, end, created_by=imported_by)
    return await _import_into(engine, tenant_id, sheet, imported_by, project_id, activity_code_id, hourly_rate)


async def prefill_from_presence(
    engine: Engine,
    tenant_id: uuid.UUID,
    timesheet_id: uuid.UUID,
    imported_by: uuid.UUID,
    *,
    project_id: uuid.UUID | None = None,
    activity_code_id: uuid.UUID | None = None,
    hourly_rate: float | None = None,
) -> ImportResult:
    sheet = await get_timesheet(engine, tenant_id, timesheet_id, for_update=True)
    return await _import_into(engine, tenant_id, sheet, imported_by, project_id, activity_code_id, hourly_rate)
