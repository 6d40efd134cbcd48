import logging
import uuid
from datetime import date

from app.core.engine import Engine
from app.core.time_entries import lifecycle as entry_lifecycle
from app.core.time_entries.models import TimeEntry
from app.core.timesheets import lifecycle
from app.core.timesheets.completeness import (
    CompletenessReport, detect_timesheet_anomalies,
    validate_completeness, validate_period_closure,
)
from app.core.timesheets.lifecycle import TimesheetTotals
from app.core.timesheets.models import Timesheet
from app.core.timesheets.schemas import TimesheetCreate
from app.core.validation.results import ValidationResult
from app.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


# ── Timesheets ────────────────────────────────────────────────────────────────

async def create_timesheet(
    engine: Engine,
    tenant_id: uuid.UUID,
    created_by: uuid.UUID,
    data: TimesheetCreate,
) -> Timesheet:
    existing = await engine.timesheets.find_for_period(tenant_id, data.employee_id, data.period_start)
    if existing:
        raise ValidationError("A timesheet already exists for this employee and period")

    sheet = lifecycle.new_timesheet(
        tenant_id=tenant_id,
        employee_id=data.employee_id,
        period_start=data.period_start,
        period_end=data.period_end,
    )
    sheet = await engine.timesheets.create(sheet)

    await engine.audit.record(
        tenant_id=tenant_id, user_id=created_by,
        action="timesheet.create", resource_type="timesheet",
        resource_id=str(sheet.id),
        detail={"employee_id": str(data.employee_id), "period_start": str(data.period_start)},
    )
    return sheet


async def get_or_create_timesheet(
    engine: Engine,
    tenant_id: uuid.UUID,
    employee_id: uuid.UUID,
    period_start: date,
    period_end: date,
    created_by: uuid.UUID | None = None,
) -> Timesheet:
    sheet = await engine.timesheets.find_for_period(tenant_id, employee_id, period_start)
    if sheet:
        return sheet
    sheet = await engine.timesheets.create(lifecycle.new_timesheet(
        tenant_id=tenant_id,
        employee_id=employee_id,
        period_start=period_start,
        period_end=period_end,
    ))
    logger.info("Created timesheet %s for employee %s (%s to %s)", sheet.id, employee_id, period_start, period_end)
    await engine.audit.record(
        tenant_id=tenant_id, user_id=created_by,
        action="timesheet.create", resource_type="timesheet",
        resource_id=str(sheet.id),
        detail={"employee_id": str(employee_id), "period_start": str(period_start), "auto": True},
    )
    return sheet


async def get_timesheet(
    engine: Engine,
    tenant_id: uuid.UUID,
    timesheet_id: uuid.UUID,
    for_update: bool = False,
) -> Timesheet:
    sheet = await engine.timesheets.find_by_id(tenant_id, timesheet_id, for_update=for_update)
    if not sheet:
        raise NotFoundError("Timesheet not found")
    return sheet


async def list_timesheets(
    engine: Engine,
    tenant_id: uuid.UUID,
    employee_id: uuid.UUID | None = None,
    status: str | None = None,
) -> list[Timesheet]:
    return await engine.timesheets.find_by_employee(tenant_id, employee_id=employee_id, status=status)


async def list_timesheet_entries(engine: Engine, tenant_id: uuid.UUID, timesheet_id: uuid.UUID) -> list[TimeEntry]:
    await get_timesheet(engine, tenant_id, timesheet_id)
    return await engine.entries.find_by_timesheet(tenant_id, timesheet_id)


async def delete_timesheet(
    engine: Engine,
    tenant_id: uuid.UUID,
    timesheet_id: uuid.UUID,
    deleted_by: uuid.UUID,
) -> None:
    sheet = await get_timesheet(engine, tenant_id, timesheet_id, for_update=True)
    lifecycle.ensure_deletable(sheet)

    entries = await engine.entries.find_by_timesheet(tenant_id, timesheet_id)
    await engine.entries.batch_delete(tenant_id, [e.id for e in entries])
    await engine.timesheets.delete(tenant_id, timesheet_id)

    await engine.audit.record(
        tenant_id=tenant_id, user_id=deleted_by,
        action="timesheet.delete", resource_type="timesheet",
        resource_id=str(timesheet_id), detail={"entries_deleted": len(entries)},
    )


async def refresh_totals(engine: Engine, tenant_id: uuid.UUID, sheet: Timesheet) -> TimesheetTotals:
    """Recompute the cached totals from the sheet's entries and persist them."""
    entries = await engine.entries.find_by_timesheet(tenant_id, sheet.id)
    totals = lifecycle.calculate_totals(entries)
    lifecycle.apply_totals(sheet, totals)
    await engine.timesheets.update(sheet)
    return totals


async def recalculate_timesheet(engine: Engine, tenant_id: uuid.UUID, timesheet_id: uuid.UUID) -> Timesheet:
    sheet = await get_timesheet(engine, tenant_id, timesheet_id, for_update=True)
    await refresh_totals(engine, tenant_id, sheet)
    return sheet


# ── State machine ─────────────────────────────────────────────────────────────

async def submit_timesheet(
    engine: Engine,
    tenant_id: uuid.UUID,
    timesheet_id: uuid.UUID,
    submitted_by: uuid.UUID,
) -> Timesheet:
    sheet = await get_timesheet(engine, tenant_id, timesheet_id, for_update=True)
    entries = await engine.entries.find_by_timesheet(tenant_id, timesheet_id)
    now = engine.clock.now()

    lifecycle.submit(sheet, submitted_by, now, entry_count=len(entries))
    submitted = 0
    for entry in entries:
        if entry.status == "draft":
            entry_lifecycle.submit(entry, submitted_by, now)
            await engine.entries.update(entry)
            submitted += 1
    await refresh_totals(engine, tenant_id, sheet)

    await engine.audit.record(
        tenant_id=tenant_id, user_id=submitted_by,
        action="timesheet.submit", resource_type="timesheet",
        resource_id=str(sheet.id), detail={"entries_submitted": submitted},
    )
    return sheet


async def approve_timesheet(
    engine: Engine,
    tenant_id: uuid.UUID,
    timesheet_id: uuid.UUID,
    approved_by: uuid.UUID,
) -> Timesheet:
    sheet = await get_timesheet(engine, tenant_id, timesheet_id, for_update=True)
    now = engine.clock.now()

    entries = await engine.entries.find_by_timesheet(tenant_id, timesheet_id)
    open_entries = sum(1 for e in entries if e.status in ("draft", "rejected"))

    lifecycle.approve(sheet, approved_by, now, open_entries=open_entries)
    approved = 0
    for entry in entries:
        if entry.status == "submitted":
            entry_lifecycle.approve(entry, approved_by, now)
            await engine.entries.update(entry)
            approved += 1
    await engine.timesheets.update(sheet)

    await engine.audit.record(
        tenant_id=tenant_id, user_id=approved_by,
        action="timesheet.approve", resource_type="timesheet",
        resource_id=str(sheet.id), detail={"entries_approved": approved},
    )
    return sheet


async def reject_timesheet(
    engine: Engine,
    tenant_id: uuid.UUID,
    timesheet_id: uuid.UUID,
    rejected_by: uuid.UUID,
    reason: str,
) -> Timesheet:
    sheet = await get_timesheet(engine, tenant_id, timesheet_id, for_update=True)
    now = engine.clock.now()

    lifecycle.reject(sheet, rejected_by, now, reason)
    for entry in await engine.entries.find_by_timesheet(tenant_id, timesheet_id):
        if entry.status == "submitted":
            entry_lifecycle.reject(entry, rejected_by, now, reason)
            await engine.entries.update(entry)
    await engine.timesheets.update(sheet)

    await engine.audit.record(
        tenant_id=tenant_id, user_id=rejected_by,
        action="timesheet.reject", resource_type="timesheet",
        resource_id=str(sheet.id), detail={"reason": reason},
    )
    return sheet


async def lock_timesheet(
    engine: Engine,
    tenant_id: uuid.UUID,
    timesheet_id: uuid.UUID,
    locked_by: uuid.UUID,
) -> Timesheet:
    sheet = await get_timesheet(engine, tenant_id, timesheet_id, for_update=True)
    lifecycle.lock(sheet, locked_by, engine.clock.now())
    await engine.timesheets.update(sheet)

    await engine.audit.record(
        tenant_id=tenant_id, user_id=locked_by,
        action="timesheet.lock", resource_type="timesheet",
        resource_id=str(sheet.id), detail={},
    )
    return sheet


async def unlock_timesheet(
    engine: Engine,
    tenant_id: uuid.UUID,
    timesheet_id: uuid.UUID,
    unlocked_by: uuid.UUID,
) -> Timesheet:
    sheet = await get_timesheet(engine, tenant_id, timesheet_id, for_update=True)
    lifecycle.unlock(sheet)
    await engine.timesheets.update(sheet)

    await engine.audit.record(
        tenant_id=tenant_id, user_id=unlocked_by,
        action="timesheet.unlock", resource_type="timesheet",
        resource_id=str(sheet.id), detail={},
    )
    return sheet


# ── Checks ────────────────────────────────────────────────────────────────────

async def check_completeness(engine: Engine, tenant_id: uuid.UUID, timesheet_id: uuid.UUID) -> CompletenessReport:
    sheet = await get_timesheet(engine, tenant_id, timesheet_id)
    entries = await engine.entries.find_by_timesheet(tenant_id, timesheet_id)
    return validate_completeness(sheet, entries, engine.rules)


async def check_anomalies(engine: Engine, tenant_id: uuid.UUID, timesheet_id: uuid.UUID) -> tuple[Timesheet, list[str], list[TimeEntry]]:
    sheet = await get_timesheet(engine, tenant_id, timesheet_id)
    entries = await engine.entries.find_by_timesheet(tenant_id, timesheet_id)
    return sheet, detect_timesheet_anomalies(sheet, engine.rules), entries


async def check_period_closure(engine: Engine, tenant_id: uuid.UUID, timesheet_id: uuid.UUID) -> ValidationResult:
    sheet = await get_timesheet(engine, tenant_id, timesheet_id)
    entries = await engine.entries.find_by_timesheet(tenant_id, timesheet_id)
    return validate_period_closure(sheet, entries)
