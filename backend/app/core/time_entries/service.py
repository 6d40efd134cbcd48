import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Sequence

from app.core.engine import Engine
from app.core.time_entries import lifecycle
from app.core.time_entries.models import TimeEntry
from app.core.time_entries.repository import TimeEntryQuery
from app.core.time_entries.schemas import ImportOrigin, TimeEntryCreate, TimeEntryImportItem, TimeEntryUpdate
from app.core.timesheets import lifecycle as sheet_lifecycle
from app.core.timesheets.models import Timesheet
from app.core.timesheets.service import get_timesheet, refresh_totals
from app.core.validation.anomalies import detect_entry_anomalies
from app.core.validation.service import validate_time_entry
from app.exceptions import DomainError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# Fields copied from a validated candidate onto the stored entry
UPDATABLE_FIELDS = (
    "work_date", "start_time", "end_time", "duration_minutes",
    "project_id", "activity_code_id", "billable", "hourly_rate", "total_cost",
    "description", "tags",
)


@dataclass
class SavedEntry:
    entry: TimeEntry
    warnings: list[str] = field(default_factory=list)


@dataclass
class FailedImport:
    index: int
    import_reference: str | None
    error: str


@dataclass
class BulkImportResult:
    imported: list[TimeEntry] = field(default_factory=list)
    failed: list[FailedImport] = field(default_factory=list)


async def get_time_entry(engine: Engine, tenant_id: uuid.UUID, entry_id: uuid.UUID) -> TimeEntry:
    entry = await engine.entries.find_by_id(tenant_id, entry_id)
    if not entry:
        raise NotFoundError("Time entry not found")
    return entry


async def search_time_entries(engine: Engine, tenant_id: uuid.UUID, query: TimeEntryQuery) -> list[TimeEntry]:
    return await engine.entries.search(tenant_id, query)


async def _editable_sheet(engine: Engine, tenant_id: uuid.UUID, timesheet_id: uuid.UUID) -> Timesheet:
    sheet = await get_timesheet(engine, tenant_id, timesheet_id, for_update=True)
    sheet_lifecycle.ensure_editable(sheet)
    return sheet


def _ensure_in_period(sheet: Timesheet, work_date: date) -> None:
    if not sheet.contains(work_date):
        raise ValidationError(
            f"work_date {work_date} is outside timesheet period {sheet.period_start} to {sheet.period_end}"
        )


async def _validated(engine: Engine, tenant_id: uuid.UUID, entry: TimeEntry) -> list[str]:
    """Run full validation; raise on errors, return warnings."""
    result = await validate_time_entry(engine, tenant_id, entry)
    if not result.is_valid:
        raise ValidationError("Time entry validation failed", errors=result.errors, warnings=result.warnings)
    return result.warnings


# ── CRUD ──────────────────────────────────────────────────────────────────────

async def create_time_entry(
    engine: Engine,
    tenant_id: uuid.UUID,
    created_by: uuid.UUID,
    data: TimeEntryCreate,
) -> SavedEntry:
    sheet = await _editable_sheet(engine, tenant_id, data.timesheet_id)
    _ensure_in_period(sheet, data.work_date)

    entry = lifecycle.new_entry(
        tenant_id=tenant_id,
        timesheet_id=sheet.id,
        employee_id=sheet.employee_id,
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
        origin=data.origin,
    )
    warnings = await _validated(engine, tenant_id, entry)
    entry = await engine.entries.create(entry)
    await refresh_totals(engine, tenant_id, sheet)

    await engine.audit.record(
        tenant_id=tenant_id, user_id=created_by,
        action="time_entry.create", resource_type="time_entry",
        resource_id=str(entry.id),
        detail={"work_date": str(entry.work_date), "duration_minutes": entry.duration_minutes, "source": entry.source},
    )
    return SavedEntry(entry, warnings)


def _given(data: TimeEntryUpdate, entry: TimeEntry, name: str):
    """Value from the update when the field was sent, even as null; else the stored one."""
    return getattr(data if name in data.model_fields_set else entry, name)


def _candidate(entry: TimeEntry, data: TimeEntryUpdate) -> TimeEntry:
    """Unsaved copy of `entry` with the update applied, sharing its id."""
    start, end = entry.start_time, entry.end_time
    if data.clear_times:
        start = end = None
    elif data.start_time is not None:
        start, end = data.start_time, data.end_time

    duration = data.duration_minutes
    if duration is None:
        duration = entry.duration_minutes if data.start_time is None else None

    candidate = lifecycle.new_entry(
        tenant_id=entry.tenant_id,
        timesheet_id=entry.timesheet_id,
        employee_id=entry.employee_id,
        work_date=data.work_date or entry.work_date,
        description=data.description if data.description is not None else entry.description,
        duration_minutes=duration,
        start_time=start,
        end_time=end,
        project_id=_given(data, entry, "project_id"),
        activity_code_id=_given(data, entry, "activity_code_id"),
        billable=data.billable if data.billable is not None else entry.billable,
        hourly_rate=_given(data, entry, "hourly_rate"),
        tags=data.tags if data.tags is not None else entry.tags,
    )
    candidate.id = entry.id
    return candidate


async def update_time_entry(
    engine: Engine,
    tenant_id: uuid.UUID,
    entry_id: uuid.UUID,
    updated_by: uuid.UUID,
    data: TimeEntryUpdate,
) -> SavedEntry:
    entry = await get_time_entry(engine, tenant_id, entry_id)
    lifecycle.ensure_editable(entry)
    sheet = await _editable_sheet(engine, tenant_id, entry.timesheet_id)

    candidate = _candidate(entry, data)
    _ensure_in_period(sheet, candidate.work_date)
    warnings = await _validated(engine, tenant_id, candidate)

    for name in UPDATABLE_FIELDS:
        setattr(entry, name, getattr(candidate, name))
    entry = await engine.entries.update(entry)
    await refresh_totals(engine, tenant_id, sheet)

    await engine.audit.record(
        tenant_id=tenant_id, user_id=updated_by,
        action="time_entry.update", resource_type="time_entry",
        resource_id=str(entry.id),
        detail={"duration_minutes": entry.duration_minutes},
    )
    return SavedEntry(entry, warnings)


async def delete_time_entry(
    engine: Engine,
    tenant_id: uuid.UUID,
    entry_id: uuid.UUID,
    deleted_by: uuid.UUID,
) -> None:
    entry = await get_time_entry(engine, tenant_id, entry_id)
    lifecycle.ensure_editable(entry)
    sheet = await _editable_sheet(engine, tenant_id, entry.timesheet_id)

    await engine.entries.delete(tenant_id, entry_id)
    await refresh_totals(engine, tenant_id, sheet)

    await engine.audit.record(
        tenant_id=tenant_id, user_id=deleted_by,
        action="time_entry.delete", resource_type="time_entry",
        resource_id=str(entry_id), detail={},
    )


async def copy_time_entry(
    engine: Engine,
    tenant_id: uuid.UUID,
    entry_id: uuid.UUID,
    copied_by: uuid.UUID,
    work_date: date,
) -> SavedEntry:
    source = await get_time_entry(engine, tenant_id, entry_id)
    target = await engine.timesheets.find_covering(tenant_id, source.employee_id, work_date)
    if target is None:
        raise ValidationError(f"No timesheet covers {work_date} for this employee")
    sheet = await _editable_sheet(engine, tenant_id, target.id)

    entry = lifecycle.copy_to_date(source, work_date)
    entry.timesheet_id = sheet.id
    warnings = await _validated(engine, tenant_id, entry)
    entry = await engine.entries.create(entry)
    await refresh_totals(engine, tenant_id, sheet)

    await engine.audit.record(
        tenant_id=tenant_id, user_id=copied_by,
        action="time_entry.copy", resource_type="time_entry",
        resource_id=str(entry.id), detail={"copied_from": str(entry_id), "work_date": str(work_date)},
    )
    return SavedEntry(entry, warnings)


async def bulk_import_time_entries(
    engine: Engine,
    tenant_id: uuid.UUID,
    imported_by: uuid.UUID,
    items: Sequence[TimeEntryImportItem],
) -> BulkImportResult:
    """
    Create each item as an `import`-origin entry. An item that fails validation
    or targets a missing or closed timesheet is reported with its index and the
    remaining items are still imported.
    """
    result = BulkImportResult()
    for index, item in enumerate(items):
        data = item.model_copy(update={"origin": ImportOrigin(import_reference=item.import_reference)})
        try:
            saved = await create_time_entry(engine, tenant_id, imported_by, data)
        except DomainError as exc:
            detail = "; ".join(exc.errors) if isinstance(exc, ValidationError) else exc.message
            logger.warning("Skipped imported time entry %d (%s): %s", index, item.import_reference, detail)
            result.failed.append(FailedImport(index, item.import_reference, detail))
            continue
        result.imported.append(saved.entry)

    await engine.audit.record(
        tenant_id=tenant_id, user_id=imported_by,
        action="time_entry.import", resource_type="time_entry",
        detail={"imported": len(result.imported), "failed": len(result.failed)},
    )
    logger.info("Bulk import: %d time entries imported, %d failed", len(result.imported), len(result.failed))
    return result


# ── State machine ─────────────────────────────────────────────────────────────

async def _transition(
    engine: Engine,
    tenant_id: uuid.UUID,
    entry_id: uuid.UUID,
    user_id: uuid.UUID,
    action: str,
    sheet_guard: Callable[[Timesheet], None],
    apply: Callable[[TimeEntry, datetime], None],
    detail: dict | None = None,
) -> TimeEntry:
    """Apply an entry transition once the owning timesheet is in a state that allows it."""
    entry = await get_time_entry(engine, tenant_id, entry_id)
    sheet_guard(await get_timesheet(engine, tenant_id, entry.timesheet_id, for_update=True))
    apply(entry, engine.clock.now())
    entry = await engine.entries.update(entry)

    await engine.audit.record(
        tenant_id=tenant_id, user_id=user_id,
        action=f"time_entry.{action}", resource_type="time_entry",
        resource_id=str(entry.id), detail=detail or {},
    )
    return entry


async def submit_time_entry(engine: Engine, tenant_id: uuid.UUID, entry_id: uuid.UUID, user_id: uuid.UUID) -> TimeEntry:
    return await _transition(
        engine, tenant_id, entry_id, user_id, "submit", sheet_lifecycle.ensure_editable,
        lambda entry, now: lifecycle.submit(entry, user_id, now),
    )


async def approve_time_entry(engine: Engine, tenant_id: uuid.UUID, entry_id: uuid.UUID, user_id: uuid.UUID) -> TimeEntry:
    return await _transition(
        engine, tenant_id, entry_id, user_id, "approve", sheet_lifecycle.ensure_reviewable,
        lambda entry, now: lifecycle.approve(entry, user_id, now),
    )


async def reject_time_entry(
    engine: Engine,
    tenant_id: uuid.UUID,
    entry_id: uuid.UUID,
    user_id: uuid.UUID,
    reason: str | None = None,
) -> TimeEntry:
    return await _transition(
        engine, tenant_id, entry_id, user_id, "reject", sheet_lifecycle.ensure_reviewable,
        lambda entry, now: lifecycle.reject(entry, user_id, now, reason),
        detail={"reason": reason},
    )


async def return_time_entry_to_draft(engine: Engine, tenant_id: uuid.UUID, entry_id: uuid.UUID, user_id: uuid.UUID) -> TimeEntry:
    return await _transition(
        engine, tenant_id, entry_id, user_id, "return_to_draft", sheet_lifecycle.ensure_editable,
        lambda entry, now: lifecycle.return_to_draft(entry, user_id, now),
    )


async def entry_anomalies(engine: Engine, tenant_id: uuid.UUID, entry_id: uuid.UUID) -> list[str]:
    entry = await get_time_entry(engine, tenant_id, entry_id)
    return detect_entry_anomalies(entry, engine.rules)
