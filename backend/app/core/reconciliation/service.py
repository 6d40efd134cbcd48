"""
Presence ↔ time-entry reconciliation.

Single-day and range checks only report; `sync_presence_range` repairs by
(re)converting presence records. Per-record failures never abort a batch.
"""
import logging
import uuid
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from app.core.calendar import minutes_between
from app.core.engine import Engine
from app.core.presence.converter import convert_presence_to_entries, weekly_draft_timesheet
from app.core.presence.models import PresenceEntry
from app.core.time_entries.models import TimeEntry
from app.core.timesheets.service import get_timesheet, refresh_totals
from app.core.validation.rules import ValidationRules
from app.exceptions import DomainError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationReport:
    employee_id: uuid.UUID
    work_date: date
    presence_id: uuid.UUID | None = None
    presence_hours: float | None = None
    entry_hours: float = 0.0
    entry_count: int = 0
    discrepancies: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)

    @property
    def is_consistent(self) -> bool:
        return not self.discrepancies

    def flag(self, discrepancy: str, suggestion: str) -> None:
        self.discrepancies.append(discrepancy)
        self.suggestions.append(suggestion)


@dataclass
class ConsistencyReport:
    employee_id: uuid.UUID
    start_date: date
    end_date: date
    days: list[ReconciliationReport] = field(default_factory=list)

    @property
    def days_checked(self) -> int:
        return len(self.days)

    @property
    def inconsistent_days(self) -> int:
        return sum(1 for d in self.days if not d.is_consistent)

    @property
    def is_consistent(self) -> bool:
        return self.inconsistent_days == 0


@dataclass
class SyncResult:
    records_processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    has_more: bool = False
    next_offset: int | None = None

    @property
    def success(self) -> bool:
        return not self.errors


# ── Comparison ────────────────────────────────────────────────────────────────

def compare_presence_with_entries(
    employee_id: uuid.UUID,
    work_date: date,
    presence: PresenceEntry | None,
    entries: Sequence[TimeEntry],
    rules: ValidationRules,
) -> ReconciliationReport:
    entry_hours = sum(e.duration_minutes for e in entries) / 60
    report = ReconciliationReport(
        employee_id=employee_id,
        work_date=work_date,
        presence_id=presence.id if presence else None,
        presence_hours=round(presence.effective_work_hours, 2) if presence else None,
        entry_hours=round(entry_hours, 2),
        entry_count=len(entries),
    )

    if presence is None:
        if entries:
            report.flag("Time entries exist but no presence entry found", "Verify presence data")
        return report
    if not entries:
        report.flag("Presence entry exists but no time entries found", "Import time entries from presence data")
        return report

    presence_hours = presence.effective_work_hours
    if abs(presence_hours - entry_hours) > rules.hours_mismatch_tolerance:
        report.flag(
            f"Hours mismatch: Presence {presence_hours:.1f}h vs Time entries {entry_hours:.1f}h",
            "Reconcile hours by updating time entries or presence data",
        )

    starts = [e.start_time for e in entries if e.start_time is not None]
    if presence.clock_in_time is not None and starts:
        if abs(minutes_between(presence.clock_in_time, min(starts))) > rules.time_mismatch_minutes:
            report.flag(
                "Start time mismatch between presence and time entries",
                "Adjust start time of first time entry",
            )

    ends = [e.end_time for e in entries if e.end_time is not None]
    if presence.clock_out_time is not None and ends:
        if abs(minutes_between(presence.clock_out_time, max(ends))) > rules.time_mismatch_minutes:
            report.flag(
                "End time mismatch between presence and time entries",
                "Adjust end time of last time entry",
            )

    return report


def presence_needs_update(presence: PresenceEntry, linked: Sequence[TimeEntry], rules: ValidationRules) -> bool:
    """Linked entries no longer match the presence span minus breaks."""
    if presence.clock_in_time is None or presence.clock_out_time is None:
        return False
    entry_hours = sum(e.duration_minutes for e in linked) / 60
    return abs(presence.expected_work_hours - entry_hours) > rules.sync_tolerance_hours


async def reconcile(
    engine: Engine,
    tenant_id: uuid.UUID,
    employee_id: uuid.UUID,
    work_date: date,
) -> ReconciliationReport:
    presence = await engine.presence.find_by_employee_and_date(tenant_id, employee_id, work_date)
    entries = await engine.entries.find_by_employee_and_date_range(tenant_id, employee_id, work_date, work_date)
    return compare_presence_with_entries(employee_id, work_date, presence, entries, engine.rules)


async def validate_presence_consistency(
    engine: Engine,
    tenant_id: uuid.UUID,
    employee_id: uuid.UUID,
    start: date,
    end: date,
) -> ConsistencyReport:
    """Reconcile every day in [start, end] that has presence or entries."""
    if end < start:
        raise ValidationError("End date must be on or after start date")

    presence_by_day = {
        p.work_date: p
        for p in await engine.presence.find_by_employee_and_date_range(tenant_id, employee_id, start, end)
    }
    entries_by_day: dict[date, list[TimeEntry]] = defaultdict(list)
    for entry in await engine.entries.find_by_employee_and_date_range(tenant_id, employee_id, start, end):
        entries_by_day[entry.work_date].append(entry)

    report = ConsistencyReport(employee_id=employee_id, start_date=start, end_date=end)
    for day in sorted(set(presence_by_day) | set(entries_by_day)):
        report.days.append(compare_presence_with_entries(
            employee_id, day, presence_by_day.get(day), entries_by_day.get(day, []), engine.rules,
        ))
    return report


# ── Batch sync ────────────────────────────────────────────────────────────────

async def _sync_one(
    engine: Engine,
    tenant_id: uuid.UUID,
    presence: PresenceEntry,
    user_id: uuid.UUID | None,
) -> str:
    """Returns "created", "updated" or "skipped"."""
    if presence.clock_in_time is None or presence.clock_out_time is None:
        return "skipped"

    linked = await engine.entries.find_by_presence_entry(tenant_id, presence.id)
    if linked and not presence_needs_update(presence, linked, engine.rules):
        return "skipped"

    sheet = await weekly_draft_timesheet(engine, tenant_id, presence, user_id)
    touched = {sheet.id}
    if linked:
        touched.update(e.timesheet_id for e in linked)
        await engine.entries.batch_delete(tenant_id, [e.id for e in linked])

    await convert_presence_to_entries(engine, tenant_id, presence, sheet, created_by=user_id)
    for timesheet_id in touched:
        await refresh_totals(engine, tenant_id, await get_timesheet(engine, tenant_id, timesheet_id))
    return "updated" if linked else "created"


async def sync_presence_range(
    engine: Engine,
    tenant_id: uuid.UUID,
    start: date,
    end: date,
    offset: int = 0,
    page_size: int | None = None,
    user_id: uuid.UUID | None = None,
) -> SyncResult:
    """
    Sync one page of the tenant's presence records into time entries.
    A caller continues from `next_offset` while `has_more` is set.
    """
    if end < start:
        raise ValidationError("End date must be on or after start date")
    page_size = page_size or engine.rules.sync_page_size

    page = await engine.presence.find_by_tenant_and_date_range(tenant_id, start, end, limit=page_size + 1, offset=offset)
    result = SyncResult(has_more=len(page) > page_size)
    page = page[:page_size]
    if result.has_more:
        result.next_offset = offset + len(page)

    for presence in page:
        result.records_processed += 1
        try:
            async with engine.entries.savepoint():
                outcome = await _sync_one(engine, tenant_id, presence, user_id)
        except Exception as exc:
            if isinstance(exc, DomainError):
                message = exc.message
                logger.error("Failed to sync presence entry %s: %s", presence.id, message)
            else:
                message = str(exc)
                logger.exception("Failed to sync presence entry %s", presence.id)
            result.errors.append(f"Failed to sync presence entry {presence.id}: {message}")
            continue
        setattr(result, outcome, getattr(result, outcome) + 1)

    await engine.audit.record(
        tenant_id=tenant_id, user_id=user_id,
        action="presence.sync", resource_type="presence_entry",
        detail={
            "start": str(start), "end": str(end), "offset": offset,
            "processed": result.records_processed, "created": result.created,
            "updated": result.updated, "skipped": result.skipped, "errors": len(result.errors),
        },
    )
    logger.info(
        "Presence sync %s..%s offset %d: %d processed, %d created, %d updated, %d skipped, %d errors",
        start, end, offset, result.records_processed, result.created,
        result.updated, result.skipped, len(result.errors),
    )
    return result
