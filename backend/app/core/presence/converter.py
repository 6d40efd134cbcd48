"""
Presence → time-entry conversion.

A presence day is split into work intervals around its closed breaks and each
interval becomes one billable draft entry linked back to the presence record.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime

from app.core.calendar import hhmm, rounded_minutes, week_end, week_start
from app.core.engine import Engine
from app.core.presence.models import PresenceEntry
from app.core.time_entries import lifecycle as entry_lifecycle
from app.core.time_entries.models import TimeEntry
from app.core.time_entries.schemas import PresenceOrigin
from app.core.timesheets.lifecycle import ensure_editable
from app.core.timesheets.models import Timesheet
from app.core.timesheets.service import get_or_create_timesheet
from app.core.validation.service import validate_time_entry
from app.exceptions import DomainError, LookupUnavailableError, ValidationError

logger = logging.getLogger(__name__)

STATUS_SUFFIXES = {
    "late": " (Late arrival)",
    "early_leave": " (Early leave)",
    "overtime": " (Overtime)",
}


@dataclass(frozen=True)
class WorkInterval:
    start_time: datetime
    end_time: datetime
    duration_minutes: int


def split_presence_intervals(presence: PresenceEntry) -> list[WorkInterval]:
    """
    Walk the day from clock-in to clock-out, skipping over each closed break.
    Open breaks (no end time) are ignored; zero-length intervals are dropped.
    """
    if presence.clock_in_time is None or presence.clock_out_time is None:
        return []

    intervals: list[WorkInterval] = []
    cursor = presence.clock_in_time
    clock_out = presence.clock_out_time

    closed = sorted((b for b in presence.breaks if b.end_time is not None), key=lambda b: b.start_time)
    for brk in closed:
        break_start = min(brk.start_time, clock_out)
        if cursor < break_start:
            minutes = rounded_minutes(cursor, break_start)
            if minutes > 0:
                intervals.append(WorkInterval(cursor, break_start, minutes))
        cursor = max(cursor, brk.end_time)

    if cursor < clock_out:
        minutes = rounded_minutes(cursor, clock_out)
        if minutes > 0:
            intervals.append(WorkInterval(cursor, clock_out, minutes))
    return intervals


def describe_interval(presence: PresenceEntry, interval: WorkInterval) -> str:
    description = f"Work from {hhmm(interval.start_time)} to {hhmm(interval.end_time)}"
    description += STATUS_SUFFIXES.get(presence.status, "")
    if presence.notes:
        description += f" - {presence.notes}"
    return description


async def weekly_draft_timesheet(
    engine: Engine,
    tenant_id: uuid.UUID,
    presence: PresenceEntry,
    created_by: uuid.UUID | None = None,
) -> Timesheet:
    """The employee's timesheet for the ISO week of the presence day; must still be draft."""
    sheet = await engine.timesheets.find_covering(tenant_id, presence.employee_id, presence.work_date)
    if sheet is None:
        sheet = await get_or_create_timesheet(
            engine, tenant_id, presence.employee_id,
            week_start(presence.work_date), week_end(presence.work_date),
            created_by=created_by,
        )
    ensure_editable(sheet)
    return sheet


async def convert_presence_to_entries(
    engine: Engine,
    tenant_id: uuid.UUID,
    presence: PresenceEntry,
    timesheet: Timesheet | None = None,
    *,
    project_id: uuid.UUID | None = None,
    activity_code_id: uuid.UUID | None = None,
    hourly_rate: float | None = None,
    created_by: uuid.UUID | None = None,
) -> list[TimeEntry]:
    """
    Persist one entry per work interval, each inside its own savepoint. An
    interval that fails validation or storage is logged and skipped; the others
    are still saved. Lookup outages propagate.
    """
    if presence.clock_in_time is None or presence.clock_out_time is None:
        raise ValidationError("Presence entry must have both clock in and clock out times")

    if timesheet is None:
        timesheet = await weekly_draft_timesheet(engine, tenant_id, presence, created_by)

    created: list[TimeEntry] = []
    for interval in split_presence_intervals(presence):
        entry = entry_lifecycle.new_entry(
            tenant_id=tenant_id,
            timesheet_id=timesheet.id,
            employee_id=presence.employee_id,
            work_date=presence.work_date,
            description=describe_interval(presence, interval),
            duration_minutes=interval.duration_minutes,
            start_time=interval.start_time,
            end_time=interval.end_time,
            project_id=project_id,
            activity_code_id=activity_code_id,
            billable=True,
            hourly_rate=hourly_rate,
            origin=PresenceOrigin(presence_entry_id=presence.id),
        )
        try:
            async with engine.entries.savepoint():
                result = await validate_time_entry(engine, tenant_id, entry)
                if not result.is_valid:
                    raise ValidationError("Time entry validation failed", errors=result.errors)
                saved = await engine.entries.create(entry)
        except LookupUnavailableError:
            raise
        except DomainError as exc:
            detail = "; ".join(exc.errors) if isinstance(exc, ValidationError) else exc.message
            logger.warning(
                "Skipped presence interval %s-%s of %s: %s",
                hhmm(interval.start_time), hhmm(interval.end_time), presence.id, detail,
            )
            continue
        except Exception:
            logger.exception(
                "Failed to store presence interval %s-%s of %s",
                hhmm(interval.start_time), hhmm(interval.end_time), presence.id,
            )
            continue
        created.append(saved)
    return created
