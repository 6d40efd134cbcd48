"""
Entry state machine and the pure helpers that derive entry fields.

    draft ──submit──▶ submitted ──approve──▶ approved
      ▲                   │
      └─return_to_draft── rejected ◀──reject──┘

Every illegal transition raises ValidationError naming the required state.
"""
import uuid
from datetime import date, datetime, timedelta
from typing import Iterable

from app.core.time_entries.models import TimeEntry
from app.core.time_entries.schemas import EntryOrigin, ImportOrigin, ManualOrigin, PresenceOrigin
from app.exceptions import ValidationError


# ── Derived fields ────────────────────────────────────────────────────────────

def normalize_tags(tags: Iterable[str] | None) -> list[str]:
    """Strip, lower-case and de-duplicate, keeping first-seen order."""
    seen: list[str] = []
    for tag in tags or []:
        value = tag.strip().lower()
        if value not in seen:
            seen.append(value)
    return seen


def calculate_total_cost(duration_minutes: int, billable: bool, hourly_rate: float | None) -> float | None:
    if not billable or hourly_rate is None:
        return None
    return round(duration_minutes / 60 * hourly_rate, 2)


def recalculate_cost(entry: TimeEntry) -> None:
    entry.total_cost = calculate_total_cost(entry.duration_minutes, entry.billable, entry.hourly_rate)


def format_duration(minutes: int) -> str:
    hours, rest = divmod(int(minutes), 60)
    return f"{hours}h {rest:02d}m"


def apply_origin(entry: TimeEntry, origin: EntryOrigin) -> None:
    entry.presence_entry_id = None
    entry.import_reference = None
    if isinstance(origin, PresenceOrigin):
        entry.source = "presence"
        entry.presence_entry_id = origin.presence_entry_id
    elif isinstance(origin, ImportOrigin):
        entry.source = "import"
        entry.import_reference = origin.import_reference
    elif isinstance(origin, ManualOrigin):
        entry.source = "manual"
    else:
        raise ValidationError(f"Unknown entry origin: {origin!r}")


def new_entry(
    *,
    tenant_id: uuid.UUID,
    timesheet_id: uuid.UUID | None,
    employee_id: uuid.UUID,
    work_date: date,
    description: str,
    duration_minutes: int | None = None,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    project_id: uuid.UUID | None = None,
    activity_code_id: uuid.UUID | None = None,
    billable: bool = False,
    hourly_rate: float | None = None,
    tags: Iterable[str] | None = None,
    origin: EntryOrigin | None = None,
) -> TimeEntry:
    """Build an unsaved draft. Duration defaults to the span of the given times."""
    if duration_minutes is None and start_time is not None and end_time is not None:
        duration_minutes = round((end_time - start_time).total_seconds() / 60)

    entry = TimeEntry(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        timesheet_id=timesheet_id,
        employee_id=employee_id,
        work_date=work_date,
        start_time=start_time,
        end_time=end_time,
        duration_minutes=duration_minutes or 0,
        project_id=project_id,
        activity_code_id=activity_code_id,
        billable=billable,
        hourly_rate=hourly_rate,
        description=description,
        tags=normalize_tags(tags),
        status="draft",
        is_deleted=False,
    )
    apply_origin(entry, origin or ManualOrigin())
    recalculate_cost(entry)
    return entry


def set_times_from_duration(entry: TimeEntry, start_time: datetime) -> None:
    entry.start_time = start_time
    entry.end_time = start_time + timedelta(minutes=entry.duration_minutes)


def copy_to_date(entry: TimeEntry, work_date: date) -> TimeEntry:
    """New manual draft on another day; times keep their clock position."""
    shift = timedelta(days=(work_date - entry.work_date).days)
    return new_entry(
        tenant_id=entry.tenant_id,
        timesheet_id=entry.timesheet_id,
        employee_id=entry.employee_id,
        work_date=work_date,
        description=entry.description,
        duration_minutes=entry.duration_minutes,
        start_time=entry.start_time + shift if entry.start_time else None,
        end_time=entry.end_time + shift if entry.end_time else None,
        project_id=entry.project_id,
        activity_code_id=entry.activity_code_id,
        billable=entry.billable,
        hourly_rate=entry.hourly_rate,
        tags=entry.tags,
    )


def ensure_editable(entry: TimeEntry) -> None:
    if not entry.is_editable:
        raise ValidationError("Only draft or rejected entries can be modified")


# ── Transitions ───────────────────────────────────────────────────────────────

def submit(entry: TimeEntry, user_id: uuid.UUID, now: datetime) -> None:
    if entry.status != "draft":
        raise ValidationError("Only draft entries can be submitted")
    entry.status = "submitted"
    entry.submitted_at = now
    entry.submitted_by = user_id


def approve(entry: TimeEntry, user_id: uuid.UUID, now: datetime) -> None:
    if entry.status != "submitted":
        raise ValidationError("Only submitted entries can be approved")
    entry.status = "approved"
    entry.approved_at = now
    entry.approved_by = user_id


def reject(entry: TimeEntry, user_id: uuid.UUID, now: datetime, reason: str | None = None) -> None:
    if entry.status != "submitted":
        raise ValidationError("Only submitted entries can be rejected")
    entry.status = "rejected"
    entry.rejected_at = now
    entry.rejected_by = user_id
    if reason:
        entry.description = f"{entry.description}\n\nRejection reason: {reason}"


def return_to_draft(entry: TimeEntry, user_id: uuid.UUID, now: datetime) -> None:
    if entry.status != "rejected":
        raise ValidationError("Only rejected entries can be returned to draft")
    entry.status = "draft"
    entry.submitted_at = None
    entry.submitted_by = None
