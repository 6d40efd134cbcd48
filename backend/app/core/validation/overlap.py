import uuid
from datetime import date, datetime

from app.core.calendar import hhmm
from app.core.time_entries.repository import TimeEntryStore
from app.core.validation.results import ConflictInfo


def intervals_overlap(start: datetime, end: datetime, other_start: datetime, other_end: datetime) -> bool:
    """Half-open test: intervals that only touch at a boundary do not overlap."""
    return start < other_end and end > other_start


async def check_overlap(
    entries: TimeEntryStore,
    tenant_id: uuid.UUID,
    employee_id: uuid.UUID,
    work_date: date,
    start_time: datetime,
    end_time: datetime,
    exclude_entry_id: uuid.UUID | None = None,
) -> list[ConflictInfo]:
    existing = await entries.find_by_employee_and_date_range(tenant_id, employee_id, work_date, work_date)

    conflicts: list[ConflictInfo] = []
    for other in existing:
        if exclude_entry_id and other.id == exclude_entry_id:
            continue
        if not other.has_times:
            continue
        if intervals_overlap(start_time, end_time, other.start_time, other.end_time):
            conflicts.append(ConflictInfo(
                existing_entry_id=other.id,
                conflict_details=f"Overlaps with existing entry from {hhmm(other.start_time)} to {hhmm(other.end_time)}",
            ))
    return conflicts
