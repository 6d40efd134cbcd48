from app.core.calendar import minutes_between, same_day
from app.core.time_entries.models import TimeEntry
from app.core.validation.results import ValidationResult
from app.core.validation.rules import ValidationRules

EARLIEST_NORMAL_START = 5
LATEST_NORMAL_START = 23
EARLIEST_NORMAL_END = 6


def validate_duration_range(entry: TimeEntry, rules: ValidationRules) -> ValidationResult:
    """
    Internal consistency of one interval: duration bounds, and when both
    timestamps are present, ordering, same-day and date match.
    """
    result = ValidationResult()
    duration = entry.duration_minutes or 0

    if 0 < duration < rules.min_entry_minutes:
        result.warn(f"Duration is very short (less than {rules.min_entry_minutes} minutes)")
    if duration > rules.max_entry_minutes:
        result.error(f"Duration exceeds maximum allowed ({rules.max_entry_minutes // 60} hours)")
    elif duration > rules.long_entry_minutes:
        result.warn(f"Duration is very long (more than {rules.long_entry_minutes // 60} hours)")

    if not entry.has_times:
        return result

    start, end = entry.start_time, entry.end_time
    calculated = minutes_between(start, end)
    if abs(calculated - duration) > rules.duration_tolerance_minutes:
        result.error(f"Duration does not match the time range ({round(calculated)} minutes calculated)")

    if end <= start:
        result.error("End time must be after start time")
    if not same_day(start, end):
        result.error("Start and end times must be on the same day")
    elif start.date() != entry.work_date:
        result.error("Times must match the entry date")

    if start.hour < EARLIEST_NORMAL_START or start.hour > LATEST_NORMAL_START:
        result.warn("Start time is outside normal working hours")
    if end.hour < EARLIEST_NORMAL_END:
        result.warn("End time is outside normal working hours")

    if calculated > rules.unbroken_span_hours * 60:
        result.warn("Long work period without recorded breaks")

    return result
