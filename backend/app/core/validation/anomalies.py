from typing import Iterable

from app.core.calendar import is_weekend
from app.core.time_entries.models import TimeEntry
from app.core.validation.rules import ValidationRules

UNUSUAL_START_BEFORE = 6
UNUSUAL_START_AFTER = 22
SHORT_DESCRIPTION_LENGTH = 10


def detect_entry_anomalies(entry: TimeEntry, rules: ValidationRules) -> list[str]:
    """Non-blocking heuristic flags for one entry."""
    anomalies: list[str] = []
    duration = entry.duration_minutes or 0

    if duration > rules.long_entry_minutes:
        anomalies.append("excessive_duration")
    if duration < rules.min_entry_minutes:
        anomalies.append("very_short_duration")

    if entry.start_time is not None:
        hour = entry.start_time.hour
        if hour < UNUSUAL_START_BEFORE or hour > UNUSUAL_START_AFTER:
            anomalies.append("unusual_hours")

    if entry.hourly_rate is not None:
        if entry.hourly_rate > rules.max_hourly_rate:
            anomalies.append("high_hourly_rate")
        if entry.hourly_rate < rules.min_hourly_rate:
            anomalies.append("low_hourly_rate")

    if len((entry.description or "").strip()) < SHORT_DESCRIPTION_LENGTH:
        anomalies.append("short_description")

    if is_weekend(entry.work_date):
        anomalies.append("weekend_work")

    return anomalies


def is_productive(entry: TimeEntry, rules: ValidationRules) -> bool:
    """
    Billable, at least `productive_min_minutes` long, and described.
    Non-billable work never counts, however long.
    """
    return (
        entry.billable
        and (entry.duration_minutes or 0) >= rules.productive_min_minutes
        and bool((entry.description or "").strip())
    )


def productive_hours(entries: Iterable[TimeEntry], rules: ValidationRules) -> float:
    return round(sum(e.duration_minutes for e in entries if is_productive(e, rules)) / 60, 2)
