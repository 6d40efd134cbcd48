import math
import re
from datetime import date, datetime, timedelta, timezone
from typing import Protocol

from app.exceptions import ValidationError

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


# ── Calendar helpers ──────────────────────────────────────────────────────────

def week_start(day: date) -> date:
    """Monday of the ISO week containing `day`."""
    return day - timedelta(days=day.weekday())


def week_end(day: date) -> date:
    return week_start(day) + timedelta(days=6)


def same_day(a: datetime, b: datetime) -> bool:
    return a.date() == b.date()


def is_weekend(day: date) -> bool:
    return day.weekday() >= 5


def days_between(start: date, end: date) -> list[date]:
    """Inclusive list of calendar days from start to end."""
    if end < start:
        return []
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


def working_days(start: date, end: date) -> list[date]:
    return [d for d in days_between(start, end) if not is_weekend(d)]


def parse_iso_date(value: str) -> date:
    if not _ISO_DATE.match(value):
        raise ValidationError("Invalid date format")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError("Invalid date format")


def minutes_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 60


def rounded_minutes(start: datetime, end: datetime) -> int:
    # half-up
    return int(math.floor(minutes_between(start, end) + 0.5))


def hhmm(value: datetime) -> str:
    return value.strftime("%H:%M")
