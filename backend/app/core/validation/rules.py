from dataclasses import dataclass
from functools import lru_cache

from app.settings import Settings, get_settings


@dataclass(frozen=True)
class ValidationRules:
    """
    Thresholds used by the validators and the reconciliation engine.
    Built once from Settings and passed explicitly; never mutated.
    """
    min_entry_minutes: int = 15
    long_entry_minutes: int = 720
    max_entry_minutes: int = 960
    max_day_minutes: int = 1440
    duration_tolerance_minutes: int = 5
    field_tolerance_minutes: int = 1
    max_daily_hours: float = 12
    standard_weekly_hours: float = 40
    max_weekly_hours: float = 60
    min_hourly_rate: float = 5
    max_hourly_rate: float = 500
    max_description_length: int = 1000
    max_tag_length: int = 50
    unbroken_span_hours: float = 6
    hours_mismatch_tolerance: float = 0.5
    time_mismatch_minutes: int = 30
    sync_tolerance_hours: float = 0.25
    totals_tolerance_hours: float = 0.1
    min_daily_hours: float = 1
    productive_min_minutes: int = 30
    sync_page_size: int = 500

    @classmethod
    def from_settings(cls, settings: Settings) -> "ValidationRules":
        return cls(
            min_entry_minutes=settings.MIN_ENTRY_MINUTES,
            long_entry_minutes=settings.LONG_ENTRY_MINUTES,
            max_entry_minutes=settings.MAX_ENTRY_MINUTES,
            duration_tolerance_minutes=settings.DURATION_TOLERANCE_MINUTES,
            max_daily_hours=settings.MAX_DAILY_HOURS,
            standard_weekly_hours=settings.STANDARD_WEEKLY_HOURS,
            max_weekly_hours=settings.MAX_WEEKLY_HOURS,
            min_hourly_rate=settings.MIN_HOURLY_RATE,
            max_hourly_rate=settings.MAX_HOURLY_RATE,
            hours_mismatch_tolerance=settings.HOURS_MISMATCH_TOLERANCE,
            time_mismatch_minutes=settings.TIME_MISMATCH_MINUTES,
            sync_tolerance_hours=settings.SYNC_TOLERANCE_HOURS,
            totals_tolerance_hours=settings.TOTALS_TOLERANCE_HOURS,
            sync_page_size=settings.SYNC_PAGE_SIZE,
        )


DEFAULT_RULES = ValidationRules()


@lru_cache
def get_rules() -> ValidationRules:
    return ValidationRules.from_settings(get_settings())
