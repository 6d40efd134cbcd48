from app.core.calendar import minutes_between
from app.core.time_entries.models import TimeEntry
from app.core.validation.results import ValidationResult
from app.core.validation.rules import ValidationRules


def validate_entry_fields(entry: TimeEntry, rules: ValidationRules) -> ValidationResult:
    """Required fields and hard invariants of a single entry."""
    result = ValidationResult()

    if entry.duration_minutes is None or entry.duration_minutes <= 0:
        result.error("Duration must be greater than 0")
    elif entry.duration_minutes > rules.max_day_minutes:
        result.error("Duration cannot exceed 24 hours per day")

    description = (entry.description or "").strip()
    if not description:
        result.error("Description is required")
    elif len(description) > rules.max_description_length:
        result.error(f"Description cannot exceed {rules.max_description_length} characters")

    for tag in entry.tags or []:
        if not tag or not tag.strip():
            result.error("Tags cannot be empty")
        elif len(tag) > rules.max_tag_length:
            result.error(f"Tag cannot exceed {rules.max_tag_length} characters")

    if entry.hourly_rate is not None and entry.hourly_rate < 0:
        result.error("Hourly rate cannot be negative")
    if entry.total_cost is not None and entry.total_cost < 0:
        result.error("Total cost cannot be negative")

    if entry.has_times and entry.duration_minutes:
        calculated = minutes_between(entry.start_time, entry.end_time)
        if abs(calculated - entry.duration_minutes) > rules.field_tolerance_minutes:
            result.error("Duration does not match start and end times")

    return result
