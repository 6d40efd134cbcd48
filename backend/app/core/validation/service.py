import uuid

from app.core.engine import Engine
from app.core.time_entries.models import TimeEntry
from app.core.validation.business import validate_business_rules
from app.core.validation.duration import validate_duration_range
from app.core.validation.fields import validate_entry_fields
from app.core.validation.overlap import check_overlap
from app.core.validation.results import ValidationResult


async def validate_time_entry(engine: Engine, tenant_id: uuid.UUID, entry: TimeEntry) -> ValidationResult:
    """
    Full validation of a candidate or stored entry: fields, range, overlap and
    business rules accumulated into one result.
    """
    result = ValidationResult().merge(
        validate_entry_fields(entry, engine.rules),
        validate_duration_range(entry, engine.rules),
    )

    if entry.has_times:
        conflicts = await check_overlap(
            engine.entries, tenant_id, entry.employee_id, entry.work_date,
            entry.start_time, entry.end_time, exclude_entry_id=entry.id,
        )
        for conflict in conflicts:
            result.error(f"Time entry overlaps with existing entry: {conflict.conflict_details}")

    result.merge(await validate_business_rules(engine.entries, engine.catalog, tenant_id, entry, engine.rules))
    return result
