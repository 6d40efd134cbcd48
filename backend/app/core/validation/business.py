import uuid

from app.core.calendar import is_weekend, week_end, week_start
from app.core.projects.catalog import ProjectCatalog
from app.core.time_entries.models import TimeEntry
from app.core.time_entries.repository import TimeEntryStore
from app.core.validation.results import ValidationResult
from app.core.validation.rules import ValidationRules


# ── Project / activity code ───────────────────────────────────────────────────

async def validate_project_eligibility(
    catalog: ProjectCatalog,
    tenant_id: uuid.UUID,
    entry: TimeEntry,
) -> ValidationResult:
    """
    Lookup misses are validation errors. LookupUnavailableError from the
    catalog is not caught here.
    """
    result = ValidationResult()
    project = None

    if entry.project_id:
        project = await catalog.get_project(tenant_id, entry.project_id)
        if project is None:
            result.error("Project not found")
        else:
            if not project.is_active:
                result.error("Project is not active")
            if entry.employee_id not in project.assigned_employee_ids:
                result.error("Employee is not assigned to this project")
            if project.requires_activity_code and not entry.activity_code_id:
                result.error("Activity code is required for this project")

    if entry.activity_code_id:
        code = await catalog.get_activity_code(tenant_id, entry.activity_code_id)
        if code is None:
            result.error("Activity code not found")
        else:
            if not code.is_active:
                result.error("Activity code is not active")
            if entry.billable and not code.billable:
                result.warn("Time entry marked as billable but activity code is not billable")
            if project is not None and code.id not in project.activity_code_ids:
                result.warn("Activity code is not associated with this project")

    return result


# ── Overtime ──────────────────────────────────────────────────────────────────

async def validate_overtime(
    entries: TimeEntryStore,
    tenant_id: uuid.UUID,
    entry: TimeEntry,
    rules: ValidationRules,
) -> ValidationResult:
    result = ValidationResult()
    entry_hours = (entry.duration_minutes or 0) / 60

    start = week_start(entry.work_date)
    week = await entries.find_by_employee_and_date_range(tenant_id, entry.employee_id, start, week_end(entry.work_date))
    other_minutes = sum(e.duration_minutes for e in week if entry.id is None or e.id != entry.id)
    weekly_hours = other_minutes / 60 + entry_hours

    if weekly_hours > rules.max_weekly_hours:
        result.error(f"Weekly hours ({weekly_hours:.1f}h) exceed maximum allowed ({rules.max_weekly_hours:g}h)")
    elif weekly_hours > rules.standard_weekly_hours:
        result.warn(
            f"Weekly hours ({weekly_hours:.1f}h) exceed standard hours "
            f"({rules.standard_weekly_hours:g}h) - overtime may apply"
        )

    if entry_hours > rules.max_daily_hours:
        result.error(f"Daily hours ({entry_hours:.1f}h) exceed maximum allowed ({rules.max_daily_hours:g}h)")

    return result


# ── Billing ───────────────────────────────────────────────────────────────────

def validate_billable(entry: TimeEntry, rules: ValidationRules) -> ValidationResult:
    result = ValidationResult()
    if entry.billable and entry.hourly_rate is None:
        result.warn("Billable entry without hourly rate - cost cannot be calculated")
    if not entry.billable and entry.hourly_rate is not None:
        result.warn("Non-billable entry has hourly rate defined")
    if entry.hourly_rate is not None:
        if entry.hourly_rate < rules.min_hourly_rate:
            result.warn("Hourly rate is very low")
        elif entry.hourly_rate > rules.max_hourly_rate:
            result.warn("Hourly rate is very high")
    return result


def validate_weekend(entry: TimeEntry) -> ValidationResult:
    result = ValidationResult()
    if is_weekend(entry.work_date):
        result.warn("Time entry is for weekend work")
    return result


async def validate_business_rules(
    entries: TimeEntryStore,
    catalog: ProjectCatalog,
    tenant_id: uuid.UUID,
    entry: TimeEntry,
    rules: ValidationRules,
) -> ValidationResult:
    return ValidationResult().merge(
        await validate_project_eligibility(catalog, tenant_id, entry),
        await validate_overtime(entries, tenant_id, entry, rules),
        validate_billable(entry, rules),
        validate_weekend(entry),
    )
