from datetime import timedelta

import pytest

from conftest import MONDAY, at


async def _fill_week(engine, make_entry, hours_per_day):
    for offset, hours in enumerate(hours_per_day):
        day = MONDAY + timedelta(days=offset)
        await engine.entries.create(make_entry(work_date=day, start_time=at(day, 7), end_time=at(day, 7 + hours)))


async def test_45_hours_in_week_warns_on_next_entry(engine, make_entry, tenant_id):
    from app.core.validation.business import validate_overtime
    await _fill_week(engine, make_entry, [9, 9, 9, 9, 9])
    saturday = MONDAY + timedelta(days=5)

    result = await validate_overtime(engine.entries, tenant_id, make_entry(work_date=saturday, duration_minutes=15), engine.rules)
    assert result.is_valid
    assert result.warnings == ["Weekly hours (45.2h) exceed standard hours (40h) - overtime may apply"]


async def test_61_hours_in_week_is_an_error(engine, make_entry, tenant_id):
    from app.core.validation.business import validate_overtime
    await _fill_week(engine, make_entry, [11, 11, 11, 11, 11])
    saturday = MONDAY + timedelta(days=5)

    result = await validate_overtime(engine.entries, tenant_id, make_entry(work_date=saturday, duration_minutes=360), engine.rules)
    assert result.errors == ["Weekly hours (61.0h) exceed maximum allowed (60h)"]


async def test_own_entry_is_not_counted_twice(engine, make_entry, tenant_id):
    from app.core.validation.business import validate_overtime
    await _fill_week(engine, make_entry, [8, 8, 8, 8])
    friday = MONDAY + timedelta(days=4)
    stored = await engine.entries.create(make_entry(work_date=friday, start_time=at(friday, 7), end_time=at(friday, 15)))

    result = await validate_overtime(engine.entries, tenant_id, stored, engine.rules)
    assert result.warnings == []


async def test_daily_hours_limit(engine, make_entry, tenant_id):
    from app.core.validation.business import validate_overtime
    result = await validate_overtime(engine.entries, tenant_id, make_entry(duration_minutes=13 * 60), engine.rules)
    assert "Daily hours (13.0h) exceed maximum allowed (12h)" in result.errors


async def test_project_eligibility_errors(engine, make_entry, tenant_id, employee_id):
    import uuid
    from app.core.validation.business import validate_project_eligibility
    catalog = engine.catalog

    missing = await validate_project_eligibility(catalog, tenant_id, make_entry(project_id=uuid.uuid4()))
    assert missing.errors == ["Project not found"]

    closed = catalog.add_project(status="completed", requires_activity_code=True)
    result = await validate_project_eligibility(catalog, tenant_id, make_entry(project_id=closed.id))
    assert result.errors == [
        "Project is not active",
        "Employee is not assigned to this project",
        "Activity code is required for this project",
    ]


async def test_activity_code_checks(engine, make_entry, tenant_id, employee_id):
    import uuid
    from app.core.validation.business import validate_project_eligibility
    catalog = engine.catalog
    project = catalog.add_project(assigned_employee_ids=frozenset({employee_id}))
    inactive = catalog.add_code(is_active=False, billable=False)

    result = await validate_project_eligibility(
        catalog, tenant_id, make_entry(project_id=project.id, activity_code_id=inactive.id, billable=True),
    )
    assert result.errors == ["Activity code is not active"]
    assert result.warnings == [
        "Time entry marked as billable but activity code is not billable",
        "Activity code is not associated with this project",
    ]

    unknown = await validate_project_eligibility(catalog, tenant_id, make_entry(activity_code_id=uuid.uuid4()))
    assert unknown.errors == ["Activity code not found"]


async def test_eligible_project_passes(engine, make_entry, tenant_id, employee_id):
    from app.core.validation.business import validate_project_eligibility
    code = engine.catalog.add_code()
    project = engine.catalog.add_project(
        assigned_employee_ids=frozenset({employee_id}), activity_code_ids=frozenset({code.id}),
        requires_activity_code=True,
    )
    result = await validate_project_eligibility(
        engine.catalog, tenant_id, make_entry(project_id=project.id, activity_code_id=code.id),
    )
    assert result.errors == []
    assert result.warnings == []


async def test_unreachable_catalog_propagates(engine, make_entry, tenant_id):
    import uuid
    from app.core.validation.business import validate_project_eligibility
    from app.exceptions import LookupUnavailableError
    engine.catalog.unavailable = True
    with pytest.raises(LookupUnavailableError):
        await validate_project_eligibility(engine.catalog, tenant_id, make_entry(project_id=uuid.uuid4()))


def test_billable_consistency_warnings(make_entry):
    from app.core.validation.business import validate_billable
    from app.core.validation.rules import DEFAULT_RULES
    assert validate_billable(make_entry(billable=True), DEFAULT_RULES).warnings == [
        "Billable entry without hourly rate - cost cannot be calculated",
    ]
    assert validate_billable(make_entry(hourly_rate=50), DEFAULT_RULES).warnings == [
        "Non-billable entry has hourly rate defined",
    ]
    assert validate_billable(make_entry(billable=True, hourly_rate=2), DEFAULT_RULES).warnings == ["Hourly rate is very low"]
    assert validate_billable(make_entry(billable=True, hourly_rate=900), DEFAULT_RULES).warnings == ["Hourly rate is very high"]


def test_weekend_warning(make_entry):
    from app.core.validation.business import validate_weekend
    sunday = MONDAY + timedelta(days=6)
    assert validate_weekend(make_entry(work_date=sunday, duration_minutes=60)).warnings == ["Time entry is for weekend work"]
    assert validate_weekend(make_entry()).warnings == []


async def test_full_validation_turns_conflicts_into_errors(engine, make_entry, tenant_id):
    from app.core.validation.service import validate_time_entry
    await engine.entries.create(make_entry(start_time=at(MONDAY, 9), end_time=at(MONDAY, 11)))

    result = await validate_time_entry(engine, tenant_id, make_entry(start_time=at(MONDAY, 10), end_time=at(MONDAY, 12)))
    assert result.errors == ["Time entry overlaps with existing entry: Overlaps with existing entry from 09:00 to 11:00"]


async def test_full_validation_accumulates_every_layer(engine, make_entry, tenant_id):
    import uuid
    from app.core.validation.service import validate_time_entry
    sunday = MONDAY + timedelta(days=6)
    entry = make_entry(work_date=sunday, duration_minutes=0, description="", project_id=uuid.uuid4())

    result = await validate_time_entry(engine, tenant_id, entry)
    assert "Duration must be greater than 0" in result.errors
    assert "Description is required" in result.errors
    assert "Project not found" in result.errors
    assert "Time entry is for weekend work" in result.warnings
