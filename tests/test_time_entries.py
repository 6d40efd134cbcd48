from datetime import timedelta

import pytest

from conftest import MONDAY, at


def _create(sheet, **overrides):
    from app.core.time_entries.schemas import TimeEntryCreate
    values = dict(
        timesheet_id=sheet.id,
        work_date=MONDAY,
        start_time=at(MONDAY, 9),
        end_time=at(MONDAY, 11),
        description="Reviewed the payroll export",
    )
    values.update(overrides)
    return TimeEntryCreate(**values)


async def test_create_entry_returns_warnings_and_refreshes_totals(engine, make_sheet, tenant_id, user_id):
    from app.core.time_entries.service import create_time_entry
    sheet = await make_sheet()

    saved = await create_time_entry(engine, tenant_id, user_id, _create(sheet, billable=True))
    assert saved.entry.duration_minutes == 120
    assert saved.entry.status == "draft"
    assert saved.entry.source == "manual"
    assert saved.warnings == ["Billable entry without hourly rate - cost cannot be calculated"]
    assert sheet.total_hours == 2.0
    assert sheet.total_billable_hours == 2.0
    assert sheet.entry_count == 1
    assert engine.audit.actions == ["time_entry.create"]


async def test_create_overlapping_entry_fails_validation(engine, make_sheet, tenant_id, user_id):
    from app.core.time_entries.service import create_time_entry
    from app.exceptions import ValidationError
    sheet = await make_sheet()
    await create_time_entry(engine, tenant_id, user_id, _create(sheet))

    with pytest.raises(ValidationError, match="Time entry validation failed") as exc_info:
        await create_time_entry(engine, tenant_id, user_id, _create(sheet, start_time=at(MONDAY, 10), end_time=at(MONDAY, 12)))
    assert exc_info.value.errors == [
        "Time entry overlaps with existing entry: Overlaps with existing entry from 09:00 to 11:00",
    ]
    assert sheet.entry_count == 1


async def test_create_outside_period_or_on_closed_sheet(engine, make_sheet, tenant_id, user_id):
    from app.core.time_entries.service import create_time_entry
    from app.exceptions import NotFoundError, ValidationError
    import uuid
    sheet = await make_sheet()
    later = MONDAY + timedelta(days=10)

    with pytest.raises(ValidationError, match="outside timesheet period"):
        await create_time_entry(engine, tenant_id, user_id, _create(sheet, work_date=later, start_time=at(later, 9), end_time=at(later, 10)))

    sheet.status = "submitted"
    with pytest.raises(ValidationError, match="Cannot modify entries of a non-editable timesheet"):
        await create_time_entry(engine, tenant_id, user_id, _create(sheet))

    with pytest.raises(NotFoundError, match="Timesheet not found"):
        await create_time_entry(engine, tenant_id, user_id, _create(sheet, timesheet_id=uuid.uuid4()))


async def test_create_with_presence_origin(engine, make_sheet, tenant_id, user_id):
    import uuid
    from app.core.time_entries.schemas import PresenceOrigin
    from app.core.time_entries.service import create_time_entry
    sheet = await make_sheet()
    presence_id = uuid.uuid4()

    saved = await create_time_entry(engine, tenant_id, user_id, _create(sheet, origin=PresenceOrigin(presence_entry_id=presence_id)))
    assert saved.entry.source == "presence"
    assert saved.entry.presence_entry_id == presence_id
    assert saved.entry.origin == {"source": "presence", "presence_entry_id": presence_id}


async def test_failed_update_leaves_stored_entry_untouched(engine, make_sheet, tenant_id, user_id):
    from app.core.time_entries.schemas import TimeEntryUpdate
    from app.core.time_entries.service import create_time_entry, update_time_entry
    from app.exceptions import ValidationError
    sheet = await make_sheet()
    saved = await create_time_entry(engine, tenant_id, user_id, _create(sheet))

    with pytest.raises(ValidationError) as exc_info:
        await update_time_entry(engine, tenant_id, saved.entry.id, user_id, TimeEntryUpdate(description=""))
    assert "Description is required" in exc_info.value.errors
    assert saved.entry.description == "Reviewed the payroll export"


async def test_update_moves_times_and_recomputes(engine, make_sheet, tenant_id, user_id):
    from app.core.time_entries.schemas import TimeEntryUpdate
    from app.core.time_entries.service import create_time_entry, update_time_entry
    sheet = await make_sheet()
    saved = await create_time_entry(engine, tenant_id, user_id, _create(sheet, billable=True, hourly_rate=80))

    updated = await update_time_entry(
        engine, tenant_id, saved.entry.id, user_id,
        TimeEntryUpdate(start_time=at(MONDAY, 10), end_time=at(MONDAY, 12, 30)),
    )
    assert updated.entry.id == saved.entry.id
    assert updated.entry.duration_minutes == 150
    assert updated.entry.total_cost == 200.0
    assert sheet.total_hours == 2.5
    assert engine.audit.actions[-1] == "time_entry.update"


async def test_update_can_clear_times(engine, make_sheet, tenant_id, user_id):
    from app.core.time_entries.schemas import TimeEntryUpdate
    from app.core.time_entries.service import create_time_entry, update_time_entry
    sheet = await make_sheet()
    saved = await create_time_entry(engine, tenant_id, user_id, _create(sheet))

    updated = await update_time_entry(
        engine, tenant_id, saved.entry.id, user_id, TimeEntryUpdate(clear_times=True, duration_minutes=90),
    )
    assert updated.entry.start_time is None
    assert updated.entry.end_time is None
    assert updated.entry.duration_minutes == 90


async def test_delete_entry(engine, make_sheet, tenant_id, user_id):
    from app.core.time_entries.service import create_time_entry, delete_time_entry, get_time_entry
    from app.exceptions import NotFoundError
    sheet = await make_sheet()
    saved = await create_time_entry(engine, tenant_id, user_id, _create(sheet))

    await delete_time_entry(engine, tenant_id, saved.entry.id, user_id)
    assert sheet.entry_count == 0
    assert sheet.total_hours == 0
    with pytest.raises(NotFoundError, match="Time entry not found"):
        await get_time_entry(engine, tenant_id, saved.entry.id)
    assert engine.audit.actions == ["time_entry.create", "time_entry.delete"]


async def test_copy_entry_to_another_day(engine, make_sheet, tenant_id, user_id):
    from app.core.time_entries.service import copy_time_entry, create_time_entry
    from app.exceptions import ValidationError
    sheet = await make_sheet()
    saved = await create_time_entry(engine, tenant_id, user_id, _create(sheet, tags=["payroll"]))
    tuesday = MONDAY + timedelta(days=1)

    copied = await copy_time_entry(engine, tenant_id, saved.entry.id, user_id, tuesday)
    assert copied.entry.id != saved.entry.id
    assert copied.entry.work_date == tuesday
    assert copied.entry.start_time == at(tuesday, 9)
    assert copied.entry.end_time == at(tuesday, 11)
    assert copied.entry.tags == ["payroll"]
    assert copied.entry.status == "draft"
    assert sheet.entry_count == 2

    with pytest.raises(ValidationError, match="No timesheet covers"):
        await copy_time_entry(engine, tenant_id, saved.entry.id, user_id, MONDAY + timedelta(days=21))


async def test_update_can_clear_project_and_rate(engine, make_sheet, tenant_id, employee_id, user_id):
    from app.core.time_entries.schemas import TimeEntryUpdate
    from app.core.time_entries.service import create_time_entry, update_time_entry
    code = engine.catalog.add_code()
    project = engine.catalog.add_project(
        assigned_employee_ids=frozenset({employee_id}), activity_code_ids=frozenset({code.id}),
    )
    sheet = await make_sheet()
    saved = await create_time_entry(engine, tenant_id, user_id, _create(
        sheet, project_id=project.id, activity_code_id=code.id, billable=True, hourly_rate=80,
    ))
    assert saved.entry.total_cost == 160.0

    kept = await update_time_entry(engine, tenant_id, saved.entry.id, user_id, TimeEntryUpdate(description="Reviewed the export"))
    assert (kept.entry.project_id, kept.entry.activity_code_id, kept.entry.hourly_rate) == (project.id, code.id, 80)

    cleared = await update_time_entry(
        engine, tenant_id, saved.entry.id, user_id,
        TimeEntryUpdate(project_id=None, activity_code_id=None, hourly_rate=None),
    )
    assert cleared.entry.project_id is None
    assert cleared.entry.activity_code_id is None
    assert cleared.entry.hourly_rate is None
    assert cleared.entry.total_cost is None
    assert cleared.warnings == ["Billable entry without hourly rate - cost cannot be calculated"]
    assert cleared.entry.description == "Reviewed the export"


async def test_bulk_import_keeps_going_past_failures(engine, make_sheet, tenant_id, user_id):
    import uuid
    from app.core.time_entries.schemas import TimeEntryImportItem
    from app.core.time_entries.service import bulk_import_time_entries
    sheet = await make_sheet()
    tuesday = MONDAY + timedelta(days=1)
    items = [
        TimeEntryImportItem(
            timesheet_id=sheet.id, work_date=MONDAY, start_time=at(MONDAY, 9), end_time=at(MONDAY, 11),
            description="Imported from the tracker", import_reference="row-1",
        ),
        TimeEntryImportItem(
            timesheet_id=sheet.id, work_date=MONDAY, start_time=at(MONDAY, 10), end_time=at(MONDAY, 12),
            description="Overlapping tracker row", import_reference="row-2",
        ),
        TimeEntryImportItem(
            timesheet_id=uuid.uuid4(), work_date=MONDAY, duration_minutes=60,
            description="Row for an unknown timesheet", import_reference="row-3",
        ),
        TimeEntryImportItem(
            timesheet_id=sheet.id, work_date=tuesday, duration_minutes=90,
            description="Imported support call", import_reference="row-4",
        ),
    ]

    result = await bulk_import_time_entries(engine, tenant_id, user_id, items)
    assert [e.import_reference for e in result.imported] == ["row-1", "row-4"]
    assert {e.source for e in result.imported} == {"import"}
    assert result.imported[0].origin == {"source": "import", "import_reference": "row-1"}
    assert [(f.index, f.import_reference) for f in result.failed] == [(1, "row-2"), (2, "row-3")]
    assert result.failed[0].error == "Time entry overlaps with existing entry: Overlaps with existing entry from 09:00 to 11:00"
    assert result.failed[1].error == "Timesheet not found"
    assert sheet.total_hours == 3.5
    assert engine.audit.actions[-1] == "time_entry.import"


async def test_entry_state_machine(engine, make_sheet, tenant_id, user_id):
    from app.core.time_entries.schemas import TimeEntryUpdate
    from app.core.time_entries.service import (
        approve_time_entry, create_time_entry, reject_time_entry,
        return_time_entry_to_draft, submit_time_entry, update_time_entry,
    )
    from app.core.timesheets.service import reject_timesheet, submit_timesheet
    from app.exceptions import ValidationError
    sheet = await make_sheet()
    first = (await create_time_entry(engine, tenant_id, user_id, _create(sheet))).entry
    second = (await create_time_entry(
        engine, tenant_id, user_id, _create(sheet, start_time=at(MONDAY, 13), end_time=at(MONDAY, 14)),
    )).entry

    entry = await submit_time_entry(engine, tenant_id, first.id, user_id)
    assert entry.status == "submitted"
    assert entry.submitted_by == user_id
    with pytest.raises(ValidationError, match="Only draft or rejected entries can be modified"):
        await update_time_entry(engine, tenant_id, first.id, user_id, TimeEntryUpdate(description="Changed text"))
    with pytest.raises(ValidationError, match="only be approved or rejected on a submitted timesheet"):
        await approve_time_entry(engine, tenant_id, first.id, user_id)

    await submit_timesheet(engine, tenant_id, sheet.id, user_id)
    entry = await approve_time_entry(engine, tenant_id, first.id, user_id)
    assert entry.status == "approved"
    assert not entry.is_editable
    assert entry.approved_at == engine.clock.now()
    with pytest.raises(ValidationError, match="Only submitted entries can be approved"):
        await approve_time_entry(engine, tenant_id, first.id, user_id)

    entry = await reject_time_entry(engine, tenant_id, second.id, user_id, reason="Wrong project")
    assert entry.status == "rejected"
    assert entry.is_editable
    assert entry.description.endswith("Rejection reason: Wrong project")
    with pytest.raises(ValidationError, match="non-editable timesheet"):
        await return_time_entry_to_draft(engine, tenant_id, second.id, user_id)

    await reject_timesheet(engine, tenant_id, sheet.id, user_id, "Fix the project code")
    entry = await return_time_entry_to_draft(engine, tenant_id, second.id, user_id)
    assert entry.status == "draft"
    assert entry.submitted_at is None
    assert engine.audit.actions[-1] == "time_entry.return_to_draft"


async def test_search_entries(engine, make_entry, tenant_id):
    from app.core.time_entries.repository import TimeEntryQuery
    from app.core.time_entries.service import search_time_entries
    await engine.entries.create(make_entry(description="Payroll import", tags=["finance"]))
    tuesday = MONDAY + timedelta(days=1)
    other = make_entry(work_date=tuesday, description="Team meeting", billable=True)
    other.status = "submitted"
    await engine.entries.create(other)

    found = await search_time_entries(engine, tenant_id, TimeEntryQuery(text="FINANCE"))
    assert [e.description for e in found] == ["Payroll import"]
    found = await search_time_entries(engine, tenant_id, TimeEntryQuery(statuses=("submitted",)))
    assert [e.description for e in found] == ["Team meeting"]
    found = await search_time_entries(engine, tenant_id, TimeEntryQuery(date_from=tuesday, billable=True))
    assert len(found) == 1


async def test_entry_anomalies(engine, make_entry, tenant_id):
    from app.core.time_entries.service import entry_anomalies
    entry = await engine.entries.create(
        make_entry(start_time=at(MONDAY, 4), end_time=at(MONDAY, 4, 10), description="fix"),
    )
    assert await entry_anomalies(engine, tenant_id, entry.id) == [
        "very_short_duration", "unusual_hours", "short_description",
    ]

    sunday = MONDAY + timedelta(days=6)
    weekend = await engine.entries.create(make_entry(work_date=sunday, duration_minutes=13 * 60, hourly_rate=600))
    assert await entry_anomalies(engine, tenant_id, weekend.id) == [
        "excessive_duration", "high_hourly_rate", "weekend_work",
    ]
