from datetime import timedelta

import pytest

from conftest import MONDAY, at


def test_hours_mismatch_is_reported(make_presence, make_entry, employee_id):
    from app.core.reconciliation.service import compare_presence_with_entries
    from app.core.validation.rules import DEFAULT_RULES
    presence = make_presence(clock_in=(9, 0), clock_out=(17, 0), actual_work_hours=8.0)
    entries = [
        make_entry(start_time=at(MONDAY, 9), end_time=at(MONDAY, 12)),
        make_entry(start_time=at(MONDAY, 13), end_time=at(MONDAY, 16)),
    ]

    report = compare_presence_with_entries(employee_id, MONDAY, presence, entries, DEFAULT_RULES)
    assert not report.is_consistent
    assert report.presence_hours == 8.0
    assert report.entry_hours == 6.0
    assert report.entry_count == 2
    assert report.discrepancies == [
        "Hours mismatch: Presence 8.0h vs Time entries 6.0h",
        "End time mismatch between presence and time entries",
    ]
    assert report.suggestions == [
        "Reconcile hours by updating time entries or presence data",
        "Adjust end time of last time entry",
    ]


def test_small_differences_are_tolerated(make_presence, make_entry, employee_id):
    from app.core.reconciliation.service import compare_presence_with_entries
    from app.core.validation.rules import DEFAULT_RULES
    presence = make_presence(clock_in=(9, 0), clock_out=(17, 0), breaks=[(at(MONDAY, 12), at(MONDAY, 12, 30))])
    entries = [make_entry(start_time=at(MONDAY, 9, 20), end_time=at(MONDAY, 16, 40))]

    report = compare_presence_with_entries(employee_id, MONDAY, presence, entries, DEFAULT_RULES)
    assert report.presence_hours == 7.5
    assert report.is_consistent


def test_one_sided_days(make_presence, make_entry, employee_id):
    from app.core.reconciliation.service import compare_presence_with_entries
    from app.core.validation.rules import DEFAULT_RULES
    only_presence = compare_presence_with_entries(employee_id, MONDAY, make_presence(), [], DEFAULT_RULES)
    assert only_presence.discrepancies == ["Presence entry exists but no time entries found"]
    assert only_presence.suggestions == ["Import time entries from presence data"]

    only_entries = compare_presence_with_entries(employee_id, MONDAY, None, [make_entry()], DEFAULT_RULES)
    assert only_entries.presence_id is None
    assert only_entries.discrepancies == ["Time entries exist but no presence entry found"]
    assert only_entries.suggestions == ["Verify presence data"]

    assert compare_presence_with_entries(employee_id, MONDAY, None, [], DEFAULT_RULES).is_consistent


def test_start_time_mismatch(make_presence, make_entry, employee_id):
    from app.core.reconciliation.service import compare_presence_with_entries
    from app.core.validation.rules import DEFAULT_RULES
    presence = make_presence(clock_in=(8, 0), clock_out=(12, 0))
    entries = [make_entry(start_time=at(MONDAY, 8, 45), end_time=at(MONDAY, 12, 30))]

    report = compare_presence_with_entries(employee_id, MONDAY, presence, entries, DEFAULT_RULES)
    assert report.discrepancies == ["Start time mismatch between presence and time entries"]
    assert report.suggestions == ["Adjust start time of first time entry"]


async def test_reconcile_single_day(engine, make_presence, make_entry, tenant_id, employee_id):
    from app.core.reconciliation.service import reconcile
    presence = make_presence(clock_in=(9, 0), clock_out=(11, 0))
    await engine.entries.create(make_entry())

    report = await reconcile(engine, tenant_id, employee_id, MONDAY)
    assert report.presence_id == presence.id
    assert report.is_consistent


async def test_range_consistency(engine, make_presence, make_entry, tenant_id, employee_id):
    from app.core.reconciliation.service import validate_presence_consistency
    from app.exceptions import ValidationError
    tuesday = MONDAY + timedelta(days=1)
    wednesday = MONDAY + timedelta(days=2)
    make_presence(clock_in=(9, 0), clock_out=(11, 0))
    await engine.entries.create(make_entry())
    make_presence(day=tuesday)
    await engine.entries.create(make_entry(work_date=wednesday, duration_minutes=60))

    report = await validate_presence_consistency(engine, tenant_id, employee_id, MONDAY, MONDAY + timedelta(days=6))
    assert [d.work_date for d in report.days] == [MONDAY, tuesday, wednesday]
    assert report.days_checked == 3
    assert report.inconsistent_days == 2
    assert not report.is_consistent

    with pytest.raises(ValidationError, match="End date must be on or after start date"):
        await validate_presence_consistency(engine, tenant_id, employee_id, tuesday, MONDAY)


async def test_sync_creates_then_skips(engine, make_presence, tenant_id, employee_id):
    from app.core.reconciliation.service import sync_presence_range
    end = MONDAY + timedelta(days=6)
    make_presence(breaks=[(at(MONDAY, 12), at(MONDAY, 13))])
    make_presence(day=MONDAY + timedelta(days=1), clock_out=None)

    result = await sync_presence_range(engine, tenant_id, MONDAY, end)
    assert result.success
    assert result.records_processed == 2
    assert result.created == 1
    assert result.skipped == 1
    assert not result.has_more
    assert result.next_offset is None
    sheet = await engine.timesheets.find_covering(tenant_id, employee_id, MONDAY)
    assert sheet.total_hours == 7.5

    again = await sync_presence_range(engine, tenant_id, MONDAY, end)
    assert again.created == 0
    assert again.skipped == 2
    assert "presence.sync" in engine.audit.actions


async def test_sync_replaces_stale_entries(engine, make_sheet, make_entry, make_presence, tenant_id, employee_id):
    from app.core.reconciliation.service import sync_presence_range
    from app.core.time_entries.schemas import PresenceOrigin
    sheet = await make_sheet()
    presence = make_presence(clock_in=(9, 0), clock_out=(17, 0))
    stale = await engine.entries.create(make_entry(
        timesheet_id=sheet.id, start_time=at(MONDAY, 9), end_time=at(MONDAY, 13),
        origin=PresenceOrigin(presence_entry_id=presence.id),
    ))

    result = await sync_presence_range(engine, tenant_id, MONDAY, MONDAY)
    assert result.updated == 1
    assert stale.is_deleted
    linked = await engine.entries.find_by_presence_entry(tenant_id, presence.id)
    assert [(e.start_time, e.end_time) for e in linked] == [(at(MONDAY, 9), at(MONDAY, 17))]
    assert sheet.total_hours == 8.0


async def test_sync_pages_through_records(engine, make_presence, tenant_id):
    from app.core.reconciliation.service import sync_presence_range
    for offset in range(3):
        make_presence(day=MONDAY + timedelta(days=offset))
    end = MONDAY + timedelta(days=6)

    first = await sync_presence_range(engine, tenant_id, MONDAY, end, page_size=2)
    assert first.records_processed == 2
    assert first.has_more
    assert first.next_offset == 2

    second = await sync_presence_range(engine, tenant_id, MONDAY, end, offset=first.next_offset, page_size=2)
    assert second.records_processed == 1
    assert not second.has_more
    assert first.created + second.created == 3


async def test_sync_records_per_record_errors(engine, make_sheet, make_presence, tenant_id, employee_id):
    import uuid
    from app.core.reconciliation.service import sync_presence_range
    locked = await make_sheet()
    locked.status = "submitted"
    blocked = make_presence()
    make_presence(employee=uuid.uuid4())

    result = await sync_presence_range(engine, tenant_id, MONDAY, MONDAY)
    assert not result.success
    assert result.records_processed == 2
    assert result.created == 1
    assert result.errors == [
        f"Failed to sync presence entry {blocked.id}: Cannot modify entries of a non-editable timesheet",
    ]


async def test_sync_rejects_inverted_range(engine, tenant_id):
    from app.core.reconciliation.service import sync_presence_range
    from app.exceptions import ValidationError
    with pytest.raises(ValidationError, match="End date must be on or after start date"):
        await sync_presence_range(engine, tenant_id, MONDAY + timedelta(days=1), MONDAY)


async def test_sync_isolates_storage_failures(engine, make_presence, tenant_id, monkeypatch):
    from sqlalchemy.exc import OperationalError
    from app.core.reconciliation.service import sync_presence_range
    broken = make_presence()
    make_presence(day=MONDAY + timedelta(days=1))
    lookup = engine.entries.find_by_presence_entry

    async def deadlock_on_first(tenant, presence_id):
        if presence_id == broken.id:
            raise OperationalError("SELECT time_entries", {}, Exception("deadlock detected"))
        return await lookup(tenant, presence_id)

    monkeypatch.setattr(engine.entries, "find_by_presence_entry", deadlock_on_first)
    result = await sync_presence_range(engine, tenant_id, MONDAY, MONDAY + timedelta(days=6))
    assert not result.success
    assert result.records_processed == 2
    assert result.created == 1
    assert len(result.errors) == 1
    assert result.errors[0].startswith(f"Failed to sync presence entry {broken.id}: ")
    assert "deadlock detected" in result.errors[0]
    assert engine.entries.rolled_back == 1
