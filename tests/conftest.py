"""
In-memory collaborators for service and API tests.

The fakes implement the store, catalog, audit and clock protocols so the
engine runs end to end without a database.
"""
import uuid
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta, timezone

import pytest

from app.core.engine import Engine
from app.core.presence.models import PresenceBreak, PresenceEntry
from app.core.projects.catalog import ActivityCodeInfo, ProjectInfo
from app.core.time_entries.lifecycle import new_entry
from app.core.time_entries.repository import TimeEntryQuery
from app.core.timesheets.lifecycle import new_timesheet
from app.core.validation.rules import DEFAULT_RULES
from app.exceptions import LookupUnavailableError

MONDAY = date(2026, 2, 2)


def at(day: date, hour: int, minute: int = 0) -> datetime:
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current


class FakeTimeEntryStore:
    def __init__(self, clock: FixedClock):
        self.rows = {}
        self.clock = clock
        self.rolled_back = 0

    def _live(self, tenant_id):
        return [e for e in self.rows.values() if e.tenant_id == tenant_id and not e.is_deleted]

    async def find_by_id(self, tenant_id, entry_id):
        entry = self.rows.get(entry_id)
        if entry and entry.tenant_id == tenant_id and not entry.is_deleted:
            return entry
        return None

    async def find_by_employee_and_date_range(self, tenant_id, employee_id, start, end):
        found = [e for e in self._live(tenant_id) if e.employee_id == employee_id and start <= e.work_date <= end]
        return sorted(found, key=lambda e: (e.work_date, e.start_time or at(e.work_date, 0)))

    async def find_by_timesheet(self, tenant_id, timesheet_id):
        return [e for e in self._live(tenant_id) if e.timesheet_id == timesheet_id]

    async def find_by_presence_entry(self, tenant_id, presence_entry_id):
        return [e for e in self._live(tenant_id) if e.presence_entry_id == presence_entry_id]

    async def search(self, tenant_id, query: TimeEntryQuery):
        matched = [e for e in self._live(tenant_id) if query.matches(e)]
        return matched[query.offset:query.offset + query.limit]

    async def create(self, entry):
        if entry.created_at is None:
            entry.created_at = self.clock.now()
        self.rows[entry.id] = entry
        return entry

    async def update(self, entry):
        self.rows[entry.id] = entry
        return entry

    async def delete(self, tenant_id, entry_id):
        await self.batch_delete(tenant_id, [entry_id])

    async def batch_delete(self, tenant_id, entry_ids):
        count = 0
        for entry_id in entry_ids:
            entry = await self.find_by_id(tenant_id, entry_id)
            if entry:
                entry.is_deleted = True
                count += 1
        return count

    @asynccontextmanager
    async def savepoint(self):
        try:
            yield
        except Exception:
            self.rolled_back += 1
            raise


class FakeTimesheetStore:
    def __init__(self, clock: FixedClock):
        self.rows = {}
        self.clock = clock

    def _live(self, tenant_id):
        return [s for s in self.rows.values() if s.tenant_id == tenant_id and not s.is_deleted]

    async def find_by_id(self, tenant_id, timesheet_id, for_update=False):
        sheet = self.rows.get(timesheet_id)
        if sheet and sheet.tenant_id == tenant_id and not sheet.is_deleted:
            return sheet
        return None

    async def find_for_period(self, tenant_id, employee_id, period_start):
        for sheet in self._live(tenant_id):
            if sheet.employee_id == employee_id and sheet.period_start == period_start:
                return sheet
        return None

    async def find_covering(self, tenant_id, employee_id, day):
        for sheet in self._live(tenant_id):
            if sheet.employee_id == employee_id and sheet.contains(day):
                return sheet
        return None

    async def find_by_employee(self, tenant_id, employee_id=None, status=None):
        return [
            s for s in self._live(tenant_id)
            if (employee_id is None or s.employee_id == employee_id) and (status is None or s.status == status)
        ]

    async def create(self, sheet):
        if sheet.created_at is None:
            sheet.created_at = self.clock.now()
        self.rows[sheet.id] = sheet
        return sheet

    async def update(self, sheet):
        self.rows[sheet.id] = sheet
        return sheet

    async def delete(self, tenant_id, timesheet_id):
        sheet = await self.find_by_id(tenant_id, timesheet_id)
        if sheet:
            sheet.is_deleted = True


class FakePresenceStore:
    def __init__(self):
        self.rows = []

    def add(self, presence):
        self.rows.append(presence)
        return presence

    def _live(self, tenant_id):
        return [p for p in self.rows if p.tenant_id == tenant_id]

    async def find_by_id(self, tenant_id, presence_id):
        return next((p for p in self._live(tenant_id) if p.id == presence_id), None)

    async def find_by_employee_and_date(self, tenant_id, employee_id, day):
        return next((p for p in self._live(tenant_id) if p.employee_id == employee_id and p.work_date == day), None)

    async def find_by_employee_and_date_range(self, tenant_id, employee_id, start, end):
        found = [p for p in self._live(tenant_id) if p.employee_id == employee_id and start <= p.work_date <= end]
        return sorted(found, key=lambda p: p.work_date)

    async def find_by_tenant_and_date_range(self, tenant_id, start, end, limit, offset=0):
        found = sorted(
            (p for p in self._live(tenant_id) if start <= p.work_date <= end),
            key=lambda p: (p.work_date, str(p.id)),
        )
        return found[offset:offset + limit]


class FakeCatalog:
    def __init__(self):
        self.projects = {}
        self.codes = {}
        self.unavailable = False

    def add_project(self, **kwargs) -> ProjectInfo:
        project = ProjectInfo(id=kwargs.pop("id", uuid.uuid4()), status=kwargs.pop("status", "active"), **kwargs)
        self.projects[project.id] = project
        return project

    def add_code(self, **kwargs) -> ActivityCodeInfo:
        code = ActivityCodeInfo(id=kwargs.pop("id", uuid.uuid4()), **kwargs)
        self.codes[code.id] = code
        return code

    async def get_project(self, tenant_id, project_id):
        if self.unavailable:
            raise LookupUnavailableError("catalog down")
        return self.projects.get(project_id)

    async def get_activity_code(self, tenant_id, activity_code_id):
        if self.unavailable:
            raise LookupUnavailableError("catalog down")
        return self.codes.get(activity_code_id)


class FakeAuditTrail:
    def __init__(self):
        self.records = []

    async def record(self, **kwargs):
        self.records.append(kwargs)

    @property
    def actions(self) -> list[str]:
        return [r["action"] for r in self.records]


@pytest.fixture
def tenant_id():
    return uuid.uuid4()


@pytest.fixture
def employee_id():
    return uuid.uuid4()


@pytest.fixture
def user_id():
    return uuid.uuid4()


@pytest.fixture
def clock():
    return FixedClock(at(date(2026, 2, 9), 10))


@pytest.fixture
def engine(clock):
    return Engine(
        entries=FakeTimeEntryStore(clock),
        timesheets=FakeTimesheetStore(clock),
        presence=FakePresenceStore(),
        catalog=FakeCatalog(),
        audit=FakeAuditTrail(),
        rules=DEFAULT_RULES,
        clock=clock,
    )


@pytest.fixture
def make_entry(tenant_id, employee_id):
    """Unsaved draft entry; defaults to Monday 09:00-11:00."""
    def _make(**overrides):
        day = overrides.pop("work_date", MONDAY)
        values = dict(
            tenant_id=tenant_id,
            timesheet_id=uuid.uuid4(),
            employee_id=employee_id,
            work_date=day,
            description="Implemented the import endpoint",
        )
        if "duration_minutes" not in overrides and "start_time" not in overrides:
            values["start_time"] = at(day, 9)
            values["end_time"] = at(day, 11)
        values.update(overrides)
        return new_entry(**values)
    return _make


@pytest.fixture
def make_sheet(engine, tenant_id, employee_id):
    """Saved weekly draft timesheet starting Monday."""
    async def _make(period_start=MONDAY, period_end=None, employee=None):
        sheet = new_timesheet(
            tenant_id=tenant_id,
            employee_id=employee or employee_id,
            period_start=period_start,
            period_end=period_end or period_start + timedelta(days=6),
        )
        return await engine.timesheets.create(sheet)
    return _make


@pytest.fixture
def make_presence(engine, tenant_id, employee_id):
    """Saved presence record; `breaks` is a list of (start, end-or-None) datetimes."""
    def _make(day=MONDAY, clock_in=(9, 0), clock_out=(17, 30), breaks=(), **kwargs):
        presence = PresenceEntry(
            id=uuid.uuid4(),
            tenant_id=tenant_id,
            employee_id=kwargs.pop("employee", employee_id),
            work_date=day,
            clock_in_time=at(day, *clock_in) if clock_in else None,
            clock_out_time=at(day, *clock_out) if clock_out else None,
            status=kwargs.pop("status", "present"),
            notes=kwargs.pop("notes", None),
            actual_work_hours=kwargs.pop("actual_work_hours", None),
            is_deleted=False,
            breaks=[PresenceBreak(id=uuid.uuid4(), start_time=s, end_time=e, break_type="lunch") for s, e in breaks],
        )
        return engine.presence.add(presence)
    return _make
