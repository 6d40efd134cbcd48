"""
Time-entry store contract and its SQLAlchemy implementation.

Every read is tenant-scoped and excludes soft-deleted rows. TimeEntryQuery
carries the filters the store is expected to apply itself; `text` (description
substring) is the one predicate a store may be unable to express, in which case
it must run `apply_post_filter` over its results before paging.
"""
import uuid
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Protocol

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.time_entries.models import TimeEntry


@dataclass(frozen=True)
class TimeEntryQuery:
    employee_id: uuid.UUID | None = None
    timesheet_id: uuid.UUID | None = None
    date_from: date | None = None
    date_to: date | None = None
    statuses: tuple[str, ...] = ()
    project_id: uuid.UUID | None = None
    billable: bool | None = None
    source: str | None = None
    text: str | None = None
    limit: int = 100
    offset: int = 0

    def matches(self, entry: TimeEntry) -> bool:
        if self.employee_id and entry.employee_id != self.employee_id:
            return False
        if self.timesheet_id and entry.timesheet_id != self.timesheet_id:
            return False
        if self.date_from and entry.work_date < self.date_from:
            return False
        if self.date_to and entry.work_date > self.date_to:
            return False
        if self.statuses and entry.status not in self.statuses:
            return False
        if self.project_id and entry.project_id != self.project_id:
            return False
        if self.billable is not None and entry.billable != self.billable:
            return False
        if self.source and entry.source != self.source:
            return False
        return self.matches_text(entry)

    def matches_text(self, entry: TimeEntry) -> bool:
        if not self.text:
            return True
        needle = self.text.lower()
        return needle in entry.description.lower() or any(needle in t for t in entry.tags or [])


def apply_post_filter(query: TimeEntryQuery, entries: Iterable[TimeEntry]) -> list[TimeEntry]:
    matched = [e for e in entries if query.matches_text(e)]
    return matched[query.offset:query.offset + query.limit]


class TimeEntryStore(Protocol):
    async def find_by_id(self, tenant_id: uuid.UUID, entry_id: uuid.UUID) -> TimeEntry | None: ...

    async def find_by_employee_and_date_range(
        self, tenant_id: uuid.UUID, employee_id: uuid.UUID, start: date, end: date,
    ) -> list[TimeEntry]: ...

    async def find_by_timesheet(self, tenant_id: uuid.UUID, timesheet_id: uuid.UUID) -> list[TimeEntry]: ...

    async def find_by_presence_entry(self, tenant_id: uuid.UUID, presence_entry_id: uuid.UUID) -> list[TimeEntry]: ...

    async def search(self, tenant_id: uuid.UUID, query: TimeEntryQuery) -> list[TimeEntry]: ...

    async def create(self, entry: TimeEntry) -> TimeEntry: ...

    async def update(self, entry: TimeEntry) -> TimeEntry: ...

    async def delete(self, tenant_id: uuid.UUID, entry_id: uuid.UUID) -> None: ...

    async def batch_delete(self, tenant_id: uuid.UUID, entry_ids: list[uuid.UUID]) -> int: ...

    def savepoint(self) -> AbstractAsyncContextManager[Any]:
        """Nested transaction; writes inside it are rolled back if the block raises."""
        ...


class SqlTimeEntryStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _base(self, tenant_id: uuid.UUID):
        return select(TimeEntry).where(
            TimeEntry.tenant_id == tenant_id,
            TimeEntry.is_deleted == False,
        )

    async def find_by_id(self, tenant_id: uuid.UUID, entry_id: uuid.UUID) -> TimeEntry | None:
        result = await self.db.execute(self._base(tenant_id).where(TimeEntry.id == entry_id))
        return result.scalar_one_or_none()

    async def find_by_employee_and_date_range(
        self, tenant_id: uuid.UUID, employee_id: uuid.UUID, start: date, end: date,
    ) -> list[TimeEntry]:
        result = await self.db.execute(
            self._base(tenant_id).where(
                TimeEntry.employee_id == employee_id,
                TimeEntry.work_date >= start,
                TimeEntry.work_date <= end,
            ).order_by(TimeEntry.work_date, TimeEntry.start_time)
        )
        return list(result.scalars().all())

    async def find_by_timesheet(self, tenant_id: uuid.UUID, timesheet_id: uuid.UUID) -> list[TimeEntry]:
        result = await self.db.execute(
            self._base(tenant_id)
            .where(TimeEntry.timesheet_id == timesheet_id)
            .order_by(TimeEntry.work_date, TimeEntry.start_time)
        )
        return list(result.scalars().all())

    async def find_by_presence_entry(self, tenant_id: uuid.UUID, presence_entry_id: uuid.UUID) -> list[TimeEntry]:
        result = await self.db.execute(
            self._base(tenant_id).where(
                TimeEntry.source == "presence",
                TimeEntry.presence_entry_id == presence_entry_id,
            )
        )
        return list(result.scalars().all())

    async def search(self, tenant_id: uuid.UUID, query: TimeEntryQuery) -> list[TimeEntry]:
        q = self._base(tenant_id)
        if query.employee_id:
            q = q.where(TimeEntry.employee_id == query.employee_id)
        if query.timesheet_id:
            q = q.where(TimeEntry.timesheet_id == query.timesheet_id)
        if query.date_from:
            q = q.where(TimeEntry.work_date >= query.date_from)
        if query.date_to:
            q = q.where(TimeEntry.work_date <= query.date_to)
        if query.statuses:
            q = q.where(TimeEntry.status.in_(query.statuses))
        if query.project_id:
            q = q.where(TimeEntry.project_id == query.project_id)
        if query.billable is not None:
            q = q.where(TimeEntry.billable == query.billable)
        if query.source:
            q = q.where(TimeEntry.source == query.source)
        q = q.order_by(TimeEntry.work_date.desc(), TimeEntry.start_time)

        if query.text:
            # Tags live in JSONB; substring matching runs as the explicit post-filter.
            result = await self.db.execute(q)
            return apply_post_filter(query, result.scalars().all())

        result = await self.db.execute(q.limit(query.limit).offset(query.offset))
        return list(result.scalars().all())

    def savepoint(self) -> AbstractAsyncContextManager[Any]:
        return self.db.begin_nested()

    async def create(self, entry: TimeEntry) -> TimeEntry:
        self.db.add(entry)
        await self.db.flush()
        await self.db.refresh(entry)
        return entry

    async def update(self, entry: TimeEntry) -> TimeEntry:
        await self.db.flush()
        await self.db.refresh(entry)
        return entry

    async def delete(self, tenant_id: uuid.UUID, entry_id: uuid.UUID) -> None:
        await self.batch_delete(tenant_id, [entry_id])

    async def batch_delete(self, tenant_id: uuid.UUID, entry_ids: list[uuid.UUID]) -> int:
        if not entry_ids:
            return 0
        result = await self.db.execute(
            update(TimeEntry)
            .where(
                TimeEntry.tenant_id == tenant_id,
                TimeEntry.id.in_(entry_ids),
                TimeEntry.is_deleted == False,
            )
            .values(is_deleted=True)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.flush()
        return result.rowcount or 0
