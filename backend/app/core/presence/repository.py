import uuid
from datetime import date
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.presence.models import PresenceEntry


class PresenceStore(Protocol):
    async def find_by_id(self, tenant_id: uuid.UUID, presence_id: uuid.UUID) -> PresenceEntry | None: ...

    async def find_by_employee_and_date(
        self, tenant_id: uuid.UUID, employee_id: uuid.UUID, day: date,
    ) -> PresenceEntry | None: ...

    async def find_by_employee_and_date_range(
        self, tenant_id: uuid.UUID, employee_id: uuid.UUID, start: date, end: date,
    ) -> list[PresenceEntry]: ...

    async def find_by_tenant_and_date_range(
        self, tenant_id: uuid.UUID, start: date, end: date, limit: int, offset: int = 0,
    ) -> list[PresenceEntry]: ...


class SqlPresenceStore:
    """Read-only access; presence rows are written by the presence system."""

    def __init__(self, db: AsyncSession):
        self.db = db

    def _base(self, tenant_id: uuid.UUID):
        return select(PresenceEntry).where(
            PresenceEntry.tenant_id == tenant_id,
            PresenceEntry.is_deleted == False,
        )

    async def find_by_id(self, tenant_id: uuid.UUID, presence_id: uuid.UUID) -> PresenceEntry | None:
        result = await self.db.execute(self._base(tenant_id).where(PresenceEntry.id == presence_id))
        return result.scalar_one_or_none()

    async def find_by_employee_and_date(
        self, tenant_id: uuid.UUID, employee_id: uuid.UUID, day: date,
    ) -> PresenceEntry | None:
        result = await self.db.execute(
            self._base(tenant_id).where(
                PresenceEntry.employee_id == employee_id,
                PresenceEntry.work_date == day,
            )
        )
        return result.scalar_one_or_none()

    async def find_by_employee_and_date_range(
        self, tenant_id: uuid.UUID, employee_id: uuid.UUID, start: date, end: date,
    ) -> list[PresenceEntry]:
        result = await self.db.execute(
            self._base(tenant_id).where(
                PresenceEntry.employee_id == employee_id,
                PresenceEntry.work_date >= start,
                PresenceEntry.work_date <= end,
            ).order_by(PresenceEntry.work_date)
        )
        return list(result.scalars().all())

    async def find_by_tenant_and_date_range(
        self, tenant_id: uuid.UUID, start: date, end: date, limit: int, offset: int = 0,
    ) -> list[PresenceEntry]:
        result = await self.db.execute(
            self._base(tenant_id).where(
                PresenceEntry.work_date >= start,
                PresenceEntry.work_date <= end,
            )
            .order_by(PresenceEntry.work_date, PresenceEntry.id)
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())
