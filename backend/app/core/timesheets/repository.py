import uuid
from datetime import date
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.timesheets.models import Timesheet


class TimesheetStore(Protocol):
    async def find_by_id(
        self, tenant_id: uuid.UUID, timesheet_id: uuid.UUID, for_update: bool = False,
    ) -> Timesheet | None: ...

    async def find_for_period(
        self, tenant_id: uuid.UUID, employee_id: uuid.UUID, period_start: date,
    ) -> Timesheet | None: ...

    async def find_covering(self, tenant_id: uuid.UUID, employee_id: uuid.UUID, day: date) -> Timesheet | None: ...

    async def find_by_employee(
        self, tenant_id: uuid.UUID, employee_id: uuid.UUID | None = None, status: str | None = None,
    ) -> list[Timesheet]: ...

    async def create(self, sheet: Timesheet) -> Timesheet: ...

    async def update(self, sheet: Timesheet) -> Timesheet: ...

    async def delete(self, tenant_id: uuid.UUID, timesheet_id: uuid.UUID) -> None: ...


class SqlTimesheetStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _base(self, tenant_id: uuid.UUID):
        return select(Timesheet).where(
            Timesheet.tenant_id == tenant_id,
            Timesheet.is_deleted == False,
        )

    async def find_by_id(
        self, tenant_id: uuid.UUID, timesheet_id: uuid.UUID, for_update: bool = False,
    ) -> Timesheet | None:
        q = self._base(tenant_id).where(Timesheet.id == timesheet_id)
        if for_update:
            # Row-level lock for state transitions
            q = q.with_for_update()
        result = await self.db.execute(q)
        return result.scalar_one_or_none()

    async def find_for_period(
        self, tenant_id: uuid.UUID, employee_id: uuid.UUID, period_start: date,
    ) -> Timesheet | None:
        result = await self.db.execute(
            self._base(tenant_id).where(
                Timesheet.employee_id == employee_id,
                Timesheet.period_start == period_start,
            )
        )
        return result.scalar_one_or_none()

    async def find_covering(self, tenant_id: uuid.UUID, employee_id: uuid.UUID, day: date) -> Timesheet | None:
        result = await self.db.execute(
            self._base(tenant_id).where(
                Timesheet.employee_id == employee_id,
                Timesheet.period_start <= day,
                Timesheet.period_end >= day,
            ).order_by(Timesheet.period_start.desc())
        )
        return result.scalars().first()

    async def find_by_employee(
        self, tenant_id: uuid.UUID, employee_id: uuid.UUID | None = None, status: str | None = None,
    ) -> list[Timesheet]:
        q = self._base(tenant_id)
        if employee_id:
            q = q.where(Timesheet.employee_id == employee_id)
        if status:
            q = q.where(Timesheet.status == status)
        result = await self.db.execute(q.order_by(Timesheet.period_start.desc()))
        return list(result.scalars().all())

    async def create(self, sheet: Timesheet) -> Timesheet:
        self.db.add(sheet)
        await self.db.flush()
        await self.db.refresh(sheet)
        return sheet

    async def update(self, sheet: Timesheet) -> Timesheet:
        await self.db.flush()
        await self.db.refresh(sheet)
        return sheet

    async def delete(self, tenant_id: uuid.UUID, timesheet_id: uuid.UUID) -> None:
        sheet = await self.find_by_id(tenant_id, timesheet_id, for_update=True)
        if sheet:
            sheet.is_deleted = True
            await self.db.flush()
