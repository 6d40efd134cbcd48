"""
Project / activity-code lookup used by the business-rule validator.

A lookup that finds nothing returns None (a validation concern for the caller).
A lookup that cannot reach its backend raises LookupUnavailableError.
"""
import logging
import uuid
from dataclasses import dataclass, field
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.projects.models import ActivityCode, Project, ProjectActivityCode, ProjectAssignment
from app.exceptions import LookupUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProjectInfo:
    id: uuid.UUID
    status: str
    requires_activity_code: bool = False
    assigned_employee_ids: frozenset[uuid.UUID] = field(default_factory=frozenset)
    activity_code_ids: frozenset[uuid.UUID] = field(default_factory=frozenset)
    default_hourly_rate: float | None = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"


@dataclass(frozen=True)
class ActivityCodeInfo:
    id: uuid.UUID
    is_active: bool = True
    billable: bool = True


class ProjectCatalog(Protocol):
    async def get_project(self, tenant_id: uuid.UUID, project_id: uuid.UUID) -> ProjectInfo | None: ...

    async def get_activity_code(self, tenant_id: uuid.UUID, activity_code_id: uuid.UUID) -> ActivityCodeInfo | None: ...


class SqlProjectCatalog:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_project(self, tenant_id: uuid.UUID, project_id: uuid.UUID) -> ProjectInfo | None:
        try:
            result = await self.db.execute(
                select(Project).where(
                    Project.id == project_id,
                    Project.tenant_id == tenant_id,
                    Project.is_deleted == False,
                )
            )
            project = result.scalar_one_or_none()
            if project is None:
                return None
            employees = await self.db.execute(
                select(ProjectAssignment.employee_id).where(ProjectAssignment.project_id == project_id)
            )
            codes = await self.db.execute(
                select(ProjectActivityCode.activity_code_id).where(ProjectActivityCode.project_id == project_id)
            )
        except (DBAPIError, OSError) as exc:
            logger.error("Project lookup failed for %s: %s", project_id, exc)
            raise LookupUnavailableError(f"Project lookup failed: {exc}") from exc

        return ProjectInfo(
            id=project.id,
            status=project.status,
            requires_activity_code=project.requires_activity_code,
            assigned_employee_ids=frozenset(employees.scalars().all()),
            activity_code_ids=frozenset(codes.scalars().all()),
            default_hourly_rate=project.default_hourly_rate,
        )

    async def get_activity_code(self, tenant_id: uuid.UUID, activity_code_id: uuid.UUID) -> ActivityCodeInfo | None:
        try:
            result = await self.db.execute(
                select(ActivityCode).where(
                    ActivityCode.id == activity_code_id,
                    ActivityCode.tenant_id == tenant_id,
                    ActivityCode.is_deleted == False,
                )
            )
            code = result.scalar_one_or_none()
        except (DBAPIError, OSError) as exc:
            logger.error("Activity code lookup failed for %s: %s", activity_code_id, exc)
            raise LookupUnavailableError(f"Activity code lookup failed: {exc}") from exc

        if code is None:
            return None
        return ActivityCodeInfo(id=code.id, is_active=code.is_active, billable=code.billable)
