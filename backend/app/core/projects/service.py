import uuid
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.projects.models import ActivityCode, Project, ProjectActivityCode, ProjectAssignment
from app.core.projects.schemas import ActivityCodeCreate, AssignmentCreate, ProjectCreate


async def create_project(
    db: AsyncSession,
    tenant_id: uuid.UUID,
    data: ProjectCreate,
    created_by: uuid.UUID | None = None,
) -> Project:
    project = Project(
        tenant_id=tenant_id,
        code=data.code,
        name=data.name,
        description=data.description,
        status=data.status,
        billable=data.billable,
        requires_activity_code=data.requires_activity_code,
        default_hourly_rate=data.default_hourly_rate,
    )
    db.add(project)
    await db.flush()
    await db.refresh(project)

    if created_by:
        from app.core.audit.service import audit
        await audit(
            db, tenant_id=tenant_id, user_id=created_by,
            action="project.create",
            resource_type="project",
            resource_id=str(project.id),
            detail={"code": data.code, "name": data.name},
        )

    return project


async def get_project(db: AsyncSession, tenant_id: uuid.UUID, project_id: uuid.UUID) -> Project | None:
    result = await db.execute(
        select(Project).where(
            Project.id == project_id,
            Project.tenant_id == tenant_id,
            Project.is_deleted == False,
        )
    )
    return result.scalar_one_or_none()


async def list_projects(db: AsyncSession, tenant_id: uuid.UUID) -> list[Project]:
    result = await db.execute(
        select(Project)
        .where(Project.tenant_id == tenant_id, Project.is_deleted == False)
        .order_by(Project.created_at.desc())
    )
    return list(result.scalars().all())


async def assign_employee(
    db: AsyncSession,
    tenant_id: uuid.UUID,
    project: Project,
    data: AssignmentCreate,
    assigned_by: uuid.UUID | None = None,
) -> ProjectAssignment:
    result = await db.execute(
        select(ProjectAssignment).where(
            ProjectAssignment.project_id == project.id,
            ProjectAssignment.employee_id == data.employee_id,
        )
    )
    existing = result.scalar_one_or_none()
    if existing:
        return existing  # idempotent

    assignment = ProjectAssignment(tenant_id=tenant_id, project_id=project.id, employee_id=data.employee_id)
    db.add(assignment)
    await db.flush()

    from app.core.audit.service import audit
    await audit(
        db, tenant_id=tenant_id, user_id=assigned_by,
        action="project.assign", resource_type="project",
        resource_id=str(project.id), detail={"employee_id": str(data.employee_id)},
    )
    return assignment


async def create_activity_code(
    db: AsyncSession,
    tenant_id: uuid.UUID,
    data: ActivityCodeCreate,
    created_by: uuid.UUID | None = None,
) -> ActivityCode:
    code = ActivityCode(
        tenant_id=tenant_id,
        code=data.code,
        name=data.name,
        billable=data.billable,
        is_active=data.is_active,
    )
    db.add(code)
    await db.flush()
    for project_id in data.project_ids:
        db.add(ProjectActivityCode(project_id=project_id, activity_code_id=code.id))
    await db.flush()

    from app.core.audit.service import audit
    await audit(
        db, tenant_id=tenant_id, user_id=created_by,
        action="activity_code.create", resource_type="activity_code",
        resource_id=str(code.id),
        detail={"code": data.code, "project_ids": [str(p) for p in data.project_ids]},
    )
    await db.refresh(code)
    return code
