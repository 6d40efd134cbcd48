import asyncio
import os
import uuid

from sqlalchemy import select

from app.core.projects.models import ActivityCode, Project, ProjectActivityCode
from app.core.tenants.models import Tenant
from app.db.session import get_session


async def seed() -> None:
    """Development tenant with one active project and a billable activity code."""
    tenant_name = os.getenv("SEED_TENANT_NAME", "Timeledger Demo")
    tenant_slug = os.getenv("SEED_TENANT_SLUG", "timeledger-demo")
    project_code = os.getenv("SEED_PROJECT_CODE", "INTERNAL")

    async with get_session() as db:
        existing = await db.execute(select(Tenant).where(Tenant.slug == tenant_slug))
        tenant = existing.scalar_one_or_none()

        if not tenant:
            tenant = Tenant(id=uuid.uuid4(), name=tenant_name, slug=tenant_slug, status="active")
            db.add(tenant)
            await db.flush()
            print(f"Tenant: {tenant.slug} ({tenant.id})")
        else:
            print(f"Tenant exists: {tenant.slug}")

        existing_project = await db.execute(
            select(Project).where(Project.tenant_id == tenant.id, Project.code == project_code)
        )
        project = existing_project.scalar_one_or_none()

        if not project:
            project = Project(
                id=uuid.uuid4(),
                tenant_id=tenant.id,
                code=project_code,
                name="Internal work",
                status="active",
                billable=True,
                default_hourly_rate=90.0,
            )
            code = ActivityCode(id=uuid.uuid4(), tenant_id=tenant.id, code="DEV", name="Development", billable=True)
            db.add_all([project, code])
            await db.flush()
            db.add(ProjectActivityCode(project_id=project.id, activity_code_id=code.id))
            await db.flush()
            print(f"Project: {project.code} ({project.id}), activity code {code.code} ({code.id})")
        else:
            print(f"Project exists: {project.code}")

    print("Done.")


if __name__ == "__main__":
    asyncio.run(seed())
