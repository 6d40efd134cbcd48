import uuid
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.projects import service
from app.core.projects.schemas import (
    ProjectCreate, ProjectRead, AssignmentCreate,
    ActivityCodeCreate, ActivityCodeRead,
)
from app.dependencies import get_db, get_current_user, CurrentUser

router = APIRouter(tags=["projects"])

@router.post("/projects", response_model=ProjectRead, status_code=201)
async def create_project(data: ProjectCreate, db: AsyncSession = Depends(get_db), current: CurrentUser = Depends(get_current_user)):
    return await service.create_project(db, current.tenant_id, data, current.user_id)

@router.get("/projects", response_model=list[ProjectRead])
async def list_projects(db: AsyncSession = Depends(get_db), current: CurrentUser = Depends(get_current_user)):
    return await service.list_projects(db, current.tenant_id)

@router.get("/projects/{project_id}", response_model=ProjectRead)
async def get_project(project_id: uuid.UUID, db: AsyncSession = Depends(get_db), current: CurrentUser = Depends(get_current_user)):
    project = await service.get_project(db, current.tenant_id, project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    return project

@router.post("/projects/{project_id}/employees", status_code=204)
async def assign_employee(project_id: uuid.UUID, data: AssignmentCreate, db: AsyncSession = Depends(get_db), current: CurrentUser = Depends(get_current_user)):
    project = await service.get_project(db, current.tenant_id, project_id)
    if not project:
        raise HTTPException(404, "Project not found")
    await service.assign_employee(db, current.tenant_id, project, data, current.user_id)

@router.post("/activity-codes", response_model=ActivityCodeRead, status_code=201)
async def create_activity_code(data: ActivityCodeCreate, db: AsyncSession = Depends(get_db), current: CurrentUser = Depends(get_current_user)):
    return await service.create_activity_code(db, current.tenant_id, data, current.user_id)
