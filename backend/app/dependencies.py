import uuid
from dataclasses import dataclass
from typing import AsyncGenerator

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.audit.service import SqlAuditTrail
from app.core.calendar import SystemClock
from app.core.engine import Engine
from app.core.presence.repository import SqlPresenceStore
from app.core.projects.catalog import SqlProjectCatalog
from app.core.time_entries.repository import SqlTimeEntryStore
from app.core.timesheets.repository import SqlTimesheetStore
from app.core.validation.rules import get_rules
from app.db.session import AsyncSessionLocal


@dataclass
class CurrentUser:
    user_id: uuid.UUID
    tenant_id: uuid.UUID


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        async with session.begin():
            yield session


async def get_current_user(
    x_tenant_id: str | None = Header(None),
    x_user_id: str | None = Header(None),
) -> CurrentUser:
    """Identity asserted by the upstream gateway; authentication happens there."""
    if not x_tenant_id or not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing tenant or user identity")
    try:
        return CurrentUser(user_id=uuid.UUID(x_user_id), tenant_id=uuid.UUID(x_tenant_id))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid tenant or user identity")


async def get_engine(request: Request, db: AsyncSession = Depends(get_db)) -> Engine:
    ctx = getattr(request.state, "audit_ctx", None)
    return Engine(
        entries=SqlTimeEntryStore(db),
        timesheets=SqlTimesheetStore(db),
        presence=SqlPresenceStore(db),
        catalog=SqlProjectCatalog(db),
        audit=SqlAuditTrail(db, ip_address=ctx.ip_address if ctx else None),
        rules=get_rules(),
        clock=SystemClock(),
    )
