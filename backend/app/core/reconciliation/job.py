"""
Scheduled presence sync for one tenant and date range.

    SYNC_TENANT_ID=... SYNC_START=2026-01-05 SYNC_END=2026-01-11 python -m app.core.reconciliation.job

Each page runs in its own transaction so a long range never holds one open.
"""
import asyncio
import logging
import os
import uuid

from app.core.audit.service import SqlAuditTrail
from app.core.calendar import SystemClock, parse_iso_date
from app.core.engine import Engine
from app.core.presence.repository import SqlPresenceStore
from app.core.projects.catalog import SqlProjectCatalog
from app.core.reconciliation.service import SyncResult, sync_presence_range
from app.core.time_entries.repository import SqlTimeEntryStore
from app.core.timesheets.repository import SqlTimesheetStore
from app.core.validation.rules import get_rules
from app.db.session import get_session
from app.settings import get_settings

logger = logging.getLogger(__name__)


async def run_sync(tenant_id: uuid.UUID, start: str, end: str) -> list[SyncResult]:
    start_date, end_date = parse_iso_date(start), parse_iso_date(end)
    results: list[SyncResult] = []
    offset: int | None = 0
    while offset is not None:
        async with get_session() as db:
            engine = Engine(
                entries=SqlTimeEntryStore(db),
                timesheets=SqlTimesheetStore(db),
                presence=SqlPresenceStore(db),
                catalog=SqlProjectCatalog(db),
                audit=SqlAuditTrail(db),
                rules=get_rules(),
                clock=SystemClock(),
            )
            result = await sync_presence_range(engine, tenant_id, start_date, end_date, offset=offset)
        results.append(result)
        offset = result.next_offset
    return results


def main() -> None:
    logging.basicConfig(
        level=getattr(logging, get_settings().LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )
    tenant_id = uuid.UUID(os.environ["SYNC_TENANT_ID"])
    results = asyncio.run(run_sync(tenant_id, os.environ["SYNC_START"], os.environ["SYNC_END"]))
    failed = sum(len(r.errors) for r in results)
    logger.info("Sync finished: %d pages, %d errors", len(results), failed)
    if failed:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
