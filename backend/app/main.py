import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.audit.service import AuditMiddleware
from app.core.presence.router import router as presence_router
from app.core.projects.router import router as projects_router
from app.core.reconciliation.router import router as reconciliation_router
from app.core.time_entries.router import router as time_entries_router
from app.core.timesheets.router import router as timesheets_router
from app.core.validation.router import router as validation_router
from app.exceptions import register_exception_handlers
from app.settings import get_settings

settings = get_settings()


def create_app() -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
    )

    app = FastAPI(
        title="Timeledger API",
        version="0.1.0",
        docs_url="/docs" if settings.APP_DEBUG else None,
        redoc_url="/redoc" if settings.APP_DEBUG else None,
    )

    register_exception_handlers(app)

    app.add_middleware(AuditMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.APP_DEBUG else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(time_entries_router)
    app.include_router(validation_router)
    app.include_router(timesheets_router)
    app.include_router(presence_router)
    app.include_router(reconciliation_router)
    app.include_router(projects_router)

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


app = create_app()
