"""
Domain error types and their HTTP mapping.

ValidationError covers failed field/business validation and every illegal
state transition. LookupUnavailableError is an infrastructure failure and
deliberately sits outside the DomainError hierarchy.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base exception for business rule violations."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Raised when data is invalid or a transition is not allowed from the current state."""

    def __init__(self, message: str, errors: list[str] | None = None, warnings: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or [message]
        self.warnings = warnings or []


class NotFoundError(DomainError):
    """Raised when a referenced entry, timesheet or presence record does not exist."""


class LookupUnavailableError(Exception):
    """Raised when the store or the project/activity-code lookup cannot be reached."""


async def _validation_error_handler(_request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": exc.message, "errors": exc.errors, "warnings": exc.warnings, "success": False},
    )


async def _not_found_handler(_request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": exc.message, "success": False})


async def _lookup_unavailable_handler(_request: Request, exc: LookupUnavailableError) -> JSONResponse:
    logger.error("Lookup collaborator unavailable: %s", exc)
    return JSONResponse(status_code=503, content={"detail": "Lookup service unavailable", "success": False})


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(status_code=409, content={"detail": "Database constraint violation", "success": False})


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(status_code=500, content={"detail": "Internal database error", "success": False})


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(status_code=500, content={"detail": "Internal server error", "success": False})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(NotFoundError, _not_found_handler)  # type: ignore[arg-type]
    app.add_exception_handler(LookupUnavailableError, _lookup_unavailable_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
