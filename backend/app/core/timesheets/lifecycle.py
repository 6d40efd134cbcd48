"""
Timesheet state machine, period helpers and totals.

    draft ──submit──▶ submitted ──approve──▶ approved ──lock──▶ locked
      ▲                  │                      ▲                 │
      └──────reject──────┘                      └─────unlock──────┘
"""
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable

from app.core.calendar import days_between, working_days
from app.core.time_entries.models import TimeEntry
from app.core.timesheets.models import Timesheet
from app.exceptions import ValidationError


@dataclass(frozen=True)
class TimesheetTotals:
    total_hours: float
    total_billable_hours: float
    total_cost: float
    entry_count: int


# ── Construction / periods ────────────────────────────────────────────────────

def new_timesheet(
    *,
    tenant_id: uuid.UUID,
    employee_id: uuid.UUID,
    period_start: date,
    period_end: date,
) -> Timesheet:
    if period_end < period_start:
        raise ValidationError("Period end must be on or after period start")
    return Timesheet(
        id=uuid.uuid4(),
        tenant_id=tenant_id,
        employee_id=employee_id,
        period_start=period_start,
        period_end=period_end,
        status="draft",
        total_hours=0.0,
        total_billable_hours=0.0,
        total_cost=0.0,
        entry_count=0,
        is_deleted=False,
    )


def period_length(sheet: Timesheet) -> int:
    return (sheet.period_end - sheet.period_start).days + 1


def period_type(sheet: Timesheet) -> str:
    length = period_length(sheet)
    if length == 7:
        return "weekly"
    if length == 14:
        return "bi-weekly"
    if 28 <= length <= 31:
        return "monthly"
    return "custom"


def days_in_period(sheet: Timesheet) -> list[date]:
    return days_between(sheet.period_start, sheet.period_end)


def working_days_in_period(sheet: Timesheet) -> list[date]:
    return working_days(sheet.period_start, sheet.period_end)


def monthly_period(day: date) -> tuple[date, date]:
    start = day.replace(day=1)
    next_month = (start + timedelta(days=32)).replace(day=1)
    return start, next_month - timedelta(days=1)


# ── Totals ────────────────────────────────────────────────────────────────────

def calculate_totals(entries: Iterable[TimeEntry]) -> TimesheetTotals:
    total_minutes = 0
    billable_minutes = 0
    cost = 0.0
    count = 0
    for entry in entries:
        count += 1
        total_minutes += entry.duration_minutes
        if entry.billable:
            billable_minutes += entry.duration_minutes
        cost += entry.total_cost or 0
    return TimesheetTotals(
        total_hours=round(total_minutes / 60, 2),
        total_billable_hours=round(billable_minutes / 60, 2),
        total_cost=round(cost, 2),
        entry_count=count,
    )


def apply_totals(sheet: Timesheet, totals: TimesheetTotals) -> None:
    sheet.total_hours = totals.total_hours
    sheet.total_billable_hours = totals.total_billable_hours
    sheet.total_cost = totals.total_cost
    sheet.entry_count = totals.entry_count


# ── Guards ────────────────────────────────────────────────────────────────────

def ensure_editable(sheet: Timesheet) -> None:
    if not sheet.is_editable:
        raise ValidationError("Cannot modify entries of a non-editable timesheet")


def ensure_deletable(sheet: Timesheet) -> None:
    if not sheet.is_deletable:
        raise ValidationError("Only draft timesheets can be deleted")


def ensure_reviewable(sheet: Timesheet) -> None:
    if sheet.status != "submitted":
        raise ValidationError("Time entries can only be approved or rejected on a submitted timesheet")


# ── Transitions ───────────────────────────────────────────────────────────────

def submit(sheet: Timesheet, user_id: uuid.UUID, now: datetime, entry_count: int) -> None:
    if sheet.status != "draft":
        raise ValidationError("Only draft timesheets can be submitted")
    if entry_count == 0:
        raise ValidationError("Cannot submit timesheet without time entries")
    sheet.status = "submitted"
    sheet.submitted_at = now
    sheet.submitted_by = user_id
    sheet.rejection_reason = None


def approve(sheet: Timesheet, user_id: uuid.UUID, now: datetime, open_entries: int = 0) -> None:
    if sheet.status != "submitted":
        raise ValidationError("Only submitted timesheets can be approved")
    if open_entries:
        raise ValidationError(f"Cannot approve timesheet with {open_entries} time entries in draft or rejected status")
    sheet.status = "approved"
    sheet.approved_at = now
    sheet.approved_by = user_id


def reject(sheet: Timesheet, user_id: uuid.UUID, now: datetime, reason: str) -> None:
    if sheet.status != "submitted":
        raise ValidationError("Only submitted timesheets can be rejected")
    sheet.status = "draft"
    sheet.rejected_at = now
    sheet.rejected_by = user_id
    sheet.rejection_reason = reason


def lock(sheet: Timesheet, user_id: uuid.UUID, now: datetime) -> None:
    if sheet.status != "approved":
        raise ValidationError("Only approved timesheets can be locked")
    sheet.status = "locked"
    sheet.locked_at = now
    sheet.locked_by = user_id


def unlock(sheet: Timesheet) -> None:
    if sheet.status != "locked":
        raise ValidationError("Only locked timesheets can be unlocked")
    sheet.status = "approved"
    sheet.locked_at = None
    sheet.locked_by = None
