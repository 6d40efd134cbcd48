from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Sequence

from app.core.time_entries.models import TimeEntry
from app.core.timesheets.lifecycle import calculate_totals, period_length, working_days_in_period
from app.core.timesheets.models import Timesheet
from app.core.validation.results import ValidationResult
from app.core.validation.rules import ValidationRules

LATE_SUBMISSION_DAYS = 7
LONG_PERIOD_DAYS = 31
MIN_AVERAGE_DAILY_HOURS = 2


@dataclass
class CompletenessReport:
    missing_days: list[date] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return not self.errors and not self.missing_days


def validate_completeness(
    sheet: Timesheet,
    entries: Sequence[TimeEntry],
    rules: ValidationRules,
) -> CompletenessReport:
    report = CompletenessReport()
    if not entries:
        report.errors.append("Timesheet has no time entries")

    minutes_per_day: dict[date, int] = defaultdict(int)
    for entry in entries:
        minutes_per_day[entry.work_date] += entry.duration_minutes

    report.missing_days = [d for d in working_days_in_period(sheet) if d not in minutes_per_day]
    if report.missing_days:
        report.warnings.append(
            "Missing entries for working days: " + ", ".join(d.isoformat() for d in report.missing_days)
        )

    for day in sorted(minutes_per_day):
        hours = minutes_per_day[day] / 60
        if hours < rules.min_daily_hours:
            report.warnings.append(f"Very few hours recorded for {day.isoformat()}: {hours:.1f}h")
        elif hours > rules.max_daily_hours:
            report.warnings.append(f"Excessive hours recorded for {day.isoformat()}: {hours:.1f}h")

    totals = calculate_totals(entries)
    tolerance = rules.totals_tolerance_hours
    if (
        abs(totals.total_hours - (sheet.total_hours or 0)) > tolerance
        or abs(totals.total_billable_hours - (sheet.total_billable_hours or 0)) > tolerance
    ):
        report.errors.append("Timesheet totals do not match calculated values")

    return report


def detect_timesheet_anomalies(sheet: Timesheet, rules: ValidationRules) -> list[str]:
    """Flags computed from the cached totals, no entry access needed."""
    anomalies: list[str] = []
    total_hours = sheet.total_hours or 0
    billable_hours = sheet.total_billable_hours or 0

    work_days = len(working_days_in_period(sheet))
    average_daily = total_hours / work_days if work_days else 0
    if average_daily > rules.max_daily_hours:
        anomalies.append("excessive_daily_hours")
    if total_hours > 0 and average_daily < MIN_AVERAGE_DAILY_HOURS:
        anomalies.append("insufficient_daily_hours")

    if total_hours > 0 and billable_hours == 0:
        anomalies.append("no_billable_hours")

    average_rate = (sheet.total_cost or 0) / billable_hours if billable_hours else 0
    if average_rate > rules.max_hourly_rate:
        anomalies.append("high_hourly_rate")
    if 0 < average_rate < rules.min_hourly_rate:
        anomalies.append("low_hourly_rate")

    if period_length(sheet) > LONG_PERIOD_DAYS:
        anomalies.append("long_period")

    if sheet.submitted_at is not None:
        if (sheet.submitted_at.date() - sheet.period_end).days > LATE_SUBMISSION_DAYS:
            anomalies.append("late_submission")

    return anomalies


def validate_period_closure(sheet: Timesheet, entries: Sequence[TimeEntry]) -> ValidationResult:
    """Whether the period can be closed (locked) for payroll."""
    result = ValidationResult()
    if sheet.status not in ("approved", "locked"):
        result.error(f"Timesheet must be approved before closing the period (current status: {sheet.status})")
    open_entries = [e for e in entries if e.status in ("draft", "rejected")]
    if open_entries:
        result.error(f"{len(open_entries)} time entries are still in draft or rejected status")
    pending = [e for e in entries if e.status == "submitted"]
    if pending:
        result.warn(f"{len(pending)} time entries are still awaiting approval")
    return result
