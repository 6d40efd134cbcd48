from dataclasses import dataclass, field

from app.core.audit.service import AuditTrail
from app.core.calendar import Clock, SystemClock
from app.core.presence.repository import PresenceStore
from app.core.projects.catalog import ProjectCatalog
from app.core.time_entries.repository import TimeEntryStore
from app.core.timesheets.repository import TimesheetStore
from app.core.validation.rules import DEFAULT_RULES, ValidationRules


@dataclass(frozen=True)
class Engine:
    """
    Collaborators of one request or batch run.
    Service functions take this as their first argument, the way db-level
    functions take an AsyncSession.
    """
    entries: TimeEntryStore
    timesheets: TimesheetStore
    presence: PresenceStore
    catalog: ProjectCatalog
    audit: AuditTrail
    rules: ValidationRules = DEFAULT_RULES
    clock: Clock = field(default_factory=SystemClock)
