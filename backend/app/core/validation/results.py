import uuid
from dataclasses import dataclass, field


@dataclass
class ValidationResult:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def merge(self, *others: "ValidationResult") -> "ValidationResult":
        for other in others:
            self.errors.extend(other.errors)
            self.warnings.extend(other.warnings)
        return self


@dataclass(frozen=True)
class ConflictInfo:
    existing_entry_id: uuid.UUID
    conflict_details: str
    suggested_resolution: str = "Adjust time range to avoid overlap"
    conflict_type: str = "overlap"
