from dataclasses import dataclass, field

from claimdocs.documents.models import ValidationIssue


@dataclass
class IssueCollector:
    """Shared accumulator for all validation stages."""

    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    def error(self, field_name: str, message: str, code: str) -> None:
        self.errors.append(ValidationIssue(field=field_name, message=message, code=code))

    def warning(self, field_name: str, message: str, code: str) -> None:
        self.warnings.append(ValidationIssue(field=field_name, message=message, code=code))

    def has_error(self, field_name: str, code: str) -> bool:
        return any(e.field == field_name and e.code == code for e in self.errors)

    def discard_errors(self, field_name: str, code: str) -> None:
        self.errors = [e for e in self.errors if not (e.field == field_name and e.code == code)]
