"""
ValidationResult -- Structured outcome of business-rule checks.

Responsibility:
    Carry every field-level problem found by a validation pass so the
    caller can surface all of them at once.  Expected validation outcomes
    are returned as values; ``raise_for_errors()`` converts a failed result
    into an InputValidationError at the point where computation must stop.

Architecture position:
    Kernel > Domain -- pure value objects, zero I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from tax_kernel.exceptions import InputValidationError


class Severity(str, Enum):
    """Whether an issue blocks computation."""

    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class FieldIssue:
    """One problem attached to one input field."""

    field: str
    code: str
    message: str
    severity: Severity = Severity.ERROR

    @property
    def is_error(self) -> bool:
        return self.severity == Severity.ERROR


@dataclass(frozen=True)
class ValidationResult:
    """
    Tagged outcome of a validation pass.

    Contract:
        ``is_valid`` is True exactly when no ERROR-severity issue is present.
        Warnings never affect validity.
    """

    tax_type: str
    issues: tuple[FieldIssue, ...] = ()

    @property
    def errors(self) -> tuple[FieldIssue, ...]:
        return tuple(i for i in self.issues if i.severity == Severity.ERROR)

    @property
    def warnings(self) -> tuple[FieldIssue, ...]:
        return tuple(i for i in self.issues if i.severity == Severity.WARNING)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def messages(self, severity: Severity = Severity.ERROR) -> tuple[str, ...]:
        return tuple(i.message for i in self.issues if i.severity == severity)

    def raise_for_errors(self) -> ValidationResult:
        """Return self when valid, else raise with every error attached."""
        if not self.is_valid:
            raise InputValidationError(self.tax_type, self.errors)
        return self


class IssueCollector:
    """Mutable accumulator used while a validator walks its rules."""

    def __init__(self, tax_type: str):
        self._tax_type = tax_type
        self._issues: list[FieldIssue] = []

    def error(self, field: str, code: str, message: str) -> None:
        self._issues.append(FieldIssue(field, code, message, Severity.ERROR))

    def warning(self, field: str, code: str, message: str) -> None:
        self._issues.append(FieldIssue(field, code, message, Severity.WARNING))

    def result(self) -> ValidationResult:
        return ValidationResult(self._tax_type, tuple(self._issues))
