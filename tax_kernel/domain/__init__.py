"""
Pure domain layer.

Value objects and contracts with NO dependencies on the ORM, the database
or wall-clock time.  Everything here is immutable and deterministic.
"""

from tax_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from tax_kernel.domain.repositories import (
    DocumentSource,
    InMemoryDocumentSource,
    InMemoryRepository,
    Repository,
)
from tax_kernel.domain.validation import (
    FieldIssue,
    IssueCollector,
    Severity,
    ValidationResult,
)
from tax_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "DocumentSource",
    "InMemoryDocumentSource",
    "InMemoryRepository",
    "Repository",
    "FieldIssue",
    "IssueCollector",
    "Severity",
    "ValidationResult",
    "Guard",
    "Transition",
    "Workflow",
]
