"""
Tax Return Domain Models (``tax_modules.tax_return.models``).

Responsibility
--------------
Frozen value objects for a tax return and the supporting documents that
back its claims.

Architecture position
---------------------
**Modules layer** -- pure data definitions.  These objects flow into and
out of ``TaxReturnAssembler`` as immutable snapshots.

Invariants enforced
-------------------
* ``TaxReturnStatus`` values align with ``workflows.TAX_RETURN_WORKFLOW.states``.
* A return in an immutable status (filed, accepted, rejected) is never
  replaced by the assembler.
* ``calculation_breakdown`` is JSON-safe (Decimals as strings).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from tax_engines.computation.types import TaxType

ZERO = Decimal("0")


class TaxReturnStatus(str, Enum):
    """Return lifecycle states.  Must align with ``TAX_RETURN_WORKFLOW.states``."""

    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    READY_TO_FILE = "ready_to_file"
    FILED = "filed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


IMMUTABLE_STATUSES = frozenset({
    TaxReturnStatus.FILED,
    TaxReturnStatus.ACCEPTED,
    TaxReturnStatus.REJECTED,
})


@dataclass(frozen=True)
class Document:
    """A stored supporting document, as returned by the document source."""

    id: UUID
    owner_id: UUID
    document_type: str
    file_url: str
    tax_year: int | None = None
    name: str | None = None


@dataclass(frozen=True)
class TaxReturn:
    id: UUID
    user_id: UUID
    tax_year: int
    tax_type: TaxType
    business_id: UUID | None = None
    total_income: Decimal = ZERO
    total_deductions: Decimal = ZERO
    total_reliefs: Decimal = ZERO
    reliefs: dict[str, Decimal] = field(default_factory=dict)
    taxable_income: Decimal = ZERO
    tax_liability: Decimal = ZERO
    credits_applied: Decimal = ZERO
    tax_paid: Decimal = ZERO
    tax_due: Decimal = ZERO
    status: TaxReturnStatus = TaxReturnStatus.DRAFT
    supporting_documents: dict[str, list[str]] = field(default_factory=dict)
    calculation_breakdown: dict[str, Any] = field(default_factory=dict)
    documentation_complete: bool = False
    missing_documents: tuple[str, ...] = ()
    validation_errors: tuple[str, ...] = ()
    submitted: bool = False
    submission_date: datetime | None = None
    reference_number: str | None = None
    notes: str | None = None
    rejection_reason: str | None = None

    @property
    def is_immutable(self) -> bool:
        return self.status in IMMUTABLE_STATUSES

    @property
    def is_ready(self) -> bool:
        return self.documentation_complete and not self.validation_errors
