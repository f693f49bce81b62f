"""
Capital Credit Domain Models (``tax_modules.capital_credit.models``).

Responsibility
--------------
Frozen value objects for the capital-investment credit ledger: one
``CapitalCredit`` per qualifying expenditure, and the ``CreditAllocation``
summary returned when credits are drawn against a liability.

Architecture position
---------------------
**Modules layer** -- pure data definitions.  No I/O, no database.

Invariants enforced
-------------------
* ``0 <= remaining_amount <= original_amount``.
* ``fully_utilized`` is True exactly when ``remaining_amount == 0``.
* All monetary fields are ``Decimal``.

Failure modes
-------------
* ``ValueError`` raised in ``__post_init__`` when a balance invariant is
  violated.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

ZERO = Decimal("0")


@dataclass(frozen=True)
class CapitalCredit:
    """A carryforward ledger entry earned on one capital expenditure."""

    id: UUID
    business_id: UUID
    origin_year: int
    original_amount: Decimal
    remaining_amount: Decimal
    expiry_year: int
    expenditure_amount: Decimal
    fully_utilized: bool = False
    last_applied_year: int | None = None
    description: str | None = None
    supplier_name: str | None = None
    supplier_tin: str | None = None
    expenditure_date: date | None = None

    def __post_init__(self) -> None:
        if self.remaining_amount < ZERO:
            raise ValueError(f"Credit {self.id}: remaining amount cannot be negative")
        if self.remaining_amount > self.original_amount:
            raise ValueError(f"Credit {self.id}: remaining amount exceeds original amount")
        if self.fully_utilized != (self.remaining_amount == ZERO):
            raise ValueError(
                f"Credit {self.id}: fully_utilized must match a zero remaining balance"
            )

    @property
    def applied_amount(self) -> Decimal:
        return self.original_amount - self.remaining_amount

    @property
    def is_untouched(self) -> bool:
        """Nothing has been drawn from this credit yet."""
        return self.remaining_amount == self.original_amount and self.last_applied_year is None

    def is_expired(self, tax_year: int) -> bool:
        return tax_year > self.expiry_year


@dataclass(frozen=True)
class CreditUsage:
    credit_id: UUID
    origin_year: int
    amount_applied: Decimal
    remaining_amount: Decimal


@dataclass(frozen=True)
class CreditAllocation:
    """Outcome of drawing a business's credits against one year's liability."""

    business_id: UUID
    tax_year: int
    tax_liability: Decimal
    credits_applied: Decimal
    remaining_tax: Decimal
    credits_used: tuple[CreditUsage, ...] = ()
