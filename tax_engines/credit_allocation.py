"""
Module: tax_engines.credit_allocation
Responsibility:
    Apply capital-investment tax credits against a tax liability, oldest
    origin year first, within the carryforward window.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The stateful ledger
    (``tax_modules.capital_credit.service.CapitalCreditLedger``) loads the
    credits, calls ``allocate_fifo`` and persists the updated balances.

Invariants enforced:
    - Total applied never exceeds the liability nor the sum of consumed
      balances.
    - A credit is eligible only while ``expiry_year >= tax_year``, its
      remaining balance is positive and it is not flagged fully utilised.
    - Ordering is deterministic: ``origin_year`` ascending, then id.
    - Balances only go down.

Failure modes:
    - InputValidationError when the liability is negative.

Usage:
    from tax_engines.credit_allocation import allocate_fifo

    allocation = allocate_fifo(credits, tax_year=2026, tax_liability=Decimal("120"))
    allocation.remaining_tax
    [a.remaining_after for a in allocation.applications]
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol
from uuid import UUID

from tax_engines.tracer import traced_engine
from tax_kernel.domain.validation import IssueCollector
from tax_kernel.logging_config import get_logger

logger = get_logger("engines.credit_allocation")

ZERO = Decimal("0")


class CreditBalance(Protocol):
    """Shape of a ledger entry as seen by the allocator."""

    id: UUID
    origin_year: int
    remaining_amount: Decimal
    expiry_year: int
    fully_utilized: bool


@dataclass(frozen=True)
class CreditApplication:
    """
    Amount drawn from one credit during an allocation.

    Contract:
        ``remaining_after == remaining_before - amount_applied``.
    """

    credit_id: UUID
    origin_year: int
    amount_applied: Decimal
    remaining_before: Decimal
    remaining_after: Decimal

    @property
    def fully_utilized(self) -> bool:
        return self.remaining_after <= ZERO


@dataclass(frozen=True)
class FifoAllocation:
    tax_liability: Decimal
    credits_applied: Decimal
    remaining_tax: Decimal
    applications: tuple[CreditApplication, ...] = ()

    @property
    def credits_used(self) -> int:
        return len(self.applications)


def is_eligible(credit: CreditBalance, tax_year: int) -> bool:
    return (
        not credit.fully_utilized
        and credit.remaining_amount > ZERO
        and credit.expiry_year >= tax_year
    )


def eligible_credits(credits: Iterable[CreditBalance], tax_year: int) -> list[CreditBalance]:
    """Credits usable in ``tax_year``, oldest first."""
    usable = [c for c in credits if is_eligible(c, tax_year)]
    return sorted(usable, key=lambda c: (c.origin_year, str(c.id)))


def available_balance(credits: Iterable[CreditBalance], tax_year: int) -> Decimal:
    return sum((c.remaining_amount for c in eligible_credits(credits, tax_year)), ZERO)


@traced_engine("credit_allocation", "2026.1", fingerprint_fields=("tax_year", "tax_liability"))
def allocate_fifo(
    credits: Sequence[CreditBalance],
    tax_year: int,
    tax_liability: Decimal,
) -> FifoAllocation:
    """
    Draw credits against ``tax_liability`` until it is covered or the
    eligible credits run out.
    """
    if tax_liability < ZERO:
        issues = IssueCollector("CIT")
        issues.error(
            "tax_liability", "negative_amount",
            f"Tax liability cannot be negative, got {tax_liability}",
        )
        issues.result().raise_for_errors()

    remaining_tax = tax_liability
    applications: list[CreditApplication] = []

    for credit in eligible_credits(credits, tax_year):
        if remaining_tax <= ZERO:
            break
        to_apply = min(credit.remaining_amount, remaining_tax)
        remaining_tax -= to_apply
        applications.append(
            CreditApplication(
                credit_id=credit.id,
                origin_year=credit.origin_year,
                amount_applied=to_apply,
                remaining_before=credit.remaining_amount,
                remaining_after=credit.remaining_amount - to_apply,
            )
        )

    applied = tax_liability - remaining_tax

    logger.info("credit_allocation_completed", extra={
        "tax_year": tax_year,
        "tax_liability": str(tax_liability),
        "credits_applied": str(applied),
        "remaining_tax": str(remaining_tax),
        "credits_used": len(applications),
    })

    return FifoAllocation(
        tax_liability=tax_liability,
        credits_applied=applied,
        remaining_tax=remaining_tax,
        applications=tuple(applications),
    )
