"""
Capital Credit Ledger (``tax_modules.capital_credit.service``).

Responsibility:
    Stateful facade over the carryforward ledger.  Records credits earned
    on capital expenditure, previews and applies them against a liability
    (FIFO, delegated to ``tax_engines.credit_allocation``), and persists
    every mutated entry.

Architecture:
    tax_modules -- Thin glue (this layer).
    1. Calls ``ReliefCalculator`` for the credit amount and expiry year.
    2. Calls ``allocate_fifo`` for ordering and amounts (pure).
    3. Persists through the injected ``Repository[CapitalCredit]``.

Invariants:
    - ``expiry_year = origin_year + carryforward_years``.
    - ``remaining_amount`` never increases after a credit is first used.
    - Amount edits and deletes are refused once any amount was drawn.

Failure modes:
    - InputValidationError for a non-positive expenditure.
    - CreditNotFoundError for an unknown credit id.
    - CreditAlreadyAppliedError when editing or deleting a used credit.

Concurrency:
    ``allocate`` is not internally synchronised.  Callers serialise
    allocation per business.

Usage:
    ledger = CapitalCreditLedger(InMemoryRepository())
    credit = ledger.record_expenditure(business_id, Decimal("10000000"), 2026)
    credit.original_amount   # Decimal("500000.00"), expiring 2031
    allocation = ledger.allocate(business_id, 2027, Decimal("120000"))
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from tax_config import load_tax_year
from tax_config.schema import TaxYearConfig
from tax_engines.computation.types import report_money
from tax_engines.credit_allocation import allocate_fifo, eligible_credits
from tax_engines.reliefs import ReliefCalculator
from tax_kernel.domain.repositories import Repository
from tax_kernel.domain.validation import IssueCollector
from tax_kernel.exceptions import CreditAlreadyAppliedError, CreditNotFoundError
from tax_kernel.logging_config import get_logger
from tax_modules.capital_credit.models import (
    ZERO,
    CapitalCredit,
    CreditAllocation,
    CreditUsage,
)

logger = get_logger("modules.capital_credit.service")

_UNSET = object()


class CapitalCreditLedger:
    """
    Capital-investment credit carryforward ledger.

    Contract:
        Callers supply a ``Repository[CapitalCredit]`` and optionally a
        ``config_provider`` returning the ``TaxYearConfig`` for a year.
        The repository's transaction is owned by the caller.

    Guarantees:
        - Applied credits never exceed the liability nor the consumed
          balances.
        - Expired entries are skipped at query time; nothing sweeps them.

    Non-goals:
        - Does not decide when credits are applied; the return assembler
          (or the caller) does.
    """

    def __init__(
        self,
        repository: Repository[CapitalCredit],
        config_provider: Callable[[int], TaxYearConfig] = load_tax_year,
    ):
        self._credits = repository
        self._config_provider = config_provider

    # =========================================================================
    # Recording
    # =========================================================================

    def record_expenditure(
        self,
        business_id: UUID,
        amount: Decimal,
        tax_year: int,
        *,
        description: str | None = None,
        supplier_name: str | None = None,
        supplier_tin: str | None = None,
        expenditure_date: date | None = None,
    ) -> CapitalCredit:
        """Create the ledger entry earned by one qualifying expenditure."""
        self._require_positive(amount)
        calculator = ReliefCalculator(self._config_provider(tax_year))
        credit_amount = report_money(calculator.capital_credit_amount(amount))

        credit = CapitalCredit(
            id=uuid4(),
            business_id=business_id,
            origin_year=tax_year,
            original_amount=credit_amount,
            remaining_amount=credit_amount,
            expiry_year=calculator.credit_expiry_year(tax_year),
            expenditure_amount=amount,
            fully_utilized=credit_amount == ZERO,
            description=description,
            supplier_name=supplier_name,
            supplier_tin=supplier_tin,
            expenditure_date=expenditure_date,
        )
        self._credits.save(credit)

        logger.info("capital_credit_recorded", extra={
            "credit_id": str(credit.id),
            "business_id": str(business_id),
            "origin_year": tax_year,
            "expenditure_amount": str(amount),
            "credit_amount": str(credit_amount),
            "expiry_year": credit.expiry_year,
        })
        return credit

    def update_expenditure(
        self,
        credit_id: UUID,
        *,
        amount: Decimal | None = None,
        description=_UNSET,
        supplier_name=_UNSET,
        supplier_tin=_UNSET,
        expenditure_date=_UNSET,
    ) -> CapitalCredit:
        """
        Edit the expenditure behind a credit.

        A new ``amount`` recomputes the credit and is only accepted while
        nothing has been drawn.  Descriptive fields may change at any time.
        """
        credit = self.get_credit(credit_id)
        changes: dict = {}

        if amount is not None and amount != credit.expenditure_amount:
            if not credit.is_untouched:
                logger.warning("capital_credit_update_refused", extra={
                    "credit_id": str(credit_id),
                    "applied_amount": str(credit.applied_amount),
                })
                raise CreditAlreadyAppliedError(
                    str(credit_id), str(credit.applied_amount), "update_expenditure",
                )
            self._require_positive(amount)
            calculator = ReliefCalculator(self._config_provider(credit.origin_year))
            credit_amount = report_money(calculator.capital_credit_amount(amount))
            changes.update(
                expenditure_amount=amount,
                original_amount=credit_amount,
                remaining_amount=credit_amount,
                fully_utilized=credit_amount == ZERO,
            )

        for name, value in (
            ("description", description),
            ("supplier_name", supplier_name),
            ("supplier_tin", supplier_tin),
            ("expenditure_date", expenditure_date),
        ):
            if value is not _UNSET:
                changes[name] = value

        if not changes:
            return credit

        updated = replace(credit, **changes)
        self._credits.save(updated)
        logger.info("capital_credit_updated", extra={
            "credit_id": str(credit_id),
            "fields": sorted(changes),
            "credit_amount": str(updated.original_amount),
        })
        return updated

    def delete_credit(self, credit_id: UUID) -> None:
        credit = self.get_credit(credit_id)
        if not credit.is_untouched:
            raise CreditAlreadyAppliedError(
                str(credit_id), str(credit.applied_amount), "delete_credit",
            )
        self._credits.remove(credit)
        logger.info("capital_credit_deleted", extra={
            "credit_id": str(credit_id),
            "business_id": str(credit.business_id),
        })

    # =========================================================================
    # Queries
    # =========================================================================

    def get_credit(self, credit_id: UUID) -> CapitalCredit:
        credit = self._credits.find_one(id=credit_id)
        if credit is None:
            raise CreditNotFoundError(str(credit_id))
        return credit

    def list_credits(self, business_id: UUID) -> list[CapitalCredit]:
        """Every entry for the business, oldest first, used and expired included."""
        credits = self._credits.find(business_id=business_id)
        return sorted(credits, key=lambda c: (c.origin_year, str(c.id)))

    def available_credits(self, business_id: UUID, tax_year: int) -> list[CapitalCredit]:
        """Entries that ``allocate`` would draw from in ``tax_year``, in FIFO order."""
        return eligible_credits(self._credits.find(business_id=business_id), tax_year)

    def available_balance(self, business_id: UUID, tax_year: int) -> Decimal:
        return sum(
            (c.remaining_amount for c in self.available_credits(business_id, tax_year)),
            ZERO,
        )

    # =========================================================================
    # Allocation
    # =========================================================================

    def allocate(
        self,
        business_id: UUID,
        tax_year: int,
        tax_liability: Decimal,
    ) -> CreditAllocation:
        """Draw credits against ``tax_liability`` oldest first and persist each entry."""
        candidates = self._credits.find(business_id=business_id, fully_utilized=False)
        fifo = allocate_fifo(candidates, tax_year, tax_liability)
        by_id = {c.id: c for c in candidates}

        usages: list[CreditUsage] = []
        for application in fifo.applications:
            credit = by_id[application.credit_id]
            updated = replace(
                credit,
                remaining_amount=application.remaining_after,
                fully_utilized=application.fully_utilized,
                last_applied_year=tax_year,
            )
            self._credits.save(updated)
            usages.append(
                CreditUsage(
                    credit_id=credit.id,
                    origin_year=credit.origin_year,
                    amount_applied=application.amount_applied,
                    remaining_amount=application.remaining_after,
                )
            )
            logger.info("capital_credit_applied", extra={
                "credit_id": str(credit.id),
                "business_id": str(business_id),
                "tax_year": tax_year,
                "amount_applied": str(application.amount_applied),
                "remaining_amount": str(application.remaining_after),
                "fully_utilized": application.fully_utilized,
            })

        logger.info("capital_credits_allocated", extra={
            "business_id": str(business_id),
            "tax_year": tax_year,
            "tax_liability": str(tax_liability),
            "credits_applied": str(fifo.credits_applied),
            "remaining_tax": str(fifo.remaining_tax),
            "credits_used": len(usages),
        })

        return CreditAllocation(
            business_id=business_id,
            tax_year=tax_year,
            tax_liability=tax_liability,
            credits_applied=fifo.credits_applied,
            remaining_tax=fifo.remaining_tax,
            credits_used=tuple(usages),
        )

    @staticmethod
    def _require_positive(amount: Decimal) -> None:
        if amount <= ZERO:
            issues = IssueCollector("CIT")
            issues.error(
                "expenditure_amount", "not_positive",
                "Capital expenditure amount must be greater than zero",
            )
            issues.result().raise_for_errors()
