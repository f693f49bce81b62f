"""
Tax Return Assembler (``tax_modules.tax_return.service``).

Responsibility:
    Builds a tax return from the taxpayer's recorded income and stored
    documents, keeps its documentation status current, and drives it
    through the filing lifecycle declared in ``TAX_RETURN_WORKFLOW``.

Architecture:
    tax_modules -- Thin glue (this layer).
    1. Income records and business profiles come from injected
       repositories; documents from a ``DocumentSource``.
    2. ``TaxCalculationService`` validates and computes the liability.
    3. ``categorize_documents`` / ``validate_documentation`` decide
       completeness (pure).
    4. ``CapitalCreditLedger`` optionally draws credits at filing time.

Invariants:
    - At most one non-filed return per ``(user, business, tax_year, tax_type)``;
      regenerating replaces it in place.
    - A filed, accepted or rejected return is never updated or deleted.
    - ``tax_due = max(0, tax_liability - tax_paid - credits_applied)``.

Failure modes:
    - UnsupportedTaxTypeError for tax types other than PIT and CIT.
    - BusinessNotFoundError when a CIT return names an unknown business.
    - ReturnAlreadyFiledError when a filed return exists for the key, or
      when filing twice.
    - ReturnImmutableError on update/delete of a filed return.
    - ReturnNotReadyError when filing with missing documents or errors.
    - InvalidTransitionError for an action not allowed from the status.
    - TaxReturnNotFoundError for an unknown return id.
    - CollaboratorNotConfiguredError when drawing credits without a ledger.

Usage:
    assembler = TaxReturnAssembler(
        returns=InMemoryRepository(),
        income_records=InMemoryRepository(records),
        businesses=InMemoryRepository(),
        documents=InMemoryDocumentSource(docs),
        clock=DeterministicClock(),
    )
    tax_return = assembler.generate(user_id, 2026, TaxType.PIT)
    filed = assembler.submit(tax_return.id)
    filed.reference_number   # "FIRS-PIT-2026-1A2B3C4D5E"
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from decimal import Decimal
from uuid import UUID, uuid4

from tax_config import load_tax_year
from tax_config.schema import TaxYearConfig
from tax_engines.computation import TaxComputationEngine, TaxComputationResult, TaxType
from tax_engines.computation.types import report_money
from tax_kernel.domain.clock import Clock, SystemClock
from tax_kernel.domain.repositories import DocumentSource, Repository
from tax_kernel.domain.validation import IssueCollector
from tax_kernel.exceptions import (
    BusinessNotFoundError,
    CollaboratorNotConfiguredError,
    InvalidTransitionError,
    ReturnAlreadyFiledError,
    ReturnImmutableError,
    ReturnNotReadyError,
    TaxReturnNotFoundError,
    UnsupportedTaxTypeError,
)
from tax_kernel.logging_config import LogContext, get_logger
from tax_modules.capital_credit.service import CapitalCreditLedger
from tax_modules.computation.models import (
    BusinessProfile,
    IncomeRecord,
    PersonalReliefClaims,
)
from tax_modules.computation.service import TaxCalculationService
from tax_modules.tax_return.documents import categorize_documents, validate_documentation
from tax_modules.tax_return.models import ZERO, TaxReturn, TaxReturnStatus
from tax_modules.tax_return.workflows import TAX_RETURN_WORKFLOW

logger = get_logger("modules.tax_return.service")

SUPPORTED_RETURN_TYPES = (TaxType.PIT, TaxType.CIT)
REFERENCE_PREFIX = "FIRS"

# Actions driven by reviewers and the revenue service rather than by filing.
EXTERNAL_ACTIONS = frozenset({
    "submit_for_review",
    "request_changes",
    "approve",
    "accept",
    "reject",
})


def compute_tax_due(tax_liability: Decimal, tax_paid: Decimal, credits_applied: Decimal) -> Decimal:
    return max(ZERO, tax_liability - tax_paid - credits_applied)


def generate_reference_number(tax_type: TaxType, tax_year: int) -> str:
    return f"{REFERENCE_PREFIX}-{tax_type.value}-{tax_year}-{uuid4().hex[:10].upper()}"


class TaxReturnAssembler:
    """
    Assembles, maintains and files tax returns.

    Contract:
        All collaborators are injected; the repositories' transaction is
        owned by the caller.  ``ledger`` is only needed when filing with
        ``apply_capital_credits=True``.

    Guarantees:
        - Every stored return carries a documentation check that matches
          its current figures and documents.
        - Submission dates come from the injected clock.

    Non-goals:
        - PDF rendering, notification and audit logging of filings; those
          belong to the callers.
    """

    def __init__(
        self,
        returns: Repository[TaxReturn],
        income_records: Repository[IncomeRecord],
        businesses: Repository[BusinessProfile],
        documents: DocumentSource,
        config_provider: Callable[[int], TaxYearConfig] = load_tax_year,
        clock: Clock | None = None,
        engine: TaxComputationEngine | None = None,
        ledger: CapitalCreditLedger | None = None,
    ):
        self._returns = returns
        self._income_records = income_records
        self._businesses = businesses
        self._documents = documents
        self._config_provider = config_provider
        self._clock = clock or SystemClock()
        self._calculations = TaxCalculationService(
            config_provider=config_provider,
            clock=self._clock,
            engine=engine,
        )
        self._ledger = ledger
        self._workflow = TAX_RETURN_WORKFLOW

    # =========================================================================
    # Generation
    # =========================================================================

    def generate(
        self,
        user_id: UUID,
        tax_year: int,
        tax_type: TaxType | str,
        business_id: UUID | None = None,
        pit_details: PersonalReliefClaims | None = None,
    ) -> TaxReturn:
        """
        Compute a return from recorded income and save it as a draft.

        PIT sums the user's income records not attributed to a business;
        CIT sums the records attributed to ``business_id``.
        """
        tax_type = TaxType(tax_type)
        if tax_type not in SUPPORTED_RETURN_TYPES:
            raise UnsupportedTaxTypeError(tax_type.value, "generate_return")

        with LogContext.bind(user_id=user_id, business_id=business_id):
            return self._generate(user_id, tax_year, tax_type, business_id, pit_details)

    def _generate(
        self,
        user_id: UUID,
        tax_year: int,
        tax_type: TaxType,
        business_id: UUID | None,
        pit_details: PersonalReliefClaims | None,
    ) -> TaxReturn:
        existing = self._returns.find_one(
            user_id=user_id,
            business_id=business_id,
            tax_year=tax_year,
            tax_type=tax_type,
        )
        if existing is not None and existing.is_immutable:
            logger.warning("tax_return_generation_refused", extra={
                "return_id": str(existing.id),
                "status": existing.status.value,
            })
            raise ReturnAlreadyFiledError(str(existing.id), existing.reference_number)

        config = self._config_provider(tax_year)
        if tax_type == TaxType.PIT:
            records = self._income_records.find(user_id=user_id, tax_year=tax_year, business_id=None)
            total_income = sum((r.amount for r in records), ZERO)
            inp = (pit_details or PersonalReliefClaims()).to_input(total_income, tax_year)
        else:
            business = self._business_for(user_id, business_id)
            records = self._income_records.find(user_id=user_id, tax_year=tax_year, business_id=business.id)
            total_income = sum((r.amount for r in records), ZERO)
            inp = business.to_input(total_income, tax_year)

        result = self._calculations.calculate(inp, user_id=user_id, business_id=business_id).result
        supporting = categorize_documents(
            self._documents.get_documents_for_owner(user_id, tax_year=tax_year)
        )

        tax_return = self._with_documentation(
            TaxReturn(
                id=existing.id if existing else uuid4(),
                user_id=user_id,
                tax_year=tax_year,
                tax_type=tax_type,
                business_id=business_id,
                tax_paid=existing.tax_paid if existing else ZERO,
                notes=existing.notes if existing else None,
            ),
            config,
            result=result,
            supporting_documents=supporting,
        )
        self._returns.save(tax_return)

        logger.info("tax_return_generated", extra={
            "return_id": str(tax_return.id),
            "tax_type": tax_type.value,
            "tax_year": tax_year,
            "income_records": len(records),
            "total_income": str(tax_return.total_income),
            "tax_liability": str(tax_return.tax_liability),
            "documentation_complete": tax_return.documentation_complete,
            "replaced_draft": existing is not None,
        })
        return tax_return

    # =========================================================================
    # Maintenance
    # =========================================================================

    def update(
        self,
        return_id: UUID,
        *,
        tax_paid: Decimal | None = None,
        notes: str | None = None,
        supporting_documents: dict[str, list[str]] | None = None,
    ) -> TaxReturn:
        tax_return = self._mutable(return_id, "update")
        if tax_paid is not None and tax_paid < ZERO:
            issues = IssueCollector(tax_return.tax_type.value)
            issues.error("tax_paid", "negative_amount", "Tax paid cannot be negative")
            issues.result().raise_for_errors()

        changes: dict = {}
        if tax_paid is not None:
            changes["tax_paid"] = tax_paid
        if notes is not None:
            changes["notes"] = notes
        updated = self._with_documentation(
            replace(tax_return, **changes),
            self._config_provider(tax_return.tax_year),
            supporting_documents=supporting_documents,
        )
        self._returns.save(updated)

        logger.info("tax_return_updated", extra={
            "return_id": str(return_id),
            "fields": sorted(changes) + (["supporting_documents"] if supporting_documents is not None else []),
            "tax_due": str(updated.tax_due),
            "documentation_complete": updated.documentation_complete,
        })
        return updated

    def refresh_documentation(self, return_id: UUID) -> TaxReturn:
        """Re-read the taxpayer's documents and re-run the documentation check."""
        tax_return = self._mutable(return_id, "refresh_documentation")
        supporting = categorize_documents(
            self._documents.get_documents_for_owner(tax_return.user_id, tax_year=tax_return.tax_year)
        )
        updated = self._with_documentation(
            tax_return,
            self._config_provider(tax_return.tax_year),
            supporting_documents=supporting,
        )
        self._returns.save(updated)
        logger.info("tax_return_documentation_refreshed", extra={
            "return_id": str(return_id),
            "documentation_complete": updated.documentation_complete,
            "missing_documents": list(updated.missing_documents),
        })
        return updated

    def delete(self, return_id: UUID) -> None:
        tax_return = self._mutable(return_id, "delete")
        self._returns.remove(tax_return)
        logger.info("tax_return_deleted", extra={
            "return_id": str(return_id),
            "status": tax_return.status.value,
        })

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def submit(self, return_id: UUID, apply_capital_credits: bool = False) -> TaxReturn:
        """File the return, optionally drawing capital credits against a CIT liability."""
        with LogContext.bind(return_id=return_id):
            return self._submit(return_id, apply_capital_credits)

    def _submit(self, return_id: UUID, apply_capital_credits: bool) -> TaxReturn:
        tax_return = self.get(return_id)
        if tax_return.is_immutable:
            raise ReturnAlreadyFiledError(str(return_id), tax_return.reference_number)

        transition = self._workflow.transition_for(tax_return.status.value, "file")
        if not tax_return.is_ready:
            logger.warning("tax_return_not_ready", extra={
                "return_id": str(return_id),
                "missing_documents": list(tax_return.missing_documents),
                "validation_errors": list(tax_return.validation_errors),
            })
            raise ReturnNotReadyError(
                str(return_id), tax_return.missing_documents, tax_return.validation_errors,
            )

        credits_applied = tax_return.credits_applied
        if apply_capital_credits:
            credits_applied += self._apply_credits(tax_return)

        filed = replace(
            tax_return,
            status=TaxReturnStatus(transition.to_state),
            credits_applied=credits_applied,
            tax_due=compute_tax_due(tax_return.tax_liability, tax_return.tax_paid, credits_applied),
            submitted=True,
            submission_date=self._clock.now(),
            reference_number=generate_reference_number(tax_return.tax_type, tax_return.tax_year),
        )
        self._returns.save(filed)

        logger.info("tax_return_filed", extra={
            "return_id": str(return_id),
            "reference_number": filed.reference_number,
            "tax_type": filed.tax_type.value,
            "tax_year": filed.tax_year,
            "tax_liability": str(filed.tax_liability),
            "credits_applied": str(filed.credits_applied),
            "tax_due": str(filed.tax_due),
        })
        return filed

    def transition(self, return_id: UUID, action: str, reason: str | None = None) -> TaxReturn:
        """Apply a reviewer or regulator action.  Filing goes through ``submit``."""
        if action == "file":
            return self.submit(return_id)

        tax_return = self.get(return_id)
        if action not in EXTERNAL_ACTIONS:
            raise InvalidTransitionError(self._workflow.name, tax_return.status.value, action)
        transition = self._workflow.transition_for(tax_return.status.value, action)

        changes: dict = {"status": TaxReturnStatus(transition.to_state)}
        if action == "reject":
            changes["rejection_reason"] = reason
        updated = replace(tax_return, **changes)
        self._returns.save(updated)

        logger.info("tax_return_transitioned", extra={
            "return_id": str(return_id),
            "action": action,
            "from_status": transition.from_state,
            "to_status": transition.to_state,
            "reason": reason,
        })
        return updated

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, return_id: UUID) -> TaxReturn:
        tax_return = self._returns.find_one(id=return_id)
        if tax_return is None:
            raise TaxReturnNotFoundError(str(return_id))
        return tax_return

    def list_returns(self, user_id: UUID, tax_year: int | None = None) -> list[TaxReturn]:
        criteria: dict = {"user_id": user_id}
        if tax_year is not None:
            criteria["tax_year"] = tax_year
        returns = self._returns.find(**criteria)
        return sorted(returns, key=lambda r: (r.tax_year, r.tax_type.value), reverse=True)

    # =========================================================================
    # Internals
    # =========================================================================

    def _business_for(self, user_id: UUID, business_id: UUID | None) -> BusinessProfile:
        if business_id is None:
            issues = IssueCollector(TaxType.CIT.value)
            issues.error("business_id", "required", "A business is required for a company income tax return")
            issues.result().raise_for_errors()
        business = self._businesses.find_one(id=business_id, owner_id=user_id)
        if business is None:
            raise BusinessNotFoundError(str(business_id))
        return business

    def _mutable(self, return_id: UUID, operation: str) -> TaxReturn:
        tax_return = self.get(return_id)
        if tax_return.is_immutable:
            logger.warning("tax_return_mutation_refused", extra={
                "return_id": str(return_id),
                "status": tax_return.status.value,
                "operation": operation,
            })
            raise ReturnImmutableError(str(return_id), tax_return.status.value, operation)
        return tax_return

    def _apply_credits(self, tax_return: TaxReturn) -> Decimal:
        if tax_return.tax_type != TaxType.CIT:
            raise UnsupportedTaxTypeError(tax_return.tax_type.value, "apply_capital_credits")
        if self._ledger is None:
            raise CollaboratorNotConfiguredError(
                "TaxReturnAssembler", "capital credit ledger", "apply_capital_credits",
            )
        outstanding = compute_tax_due(
            tax_return.tax_liability, tax_return.tax_paid, tax_return.credits_applied,
        )
        allocation = self._ledger.allocate(tax_return.business_id, tax_return.tax_year, outstanding)
        return report_money(allocation.credits_applied)

    def _with_documentation(
        self,
        tax_return: TaxReturn,
        config: TaxYearConfig,
        *,
        result: TaxComputationResult | None = None,
        supporting_documents: dict[str, list[str]] | None = None,
    ) -> TaxReturn:
        """Apply new figures and/or documents, then recompute tax due and the documentation check."""
        if result is not None:
            tax_return = replace(
                tax_return,
                total_income=result.gross_income,
                total_deductions=result.deductions,
                total_reliefs=result.total_reliefs,
                reliefs=dict(result.reliefs),
                taxable_income=result.taxable_income,
                tax_liability=result.tax_liability,
                credits_applied=ZERO,
                status=TaxReturnStatus.DRAFT,
                calculation_breakdown=result.to_dict(),
            )
        if supporting_documents is not None:
            tax_return = replace(tax_return, supporting_documents=supporting_documents)

        check = validate_documentation(
            tax_return.tax_type,
            tax_return.total_income,
            tax_return.tax_liability,
            tax_return.reliefs,
            tax_return.supporting_documents,
            config.pit.tax_free_threshold,
        )
        return replace(
            tax_return,
            tax_due=compute_tax_due(tax_return.tax_liability, tax_return.tax_paid, tax_return.credits_applied),
            documentation_complete=check.documentation_complete,
            missing_documents=check.missing_documents,
            validation_errors=check.validation_errors,
        )
