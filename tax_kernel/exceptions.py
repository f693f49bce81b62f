"""
Typed Exception Hierarchy for the Tax Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A tax engine must tell its callers precisely what went wrong. Generic
exceptions like ValueError force callers to parse error messages, which
breaks as soon as the wording changes.

Every error in this package therefore:
  1. Has a TYPED exception class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

Example:
    try:
        assembler.update(return_id, tax_paid=Decimal("1000"))
    except ReturnImmutableError as e:
        api_response(code=e.code, return_id=e.return_id, status=e.status)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    TaxKernelError (base)
    |
    +-- ValidationFailure
    |   +-- InputValidationError
    |   +-- UnsupportedTaxTypeError
    |
    +-- NotFoundFailure
    |   +-- BusinessNotFoundError
    |   +-- CreditNotFoundError
    |   +-- TaxReturnNotFoundError
    |   +-- ConfigNotFoundError
    |
    +-- ConflictFailure
    |   +-- ReturnImmutableError
    |   +-- ReturnAlreadyFiledError
    |   +-- ReturnNotReadyError
    |   +-- InvalidTransitionError
    |   +-- CreditAlreadyAppliedError
    |
    +-- ComputationInvariantError
    |   +-- BracketCoverageError
    |   +-- NegativeTaxableIncomeError
    |
    +-- CollaboratorNotConfiguredError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                       | When Raised
-------------|----------------------------|------------------------------------------
Validation   | INPUT_VALIDATION_FAILED    | One or more field-level rule violations
             | UNSUPPORTED_TAX_TYPE       | Operation not defined for the tax type
-------------|----------------------------|------------------------------------------
NotFound     | BUSINESS_NOT_FOUND         | Business profile does not exist
             | CREDIT_NOT_FOUND           | Capital credit entry does not exist
             | TAX_RETURN_NOT_FOUND       | Tax return does not exist
             | CONFIG_NOT_FOUND           | No configuration for (tax_year, key)
-------------|----------------------------|------------------------------------------
Conflict     | RETURN_IMMUTABLE           | Mutating a filed/accepted/rejected return
             | RETURN_ALREADY_FILED       | Re-submitting or regenerating a filed return
             | RETURN_NOT_READY           | Submitting with missing docs or errors
             | INVALID_TRANSITION         | Workflow action not allowed from state
             | CREDIT_ALREADY_APPLIED     | Editing/deleting a partially used credit
-------------|----------------------------|------------------------------------------
Invariant    | BRACKET_COVERAGE_GAP       | Bracket table does not cover [0, inf)
             | NEGATIVE_TAXABLE_INCOME    | Taxable amount negative after clamping
-------------|----------------------------|------------------------------------------
Wiring       | COLLABORATOR_NOT_CONFIGURED| Optional ledger or history repository absent

===============================================================================
PROPAGATION
===============================================================================

ValidationFailure and ConflictFailure are always surfaced to the caller with
full detail. NotFoundFailure is surfaced as-is. ComputationInvariantError is a
defect: it is logged at CRITICAL by the raiser and never masked with a
fallback value.
"""

from __future__ import annotations

from typing import Any


class TaxKernelError(Exception):
    """
    Base exception for all tax kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "TAX_KERNEL_ERROR"


# Validation failures


class ValidationFailure(TaxKernelError):
    """Base exception for bad or missing caller input."""

    code: str = "VALIDATION_FAILURE"


class InputValidationError(ValidationFailure):
    """
    One or more field-level business rules failed.

    ``issues`` holds every error-severity FieldIssue so the caller can
    surface all problems at once.
    """

    code: str = "INPUT_VALIDATION_FAILED"

    def __init__(self, tax_type: str, issues: tuple[Any, ...]):
        self.tax_type = tax_type
        self.issues = tuple(issues)
        fields = ", ".join(sorted({issue.field for issue in self.issues}))
        super().__init__(
            f"{tax_type} input failed validation "
            f"({len(self.issues)} issue(s): {fields})"
        )


class UnsupportedTaxTypeError(ValidationFailure):
    """The requested operation is not defined for this tax type."""

    code: str = "UNSUPPORTED_TAX_TYPE"

    def __init__(self, tax_type: str, operation: str):
        self.tax_type = tax_type
        self.operation = operation
        super().__init__(f"{operation} is not supported for tax type {tax_type}")


# Not-found failures


class NotFoundFailure(TaxKernelError):
    """Base exception for references to entities that do not exist."""

    code: str = "NOT_FOUND"


class BusinessNotFoundError(NotFoundFailure):
    """Business profile does not exist for the owner."""

    code: str = "BUSINESS_NOT_FOUND"

    def __init__(self, business_id: str):
        self.business_id = business_id
        super().__init__(f"Business not found: {business_id}")


class CreditNotFoundError(NotFoundFailure):
    """Capital credit ledger entry does not exist."""

    code: str = "CREDIT_NOT_FOUND"

    def __init__(self, credit_id: str):
        self.credit_id = credit_id
        super().__init__(f"Capital credit not found: {credit_id}")


class TaxReturnNotFoundError(NotFoundFailure):
    """Tax return does not exist."""

    code: str = "TAX_RETURN_NOT_FOUND"

    def __init__(self, return_id: str):
        self.return_id = return_id
        super().__init__(f"Tax return not found: {return_id}")


class ConfigNotFoundError(NotFoundFailure):
    """No configuration value for the given tax year and key."""

    code: str = "CONFIG_NOT_FOUND"

    def __init__(self, tax_year: int, config_key: str):
        self.tax_year = tax_year
        self.config_key = config_key
        super().__init__(
            f"No configuration for key {config_key!r} in tax year {tax_year}"
        )


# Conflict failures


class ConflictFailure(TaxKernelError):
    """Base exception for operations that conflict with current state."""

    code: str = "CONFLICT"


class ReturnImmutableError(ConflictFailure):
    """
    Attempted to mutate a filed return.

    Filed, accepted and rejected returns are preserved for the audit trail.
    """

    code: str = "RETURN_IMMUTABLE"

    def __init__(self, return_id: str, status: str, operation: str):
        self.return_id = return_id
        self.status = status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} tax return {return_id}: status is {status}"
        )


class ReturnAlreadyFiledError(ConflictFailure):
    """A return for this period has already been filed."""

    code: str = "RETURN_ALREADY_FILED"

    def __init__(self, return_id: str, reference_number: str | None):
        self.return_id = return_id
        self.reference_number = reference_number
        super().__init__(
            f"Tax return {return_id} already filed "
            f"(reference: {reference_number})"
        )


class ReturnNotReadyError(ConflictFailure):
    """Submission attempted with incomplete documentation or errors."""

    code: str = "RETURN_NOT_READY"

    def __init__(
        self,
        return_id: str,
        missing_documents: tuple[str, ...],
        validation_errors: tuple[str, ...],
    ):
        self.return_id = return_id
        self.missing_documents = tuple(missing_documents)
        self.validation_errors = tuple(validation_errors)
        super().__init__(
            f"Tax return {return_id} is not ready to file: "
            f"{len(self.missing_documents)} missing document(s), "
            f"{len(self.validation_errors)} validation error(s)"
        )


class InvalidTransitionError(ConflictFailure):
    """Workflow action is not permitted from the current state."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, workflow: str, from_state: str, action: str):
        self.workflow = workflow
        self.from_state = from_state
        self.action = action
        super().__init__(
            f"Action {action!r} is not allowed from state {from_state!r} "
            f"in workflow {workflow}"
        )


class CreditAlreadyAppliedError(ConflictFailure):
    """
    Attempted to edit or delete a credit that has been partly consumed.

    Once any amount has been allocated the entry is frozen for amount edits
    and cannot be deleted.
    """

    code: str = "CREDIT_ALREADY_APPLIED"

    def __init__(self, credit_id: str, applied_amount: str, operation: str):
        self.credit_id = credit_id
        self.applied_amount = applied_amount
        self.operation = operation
        super().__init__(
            f"Cannot {operation} capital credit {credit_id}: "
            f"{applied_amount} already applied"
        )


# Computation invariants


class ComputationInvariantError(TaxKernelError):
    """
    Base exception for should-never-happen computation defects.

    These indicate bad configuration or a programming error and must be
    escalated, never swallowed.
    """

    code: str = "COMPUTATION_INVARIANT"


class BracketCoverageError(ComputationInvariantError):
    """Bracket table has a gap, overlap, or bounded top bracket."""

    code: str = "BRACKET_COVERAGE_GAP"

    def __init__(self, detail: str, unallocated: str | None = None):
        self.detail = detail
        self.unallocated = unallocated
        super().__init__(f"Bracket coverage violated: {detail}")


class NegativeTaxableIncomeError(ComputationInvariantError):
    """Taxable amount is negative after clamping."""

    code: str = "NEGATIVE_TAXABLE_INCOME"

    def __init__(self, tax_type: str, taxable_income: str):
        self.tax_type = tax_type
        self.taxable_income = taxable_income
        super().__init__(
            f"{tax_type} taxable income is negative after clamping: "
            f"{taxable_income}"
        )


# Wiring


class CollaboratorNotConfiguredError(TaxKernelError):
    """An operation needs an optional collaborator the service was built without."""

    code: str = "COLLABORATOR_NOT_CONFIGURED"

    def __init__(self, service: str, collaborator: str, operation: str):
        self.service = service
        self.collaborator = collaborator
        self.operation = operation
        super().__init__(
            f"{service} cannot {operation}: no {collaborator} configured"
        )
