"""
Supporting Documentation (``tax_modules.tax_return.documents``).

Groups a taxpayer's stored documents into the categories a return relies
on, and decides which of them are still missing for the claims made.
Both functions are pure; re-running them on the same inputs gives the
same answer.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from tax_engines.computation.types import TaxType

ZERO = Decimal("0")

RENT_RECEIPTS = "rent_receipts"
PENSION_CERTIFICATES = "pension_certificates"
HEALTH_INSURANCE_POLICIES = "health_insurance_policies"
CAPITAL_EXPENDITURE_INVOICES = "capital_expenditure_invoices"
DONATION_RECEIPTS = "donation_receipts"
SEVERANCE_DOCUMENTS = "severance_documents"
INCOME_STATEMENTS = "income_statements"
BANK_STATEMENTS = "bank_statements"

CATEGORIES = (
    RENT_RECEIPTS,
    PENSION_CERTIFICATES,
    HEALTH_INSURANCE_POLICIES,
    CAPITAL_EXPENDITURE_INVOICES,
    DONATION_RECEIPTS,
    SEVERANCE_DOCUMENTS,
    INCOME_STATEMENTS,
    BANK_STATEMENTS,
)

_CATEGORY_BY_TYPE = {
    "rent_receipt": RENT_RECEIPTS,
    "lease_agreement": RENT_RECEIPTS,
    "pension_certificate": PENSION_CERTIFICATES,
    "health_insurance_policy": HEALTH_INSURANCE_POLICIES,
    "capital_expenditure_invoice": CAPITAL_EXPENDITURE_INVOICES,
    "donation_receipt": DONATION_RECEIPTS,
    "severance_agreement": SEVERANCE_DOCUMENTS,
    "termination_letter": SEVERANCE_DOCUMENTS,
    "income_statement": INCOME_STATEMENTS,
    "payslip": INCOME_STATEMENTS,
    "bank_statement": BANK_STATEMENTS,
}


@dataclass(frozen=True)
class DocumentationCheck:
    missing_documents: tuple[str, ...]
    validation_errors: tuple[str, ...]

    @property
    def documentation_complete(self) -> bool:
        return not self.missing_documents and not self.validation_errors


def categorize_documents(documents: Iterable[Any]) -> dict[str, list[str]]:
    """File URLs grouped by category.  Every category is present; unknown types are ignored."""
    grouped: dict[str, list[str]] = {category: [] for category in CATEGORIES}
    for doc in documents:
        category = _CATEGORY_BY_TYPE.get(doc.document_type)
        if category is not None:
            grouped[category].append(doc.file_url)
    return grouped


def validate_documentation(
    tax_type: TaxType,
    total_income: Decimal,
    tax_liability: Decimal,
    reliefs: Mapping[str, Decimal],
    supporting_documents: Mapping[str, list[str]],
    tax_free_threshold: Decimal,
) -> DocumentationCheck:
    def has(category: str) -> bool:
        return bool(supporting_documents.get(category))

    missing: list[str] = []
    errors: list[str] = []

    if total_income > tax_free_threshold and not has(INCOME_STATEMENTS):
        missing.append("Income statements or payslips")
    if reliefs.get("rent_relief", ZERO) > ZERO and not has(RENT_RECEIPTS):
        missing.append("Rent receipts")
    if reliefs.get("pension_relief", ZERO) > ZERO and not has(PENSION_CERTIFICATES):
        missing.append("Pension contribution certificates")
    if reliefs.get("health_insurance_relief", ZERO) > ZERO and not has(HEALTH_INSURANCE_POLICIES):
        missing.append("Health insurance policies")
    if tax_type == TaxType.CIT and not has(INCOME_STATEMENTS):
        missing.append("Financial statements")

    if tax_liability < ZERO:
        errors.append("Tax liability cannot be negative")
    if total_income < ZERO:
        errors.append("Total income cannot be negative")

    return DocumentationCheck(tuple(missing), tuple(errors))
