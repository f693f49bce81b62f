"""
Computation Domain Models (``tax_modules.computation.models``).

Responsibility
--------------
Frozen value objects fed into computation and return assembly: income
records, business profiles, ad-hoc income sources for aggregation, and the
persisted history of performed calculations.

Architecture position
---------------------
**Modules layer** -- pure data definitions.  No I/O, no database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from tax_engines.computation.types import (
    CompanyIncomeTaxInput,
    PersonalIncomeTaxInput,
    TaxType,
)

ZERO = Decimal("0")


class IncomeSource(str, Enum):
    """Where a recorded income item came from."""

    SALARY = "salary"
    FREELANCE = "freelance"
    BUSINESS = "business"
    INVESTMENT = "investment"
    RENTAL = "rental"
    PENSION = "pension"
    PRIZE = "prize"
    GRANT = "grant"
    DIGITAL_ASSET = "digital_asset"
    OTHER = "other"


class IncomeCategory(str, Enum):
    """Aggregation buckets.  Business income goes to CIT, the rest to PIT."""

    EMPLOYMENT = "employment"
    FREELANCE = "freelance"
    BUSINESS = "business"
    INVESTMENT = "investment"
    RENTAL = "rental"


@dataclass(frozen=True)
class IncomeRecord:
    """One income item recorded by a user, optionally attributed to a business."""

    id: UUID
    user_id: UUID
    tax_year: int
    source: IncomeSource
    amount: Decimal
    business_id: UUID | None = None
    income_date: date | None = None
    payer: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class BusinessProfile:
    id: UUID
    owner_id: UUID
    name: str
    tin: str | None = None
    business_type: str | None = None
    tax_exempt_status: bool = False
    is_agricultural_business: bool = False
    agricultural_start_date: date | None = None
    asset_value: Decimal = ZERO

    def to_input(
        self,
        annual_turnover: Decimal,
        tax_year: int,
        approved_donations: Decimal | None = None,
    ) -> CompanyIncomeTaxInput:
        return CompanyIncomeTaxInput(
            business_name=self.name,
            annual_turnover=annual_turnover,
            tax_year=tax_year,
            asset_value=self.asset_value,
            business_tin=self.tin,
            business_type=self.business_type,
            tax_exempt_status=self.tax_exempt_status,
            is_agricultural_business=self.is_agricultural_business,
            agricultural_start_date=self.agricultural_start_date,
            approved_donations=approved_donations,
        )


@dataclass(frozen=True)
class IncomeSourceEntry:
    """An income line supplied directly to the aggregator."""

    category: IncomeCategory
    amount: Decimal
    description: str = ""
    deductions: Decimal | None = None


@dataclass(frozen=True)
class TaxCalculationRecord:
    """
    A persisted calculation.

    ``breakdown`` is the JSON-safe form of the result (Decimals as strings).
    """

    id: UUID
    tax_type: TaxType
    tax_year: int
    gross_income: Decimal
    deductions: Decimal
    total_reliefs: Decimal
    taxable_income: Decimal
    tax_liability: Decimal
    calculated_at: datetime
    user_id: UUID | None = None
    business_id: UUID | None = None
    breakdown: dict[str, Any] = field(default_factory=dict)
    notes: str | None = None


@dataclass(frozen=True)
class PersonalReliefClaims:
    """Relief claims and supporting details that accompany personal income."""

    rent_paid: Decimal | None = None
    landlord_name: str | None = None
    landlord_tin: str | None = None
    landlord_address: str | None = None
    rent_receipt_numbers: tuple[str, ...] = ()
    pension_contribution: Decimal | None = None
    pension_provider_name: str | None = None
    pension_policy_number: str | None = None
    health_insurance: Decimal | None = None
    health_insurance_provider_name: str | None = None
    health_insurance_policy_number: str | None = None

    def to_input(self, gross_income: Decimal, tax_year: int) -> PersonalIncomeTaxInput:
        return PersonalIncomeTaxInput(
            gross_income=gross_income,
            tax_year=tax_year,
            rent_paid=self.rent_paid,
            landlord_name=self.landlord_name,
            landlord_tin=self.landlord_tin,
            landlord_address=self.landlord_address,
            rent_receipt_numbers=self.rent_receipt_numbers,
            pension_contribution=self.pension_contribution,
            pension_provider_name=self.pension_provider_name,
            pension_policy_number=self.pension_policy_number,
            health_insurance=self.health_insurance,
            health_insurance_provider_name=self.health_insurance_provider_name,
            health_insurance_policy_number=self.health_insurance_policy_number,
        )
