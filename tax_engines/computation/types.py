"""
Computation Types (``tax_engines.computation.types``).

Responsibility:
    Frozen input and result types for every tax regime, plus the reporting
    helpers that apply the single rounding step.

Architecture position:
    Engines -- pure value objects, zero I/O.

Invariants enforced:
    - Inputs are immutable once handed to the engine.
    - ``TaxComputationResult.taxable_income == max(0, gross_income - deductions)``
      and ``tax_liability >= 0`` for every result built by ``build_result``.
    - Money is quantized to 0.01 and rates to 0.0001 (ROUND_HALF_UP) only
      inside ``build_result`` / ``report_*``; engines compute unrounded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any, Union

ZERO = Decimal("0")
MONEY_QUANTUM = Decimal("0.01")
RATE_QUANTUM = Decimal("0.0001")


class TaxType(str, Enum):
    PIT = "PIT"
    CIT = "CIT"
    CGT = "CGT"
    VAT = "VAT"
    PRESUMPTIVE = "PRESUMPTIVE"


def report_money(value: Decimal) -> Decimal:
    return value.quantize(MONEY_QUANTUM, rounding=ROUND_HALF_UP)


def report_rate(value: Decimal) -> Decimal:
    return value.quantize(RATE_QUANTUM, rounding=ROUND_HALF_UP)


def amount(value: Decimal | None) -> Decimal:
    """Optional monetary input; absent means zero."""
    return ZERO if value is None else value


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PersonalIncomeTaxInput:
    gross_income: Decimal
    tax_year: int
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

    tax_type = TaxType.PIT


@dataclass(frozen=True)
class CompanyIncomeTaxInput:
    business_name: str
    annual_turnover: Decimal
    tax_year: int
    asset_value: Decimal = ZERO
    assessable_profits: Decimal | None = None
    business_tin: str | None = None
    business_type: str | None = None
    tax_exempt_status: bool = False
    is_agricultural_business: bool = False
    agricultural_start_date: date | None = None
    approved_donations: Decimal | None = None

    tax_type = TaxType.CIT


@dataclass(frozen=True)
class CapitalGainsTaxInput:
    proceeds: Decimal
    cost_basis: Decimal
    tax_year: int
    is_company: bool = False
    asset_description: str | None = None
    is_private_residence: bool = False
    is_personal_vehicle: bool = False
    vehicle_count: int | None = None
    is_loss_of_office: bool = False
    severance_amount: Decimal | None = None
    termination_date: date | None = None
    employer_name: str | None = None
    termination_reason: str | None = None
    years_of_service: int | None = None

    tax_type = TaxType.CGT


@dataclass(frozen=True)
class VatInput:
    base_amount: Decimal
    tax_year: int
    is_zero_rated: bool = False

    tax_type = TaxType.VAT


@dataclass(frozen=True)
class PresumptiveTaxInput:
    estimated_turnover: Decimal
    activity_type: str
    tax_year: int
    employee_count: int | None = None
    location: str | None = None

    tax_type = TaxType.PRESUMPTIVE


TaxComputationInput = Union[
    PersonalIncomeTaxInput,
    CompanyIncomeTaxInput,
    CapitalGainsTaxInput,
    VatInput,
    PresumptiveTaxInput,
]


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaxComputationResult:
    """
    Reported outcome of one computation.

    ``breakdown`` holds per-bracket slices, applied rates, classifications
    and exemption reasons so the liability can be re-derived from inputs.
    """

    tax_type: TaxType
    tax_year: int
    gross_income: Decimal
    deductions: Decimal
    taxable_income: Decimal
    tax_liability: Decimal
    net_income: Decimal
    effective_rate: Decimal
    reliefs: dict[str, Decimal] = field(default_factory=dict)
    breakdown: dict[str, Any] = field(default_factory=dict)

    @property
    def total_reliefs(self) -> Decimal:
        return sum(self.reliefs.values(), ZERO)

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation (Decimals as strings)."""
        return jsonable({
            "tax_type": self.tax_type.value,
            "tax_year": self.tax_year,
            "gross_income": self.gross_income,
            "deductions": self.deductions,
            "taxable_income": self.taxable_income,
            "tax_liability": self.tax_liability,
            "net_income": self.net_income,
            "effective_rate": self.effective_rate,
            "reliefs": self.reliefs,
            "breakdown": self.breakdown,
        })


def jsonable(value: Any) -> Any:
    """Recursively convert Decimals/Enums/dates so ``json.dumps`` accepts the value."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [jsonable(v) for v in value]
    return value


def build_result(
    tax_type: TaxType,
    tax_year: int,
    *,
    gross_income: Decimal,
    deductions: Decimal,
    tax_liability: Decimal,
    reliefs: dict[str, Decimal] | None = None,
    breakdown: dict[str, Any] | None = None,
    net_income: Decimal | None = None,
    rate_base: Decimal | None = None,
) -> TaxComputationResult:
    """
    Round and assemble a result.

    ``net_income`` defaults to ``gross_income - tax_liability``.  The
    effective rate is liability over ``rate_base`` (taxable income when
    omitted), zero when the base is zero.
    """
    gross = report_money(gross_income)
    deducted = report_money(deductions)
    liability = report_money(tax_liability)
    taxable = max(ZERO, gross - deducted)
    base = taxable if rate_base is None else rate_base
    effective = report_rate(tax_liability / base) if base > ZERO else report_rate(ZERO)
    return TaxComputationResult(
        tax_type=tax_type,
        tax_year=tax_year,
        gross_income=gross,
        deductions=deducted,
        taxable_income=taxable,
        tax_liability=liability,
        net_income=gross - liability if net_income is None else report_money(net_income),
        effective_rate=effective,
        reliefs={k: report_money(v) for k, v in (reliefs or {}).items()},
        breakdown=breakdown or {},
    )
