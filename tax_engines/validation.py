"""
Input Validation (``tax_engines.validation``).

Responsibility:
    Business-rule checks for every computation input.  Each validator
    returns a ``ValidationResult`` with all field issues found, errors and
    warnings alike; nothing is raised here.

Architecture position:
    Engines -- pure functions.  ``today`` is passed in by the caller (from
    an injected ``Clock``) so that future-date rules stay deterministic.

Invariants enforced:
    - Validators never mutate their input.
    - Re-validating the same input yields the same result.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from tax_config.schema import TaxYearConfig
from tax_engines.computation.types import (
    ZERO,
    CapitalGainsTaxInput,
    CompanyIncomeTaxInput,
    PersonalIncomeTaxInput,
    PresumptiveTaxInput,
    TaxComputationInput,
    VatInput,
    amount,
)
from tax_kernel.domain.validation import IssueCollector, ValidationResult
from tax_kernel.exceptions import UnsupportedTaxTypeError


def _fmt(value: Decimal) -> str:
    return f"{value:,.0f}"


def _non_negative(issues: IssueCollector, field: str, value: Decimal | None, label: str) -> None:
    if value is not None and value < ZERO:
        issues.error(field, "negative_amount", f"{label} cannot be negative")


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


def validate_pit(inp: PersonalIncomeTaxInput, config: TaxYearConfig) -> ValidationResult:
    issues = IssueCollector("PIT")
    limits = config.validation
    gross = inp.gross_income
    rent = amount(inp.rent_paid)
    pension = amount(inp.pension_contribution)
    health = amount(inp.health_insurance)

    _non_negative(issues, "gross_income", gross, "Gross income")
    if gross > limits.high_income_warning:
        issues.warning(
            "gross_income", "unusually_high",
            f"Gross income above {_fmt(limits.high_income_warning)} - please verify",
        )

    _non_negative(issues, "rent_paid", inp.rent_paid, "Rent paid")
    if rent > gross:
        issues.error("rent_paid", "exceeds_gross_income", "Rent paid cannot exceed gross income")

    _non_negative(issues, "pension_contribution", inp.pension_contribution, "Pension contribution")
    if gross > ZERO and pension > gross * limits.pension_warning_ratio:
        issues.warning(
            "pension_contribution", "unusually_high",
            f"Pension contribution exceeds {limits.pension_warning_ratio:.0%} of gross income",
        )

    _non_negative(issues, "health_insurance", inp.health_insurance, "Health insurance premium")

    if rent + pension + health > gross:
        issues.error(
            "deductions", "exceeds_gross_income",
            "Total deductions cannot exceed gross income",
        )

    if rent > ZERO:
        if _blank(inp.landlord_name):
            issues.error("landlord_name", "required", "Landlord name is required to claim rent relief")
        if _blank(inp.landlord_address):
            issues.error("landlord_address", "required", "Landlord address is required to claim rent relief")
        if _blank(inp.landlord_tin):
            issues.warning("landlord_tin", "missing", "Landlord TIN not provided")

    if pension > ZERO:
        if _blank(inp.pension_provider_name):
            issues.error(
                "pension_provider_name", "required",
                "Pension provider name is required to claim pension relief",
            )
        if _blank(inp.pension_policy_number):
            issues.warning("pension_policy_number", "missing", "Pension policy number not provided")

    if health > ZERO:
        if _blank(inp.health_insurance_provider_name):
            issues.error(
                "health_insurance_provider_name", "required",
                "Health insurance provider name is required to claim health insurance relief",
            )
        if _blank(inp.health_insurance_policy_number):
            issues.warning(
                "health_insurance_policy_number", "missing",
                "Health insurance policy number not provided",
            )

    return issues.result()


def validate_cit(
    inp: CompanyIncomeTaxInput,
    config: TaxYearConfig,
    today: date,
) -> ValidationResult:
    issues = IssueCollector("CIT")
    limits = config.validation

    if _blank(inp.business_name):
        issues.error("business_name", "required", "Business name is required")

    _non_negative(issues, "annual_turnover", inp.annual_turnover, "Annual turnover")
    _non_negative(issues, "asset_value", inp.asset_value, "Asset value")
    _non_negative(issues, "assessable_profits", inp.assessable_profits, "Assessable profits")
    _non_negative(issues, "approved_donations", inp.approved_donations, "Approved donations")

    if inp.assessable_profits is not None and inp.assessable_profits > inp.annual_turnover:
        issues.error(
            "assessable_profits", "exceeds_turnover",
            "Assessable profits cannot exceed annual turnover",
        )

    if (
        inp.annual_turnover > ZERO
        and inp.asset_value > inp.annual_turnover * limits.asset_turnover_warning_ratio
    ):
        issues.warning(
            "asset_value", "unusually_high",
            f"Asset value is more than {limits.asset_turnover_warning_ratio} times annual turnover",
        )

    if inp.is_agricultural_business:
        start = inp.agricultural_start_date
        if start is None:
            issues.error(
                "agricultural_start_date", "required",
                "Agricultural start date is required for the agricultural tax holiday",
            )
        elif start > today or start.year > inp.tax_year:
            issues.error(
                "agricultural_start_date", "in_future",
                "Agricultural start date cannot be in the future",
            )
        elif inp.tax_year - start.year > limits.agricultural_max_lookback_years:
            issues.error(
                "agricultural_start_date", "too_old",
                f"Agricultural start date is more than "
                f"{limits.agricultural_max_lookback_years} years ago",
            )

    business_type = (inp.business_type or "").strip().lower()
    if business_type in config.cit.exempt_business_types and not inp.tax_exempt_status:
        issues.warning(
            "tax_exempt_status", "unconfirmed_exemption",
            f"Business type '{business_type}' may qualify for exemption; "
            f"confirm exemption documentation",
        )
    if inp.tax_exempt_status and not business_type:
        issues.error(
            "business_type", "required",
            "Business type is required when claiming tax-exempt status",
        )

    return issues.result()


def validate_cgt(
    inp: CapitalGainsTaxInput,
    config: TaxYearConfig,
    today: date,
) -> ValidationResult:
    issues = IssueCollector("CGT")
    cgt = config.cgt
    limits = config.validation

    _non_negative(issues, "proceeds", inp.proceeds, "Proceeds")
    _non_negative(issues, "cost_basis", inp.cost_basis, "Cost basis")
    if inp.proceeds >= ZERO and inp.cost_basis > inp.proceeds:
        issues.warning("cost_basis", "capital_loss", "Cost basis exceeds proceeds - this is a capital loss")

    if inp.is_private_residence and inp.is_personal_vehicle:
        issues.error(
            "is_personal_vehicle", "conflicting_flags",
            "An asset cannot be both a private residence and a personal vehicle",
        )

    if inp.is_personal_vehicle:
        count = inp.vehicle_count
        if count is None or count < 1:
            issues.error("vehicle_count", "required", "Vehicle count must be at least 1")
        elif count > cgt.max_exempt_vehicles:
            issues.warning(
                "vehicle_count", "exceeds_exemption",
                f"Only up to {cgt.max_exempt_vehicles} personal vehicles qualify for exemption",
            )

    if inp.is_loss_of_office:
        severance = amount(inp.severance_amount)
        if severance <= ZERO:
            issues.error(
                "severance_amount", "required",
                "Severance amount must be greater than zero for loss of office",
            )
        elif severance > cgt.severance_exemption_cap:
            issues.warning(
                "severance_amount", "exceeds_exemption",
                f"Severance above {_fmt(cgt.severance_exemption_cap)} is not fully exempt",
            )
        if inp.termination_date is None:
            issues.error("termination_date", "required", "Termination date is required for loss of office")
        elif inp.termination_date > today:
            issues.error("termination_date", "in_future", "Termination date cannot be in the future")
        if _blank(inp.employer_name):
            issues.error("employer_name", "required", "Employer name is required for loss of office")
        if _blank(inp.termination_reason):
            issues.warning("termination_reason", "missing", "Termination reason not provided")

    if inp.years_of_service is not None:
        if inp.years_of_service < 0:
            issues.error("years_of_service", "negative_amount", "Years of service cannot be negative")
        elif inp.years_of_service > limits.max_years_of_service:
            issues.warning(
                "years_of_service", "unusually_high",
                f"Years of service above {limits.max_years_of_service} - please verify",
            )

    return issues.result()


def validate_vat(inp: VatInput, config: TaxYearConfig) -> ValidationResult:
    issues = IssueCollector("VAT")
    _non_negative(issues, "base_amount", inp.base_amount, "Base amount")
    return issues.result()


def validate_presumptive(inp: PresumptiveTaxInput, config: TaxYearConfig) -> ValidationResult:
    issues = IssueCollector("PRESUMPTIVE")
    params = config.presumptive
    limits = config.validation

    if _blank(inp.activity_type):
        issues.error("activity_type", "required", "Activity type is required")
    else:
        _, from_table = params.rate_for(inp.activity_type)
        if not from_table:
            issues.warning(
                "activity_type", "unknown_activity",
                f"Unknown activity type '{inp.activity_type}'; the default rate applies",
            )

    _non_negative(issues, "estimated_turnover", inp.estimated_turnover, "Estimated turnover")
    if inp.estimated_turnover > params.cit_turnover_ceiling:
        issues.warning(
            "estimated_turnover", "exceeds_presumptive_ceiling",
            f"Turnover above {_fmt(params.cit_turnover_ceiling)} - "
            f"company income tax may apply instead",
        )

    if inp.employee_count is not None:
        if inp.employee_count < 0:
            issues.error("employee_count", "negative_amount", "Employee count cannot be negative")
        elif inp.employee_count > limits.presumptive_max_employees:
            issues.warning(
                "employee_count", "unusually_high",
                f"More than {limits.presumptive_max_employees} employees - "
                f"presumptive tax may not be appropriate",
            )

    return issues.result()


def validate_input(
    inp: TaxComputationInput,
    config: TaxYearConfig,
    today: date,
) -> ValidationResult:
    """Dispatch to the validator for the input's tax type."""
    match inp:
        case PersonalIncomeTaxInput():
            return validate_pit(inp, config)
        case CompanyIncomeTaxInput():
            return validate_cit(inp, config, today)
        case CapitalGainsTaxInput():
            return validate_cgt(inp, config, today)
        case VatInput():
            return validate_vat(inp, config)
        case PresumptiveTaxInput():
            return validate_presumptive(inp, config)
        case _:
            raise UnsupportedTaxTypeError(type(inp).__name__, "validate")
