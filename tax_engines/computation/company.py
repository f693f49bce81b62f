"""
Company Income Tax (``tax_engines.computation.company``).

Classification is decided in priority order and the first two outcomes
short-circuit:

1. exempt organisation type with confirmed exemption  -> no tax
2. agricultural business inside its holiday window     -> no tax
3. small company (turnover AND assets under limits)    -> rate 0
4. otherwise the standard rate

Large companies are floored at the minimum effective rate on assessable
profits.  The development levy is reported beside the liability and is
never added to it.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum

from tax_config.schema import TaxYearConfig
from tax_engines.computation.types import (
    ZERO,
    CompanyIncomeTaxInput,
    TaxComputationResult,
    TaxType,
    build_result,
    report_money,
)
from tax_engines.reliefs import ReliefCalculator


class CompanyClassification(str, Enum):
    EXEMPT_ORGANIZATION = "exempt_organization"
    AGRICULTURAL_HOLIDAY = "agricultural_holiday"
    SMALL_COMPANY = "small_company"
    LARGE_COMPANY = "large_company"
    STANDARD = "standard"


def assessable_profits_for(inp: CompanyIncomeTaxInput, config: TaxYearConfig) -> Decimal:
    if inp.assessable_profits is not None:
        return inp.assessable_profits
    return inp.annual_turnover * config.cit.default_profit_margin


def exemption_for(
    inp: CompanyIncomeTaxInput,
    config: TaxYearConfig,
) -> tuple[CompanyClassification, str] | None:
    """The short-circuit exemption that applies, if any."""
    cit = config.cit
    business_type = (inp.business_type or "").strip().lower()
    if business_type in cit.exempt_business_types and inp.tax_exempt_status:
        return (
            CompanyClassification.EXEMPT_ORGANIZATION,
            f"Tax-exempt organisation ({business_type})",
        )
    if inp.is_agricultural_business and inp.agricultural_start_date is not None:
        years_in_operation = inp.tax_year - inp.agricultural_start_date.year
        if years_in_operation < cit.agricultural_holiday_years:
            return (
                CompanyClassification.AGRICULTURAL_HOLIDAY,
                f"Agricultural tax holiday (year {years_in_operation + 1} "
                f"of {cit.agricultural_holiday_years})",
            )
    return None


def compute_company_income_tax(
    inp: CompanyIncomeTaxInput,
    config: TaxYearConfig,
) -> TaxComputationResult:
    cit = config.cit
    turnover = inp.annual_turnover
    assessable = assessable_profits_for(inp, config)
    donation = ReliefCalculator(config).donation_deduction(inp.approved_donations, assessable)
    taxable_profits = max(ZERO, assessable - donation)
    deductions = (turnover - assessable) + donation
    reliefs = {"donation_deduction": donation} if donation > ZERO else {}

    exemption = exemption_for(inp, config)
    if exemption is not None:
        classification, reason = exemption
        return build_result(
            TaxType.CIT,
            inp.tax_year,
            gross_income=turnover,
            deductions=deductions,
            tax_liability=ZERO,
            reliefs=reliefs,
            breakdown={
                "classification": classification.value,
                "is_exempt": True,
                "exemption_reason": reason,
                "is_small_company": False,
                "is_large_company": False,
                "assessable_profits": report_money(assessable),
                "applied_rate": ZERO,
                "development_levy": report_money(ZERO),
                "total_tax_burden": report_money(ZERO),
                "net_profit_after_tax": report_money(assessable),
            },
        )

    is_small = (
        turnover <= cit.sme_turnover_threshold
        and inp.asset_value <= cit.sme_asset_threshold
    )
    is_large = not is_small and turnover >= cit.large_company_threshold
    rate = ZERO if is_small else cit.standard_rate

    standard_tax = taxable_profits * rate
    minimum_tax = assessable * cit.minimum_etr if is_large else None
    final_tax = standard_tax if minimum_tax is None else max(standard_tax, minimum_tax)
    levy = ZERO if is_small else assessable * cit.development_levy_rate

    if is_small:
        classification = CompanyClassification.SMALL_COMPANY
    elif is_large:
        classification = CompanyClassification.LARGE_COMPANY
    else:
        classification = CompanyClassification.STANDARD

    return build_result(
        TaxType.CIT,
        inp.tax_year,
        gross_income=turnover,
        deductions=deductions,
        tax_liability=final_tax,
        reliefs=reliefs,
        breakdown={
            "classification": classification.value,
            "is_exempt": False,
            "exemption_reason": None,
            "is_small_company": is_small,
            "is_large_company": is_large,
            "assessable_profits": report_money(assessable),
            "taxable_profits": report_money(taxable_profits),
            "applied_rate": rate,
            "standard_tax": report_money(standard_tax),
            "minimum_tax": None if minimum_tax is None else report_money(minimum_tax),
            "minimum_etr_applied": minimum_tax is not None and minimum_tax > standard_tax,
            "development_levy_rate": ZERO if is_small else cit.development_levy_rate,
            "development_levy": report_money(levy),
            "total_tax_burden": report_money(final_tax + levy),
            "net_profit_after_tax": report_money(assessable - final_tax - levy),
        },
    )
