"""
Capital Gains Tax (``tax_engines.computation.gains``).

Exemptions are independent: any one of them removes the liability.  Every
applicable reason is reported, in evaluation order, and the first is
surfaced as ``exemption_reason``.  Taxable gains of companies bear the
flat company rate; individuals' gains go through the PIT brackets with
no reliefs.
"""

from __future__ import annotations

from dataclasses import replace
from decimal import Decimal

from tax_config.schema import TaxYearConfig
from tax_engines.brackets import BracketTable
from tax_engines.computation.personal import bracket_breakdown
from tax_engines.computation.types import (
    ZERO,
    CapitalGainsTaxInput,
    TaxComputationResult,
    TaxType,
    build_result,
    report_money,
)


def _fmt(value: Decimal) -> str:
    return f"{value:,.0f}"


def exemption_reasons(inp: CapitalGainsTaxInput, config: TaxYearConfig) -> list[str]:
    cgt = config.cgt
    gain = inp.proceeds - inp.cost_basis
    reasons: list[str] = []
    if (
        inp.proceeds < cgt.exemption_proceeds_threshold
        and gain < cgt.exemption_gain_threshold
    ):
        reasons.append(
            f"Proceeds below {_fmt(cgt.exemption_proceeds_threshold)} "
            f"and gain below {_fmt(cgt.exemption_gain_threshold)}"
        )
    if inp.is_private_residence:
        reasons.append("Private residence exemption")
    if inp.is_personal_vehicle and (inp.vehicle_count or 0) <= cgt.max_exempt_vehicles:
        reasons.append(
            f"Personal vehicle exemption (up to {cgt.max_exempt_vehicles} vehicles)"
        )
    if inp.is_loss_of_office and inp.proceeds <= cgt.severance_exemption_cap:
        reasons.append(
            f"Loss-of-office exemption (up to {_fmt(cgt.severance_exemption_cap)})"
        )
    return reasons


def compute_capital_gains_tax(
    inp: CapitalGainsTaxInput,
    config: TaxYearConfig,
) -> TaxComputationResult:
    gain = inp.proceeds - inp.cost_basis
    taxable_gain = max(ZERO, gain)
    reasons = exemption_reasons(inp, config)
    breakdown: dict = {
        "capital_gain": report_money(gain),
        "is_company": inp.is_company,
        "is_exempt": bool(reasons),
        "exemption_reason": reasons[0] if reasons else None,
        "exemption_reasons": reasons,
    }

    if reasons:
        liability = ZERO
        breakdown["method"] = "exempt"
    elif taxable_gain == ZERO:
        liability = ZERO
        breakdown["method"] = "no_gain"
    elif inp.is_company:
        liability = taxable_gain * config.cgt.company_rate
        breakdown["method"] = "company_rate"
        breakdown["tax_rate"] = config.cgt.company_rate
    else:
        walk = BracketTable(config.pit.brackets).walk(taxable_gain)
        liability = walk.total_tax
        breakdown["method"] = "pit_brackets"
        breakdown["brackets"] = bracket_breakdown(walk)
        breakdown["marginal_rate"] = walk.marginal_rate

    result = build_result(
        TaxType.CGT,
        inp.tax_year,
        gross_income=inp.proceeds,
        deductions=inp.cost_basis,
        tax_liability=liability,
        breakdown=breakdown,
    )
    return replace(result, net_income=result.taxable_income - result.tax_liability)
