"""
Personal Income Tax (``tax_engines.computation.personal``).

Rent relief, pension and health-insurance deductions come off gross
income; the remainder is walked through the progressive bracket table.
"""

from __future__ import annotations

from typing import Any

from tax_config.schema import TaxYearConfig
from tax_engines.brackets import BracketTable, BracketWalk
from tax_engines.computation.types import (
    ZERO,
    PersonalIncomeTaxInput,
    TaxComputationResult,
    TaxType,
    build_result,
    report_money,
    report_rate,
)
from tax_engines.reliefs import ReliefCalculator


def bracket_breakdown(walk: BracketWalk) -> list[dict[str, Any]]:
    """Per-slab contributions, rounded for reporting."""
    return [
        {
            "lower_bound": s.lower_bound,
            "upper_bound": s.upper_bound,
            "rate": s.rate,
            "taxable_amount": report_money(s.taxable_amount),
            "tax": report_money(s.tax),
        }
        for s in walk.slices
    ]


def compute_personal_income_tax(
    inp: PersonalIncomeTaxInput,
    config: TaxYearConfig,
) -> TaxComputationResult:
    reliefs = ReliefCalculator(config).personal_reliefs(
        inp.rent_paid, inp.pension_contribution, inp.health_insurance,
    )
    taxable = max(ZERO, inp.gross_income - reliefs.total)
    walk = BracketTable(config.pit.brackets).walk(taxable)

    return build_result(
        TaxType.PIT,
        inp.tax_year,
        gross_income=inp.gross_income,
        deductions=reliefs.total,
        tax_liability=walk.total_tax,
        reliefs=reliefs.as_dict(),
        breakdown={
            "brackets": bracket_breakdown(walk),
            "marginal_rate": walk.marginal_rate,
            "effective_rate": report_rate(walk.effective_rate),
            "total_reliefs": report_money(reliefs.total),
            "rent_relief_cap": config.pit.rent_relief_cap,
            "rent_relief_rate": config.pit.rent_relief_rate,
        },
    )
