"""
Presumptive Tax (``tax_engines.computation.presumptive``).

Flat tax on estimated turnover for informal-sector taxpayers.  The rate
comes from the activity table (default rate for unlisted activities) and
nothing is due at or below the minimum turnover.
"""

from __future__ import annotations

from tax_config.schema import TaxYearConfig
from tax_engines.computation.types import (
    ZERO,
    PresumptiveTaxInput,
    TaxComputationResult,
    TaxType,
    build_result,
)


def compute_presumptive_tax(
    inp: PresumptiveTaxInput,
    config: TaxYearConfig,
) -> TaxComputationResult:
    params = config.presumptive
    rate, from_table = params.rate_for(inp.activity_type)
    turnover = inp.estimated_turnover
    below_threshold = turnover <= params.minimum_turnover
    liability = ZERO if below_threshold else turnover * rate

    return build_result(
        TaxType.PRESUMPTIVE,
        inp.tax_year,
        gross_income=turnover,
        deductions=ZERO,
        tax_liability=liability,
        breakdown={
            "activity_type": inp.activity_type,
            "rate": rate,
            "rate_source": "activity_table" if from_table else "default",
            "below_minimum_turnover": below_threshold,
            "minimum_turnover": params.minimum_turnover,
            "location": inp.location,
        },
    )
