"""
Computation Module (``tax_modules.computation``).

Responsibility
--------------
Validated calculations with optional history, plus aggregation of income
from several sources into a combined PIT/CIT position.
"""

from tax_modules.computation.aggregation import (
    AggregatedTaxResult,
    CategorySummary,
    IncomeAggregator,
    entries_from_records,
    summarize_by_category,
)
from tax_modules.computation.models import (
    BusinessProfile,
    IncomeCategory,
    IncomeRecord,
    IncomeSource,
    IncomeSourceEntry,
    PersonalReliefClaims,
    TaxCalculationRecord,
)
from tax_modules.computation.service import CalculationOutcome, TaxCalculationService

__all__ = [
    "AggregatedTaxResult",
    "CategorySummary",
    "IncomeAggregator",
    "entries_from_records",
    "summarize_by_category",
    "BusinessProfile",
    "IncomeCategory",
    "IncomeRecord",
    "IncomeSource",
    "IncomeSourceEntry",
    "PersonalReliefClaims",
    "TaxCalculationRecord",
    "CalculationOutcome",
    "TaxCalculationService",
]
