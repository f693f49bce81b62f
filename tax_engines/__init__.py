"""
Pure calculation engines for the tax system.

Every engine here is deterministic and free of I/O: callers pass an
explicit ``TaxYearConfig`` snapshot and receive immutable results.
"""

from tax_engines.brackets import BracketSlice, BracketTable, BracketWalk
from tax_engines.computation import (
    CapitalGainsTaxInput,
    CompanyIncomeTaxInput,
    PersonalIncomeTaxInput,
    PresumptiveTaxInput,
    TaxComputationEngine,
    TaxComputationInput,
    TaxComputationResult,
    TaxType,
    VatInput,
)
from tax_engines.credit_allocation import (
    CreditApplication,
    FifoAllocation,
    allocate_fifo,
    available_balance,
    eligible_credits,
)
from tax_engines.reliefs import PersonalReliefs, ReliefCalculator
from tax_engines.validation import validate_input

__all__ = [
    "BracketSlice",
    "BracketTable",
    "BracketWalk",
    "CapitalGainsTaxInput",
    "CompanyIncomeTaxInput",
    "PersonalIncomeTaxInput",
    "PresumptiveTaxInput",
    "TaxComputationEngine",
    "TaxComputationInput",
    "TaxComputationResult",
    "TaxType",
    "VatInput",
    "CreditApplication",
    "FifoAllocation",
    "allocate_fifo",
    "available_balance",
    "eligible_credits",
    "PersonalReliefs",
    "ReliefCalculator",
    "validate_input",
]
