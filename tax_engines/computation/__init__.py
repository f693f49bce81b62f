"""Tax computation per regime: PIT, CIT, CGT, VAT and presumptive tax."""

from tax_engines.computation.company import CompanyClassification
from tax_engines.computation.engine import ENGINE_VERSION, TaxComputationEngine
from tax_engines.computation.indirect import (
    VatDirection,
    VatEntry,
    VatPeriodSummary,
    summarize_vat_period,
)
from tax_engines.computation.types import (
    CapitalGainsTaxInput,
    CompanyIncomeTaxInput,
    PersonalIncomeTaxInput,
    PresumptiveTaxInput,
    TaxComputationInput,
    TaxComputationResult,
    TaxType,
    VatInput,
    jsonable,
)

__all__ = [
    "CompanyClassification",
    "ENGINE_VERSION",
    "TaxComputationEngine",
    "VatDirection",
    "VatEntry",
    "VatPeriodSummary",
    "summarize_vat_period",
    "CapitalGainsTaxInput",
    "CompanyIncomeTaxInput",
    "PersonalIncomeTaxInput",
    "PresumptiveTaxInput",
    "TaxComputationInput",
    "TaxComputationResult",
    "TaxType",
    "VatInput",
    "jsonable",
]
