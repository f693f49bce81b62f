"""
Tax Computation Engine (``tax_engines.computation.engine``).

Responsibility:
    Single entry point that computes a liability for any supported regime
    from an immutable input and an explicit ``TaxYearConfig`` snapshot.

Architecture position:
    Engines -- pure calculation.  No I/O other than log records; no
    clock; no configuration lookup.  Preconditions are enforced by
    ``tax_engines.validation`` before invocation.

Invariants enforced:
    - ``taxable_income >= 0`` and ``tax_liability >= 0`` on every result.
    - Identical input and config always produce an identical result.

Failure modes:
    - ComputationInvariantError subclasses when a result breaks the
      invariants above or a bracket table leaves income unallocated.
      These are logged at CRITICAL and propagate.

Usage:
    from tax_config import load_tax_year
    from tax_engines.computation import PersonalIncomeTaxInput, TaxComputationEngine

    config = load_tax_year(2026)
    result = TaxComputationEngine().compute(
        PersonalIncomeTaxInput(gross_income=Decimal("5000000"), tax_year=2026,
                               rent_paid=Decimal("1200000")),
        config,
    )
    result.tax_liability   # Decimal("646800.00")
"""

from __future__ import annotations

import time

from tax_config.schema import TaxYearConfig
from tax_engines.computation.company import compute_company_income_tax
from tax_engines.computation.gains import compute_capital_gains_tax
from tax_engines.computation.indirect import compute_vat
from tax_engines.computation.personal import compute_personal_income_tax
from tax_engines.computation.presumptive import compute_presumptive_tax
from tax_engines.computation.types import (
    ZERO,
    CapitalGainsTaxInput,
    CompanyIncomeTaxInput,
    PersonalIncomeTaxInput,
    PresumptiveTaxInput,
    TaxComputationInput,
    TaxComputationResult,
    VatInput,
)
from tax_engines.tracer import traced_engine
from tax_kernel.exceptions import (
    ComputationInvariantError,
    NegativeTaxableIncomeError,
    UnsupportedTaxTypeError,
)
from tax_kernel.logging_config import get_logger

logger = get_logger("engines.computation")

ENGINE_VERSION = "2026.1"


class TaxComputationEngine:
    """
    Compute tax for PIT, CIT, CGT, VAT and presumptive regimes.

    Contract:
        Stateless.  Safe to share across threads.

    Guarantees:
        Every result satisfies ``taxable_income == max(0, gross - deductions)``
        and carries a breakdown sufficient to re-derive the liability.

    Non-goals:
        Input validation (see ``tax_engines.validation``) and persistence.
    """

    def compute(
        self,
        inp: TaxComputationInput,
        config: TaxYearConfig,
    ) -> TaxComputationResult:
        """Dispatch on the input type."""
        t0 = time.monotonic()
        match inp:
            case PersonalIncomeTaxInput():
                result = self.compute_pit(inp, config)
            case CompanyIncomeTaxInput():
                result = self.compute_cit(inp, config)
            case CapitalGainsTaxInput():
                result = self.compute_cgt(inp, config)
            case VatInput():
                result = self.compute_vat(inp, config)
            case PresumptiveTaxInput():
                result = self.compute_presumptive(inp, config)
            case _:
                raise UnsupportedTaxTypeError(type(inp).__name__, "compute")

        logger.info("tax_computation_completed", extra={
            "tax_type": result.tax_type.value,
            "tax_year": result.tax_year,
            "gross_income": str(result.gross_income),
            "taxable_income": str(result.taxable_income),
            "tax_liability": str(result.tax_liability),
            "effective_rate": str(result.effective_rate),
            "config_checksum": config.checksum,
            "duration_ms": round((time.monotonic() - t0) * 1000, 2),
        })
        return result

    @traced_engine("pit", ENGINE_VERSION, fingerprint_fields=("inp",))
    def compute_pit(self, inp: PersonalIncomeTaxInput, config: TaxYearConfig) -> TaxComputationResult:
        return self._checked(compute_personal_income_tax(inp, config))

    @traced_engine("cit", ENGINE_VERSION, fingerprint_fields=("inp",))
    def compute_cit(self, inp: CompanyIncomeTaxInput, config: TaxYearConfig) -> TaxComputationResult:
        return self._checked(compute_company_income_tax(inp, config))

    @traced_engine("cgt", ENGINE_VERSION, fingerprint_fields=("inp",))
    def compute_cgt(self, inp: CapitalGainsTaxInput, config: TaxYearConfig) -> TaxComputationResult:
        return self._checked(compute_capital_gains_tax(inp, config))

    @traced_engine("vat", ENGINE_VERSION, fingerprint_fields=("inp",))
    def compute_vat(self, inp: VatInput, config: TaxYearConfig) -> TaxComputationResult:
        return self._checked(compute_vat(inp, config))

    @traced_engine("presumptive", ENGINE_VERSION, fingerprint_fields=("inp",))
    def compute_presumptive(self, inp: PresumptiveTaxInput, config: TaxYearConfig) -> TaxComputationResult:
        return self._checked(compute_presumptive_tax(inp, config))

    @staticmethod
    def _checked(result: TaxComputationResult) -> TaxComputationResult:
        if result.taxable_income < ZERO:
            logger.critical("negative_taxable_income", extra={
                "tax_type": result.tax_type.value,
                "taxable_income": str(result.taxable_income),
            })
            raise NegativeTaxableIncomeError(result.tax_type.value, str(result.taxable_income))
        if result.tax_liability < ZERO:
            logger.critical("negative_tax_liability", extra={
                "tax_type": result.tax_type.value,
                "tax_liability": str(result.tax_liability),
            })
            raise ComputationInvariantError(
                f"{result.tax_type.value} liability is negative: {result.tax_liability}"
            )
        return result
