"""
Value-Added Tax (``tax_engines.computation.indirect``).

Single-transaction VAT plus the quarterly input/output netting used for a
VAT period return.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from tax_config.schema import TaxYearConfig
from tax_engines.computation.types import (
    ZERO,
    TaxComputationResult,
    TaxType,
    VatInput,
    build_result,
    report_money,
)
from tax_kernel.domain.validation import IssueCollector


class VatDirection(str, Enum):
    INPUT = "input"
    OUTPUT = "output"


@dataclass(frozen=True)
class VatEntry:
    """One VAT-bearing transaction (purchase = input, sale = output)."""

    direction: VatDirection
    vat_amount: Decimal
    transaction_date: date


@dataclass(frozen=True)
class VatPeriodSummary:
    year: int
    quarter: int
    input_vat: Decimal
    output_vat: Decimal
    net_vat: Decimal
    input_records: int
    output_records: int

    @property
    def total_records(self) -> int:
        return self.input_records + self.output_records

    @property
    def is_refund_position(self) -> bool:
        return self.net_vat < ZERO


def compute_vat(inp: VatInput, config: TaxYearConfig) -> TaxComputationResult:
    rate = ZERO if inp.is_zero_rated else config.vat.standard_rate
    vat = inp.base_amount * rate
    return build_result(
        TaxType.VAT,
        inp.tax_year,
        gross_income=inp.base_amount,
        deductions=ZERO,
        tax_liability=vat,
        net_income=inp.base_amount,
        breakdown={
            "vat_rate": rate,
            "vat_amount": report_money(vat),
            "total_amount": report_money(inp.base_amount + vat),
            "is_zero_rated": inp.is_zero_rated,
        },
    )


def quarter_bounds(year: int, quarter: int) -> tuple[date, date]:
    """First and last calendar day of a quarter."""
    if quarter not in (1, 2, 3, 4):
        issues = IssueCollector("VAT")
        issues.error("quarter", "invalid_quarter", f"Quarter must be 1-4, got {quarter}")
        issues.result().raise_for_errors()
    first_month = 3 * (quarter - 1) + 1
    start = date(year, first_month, 1)
    end = date(year + 1, 1, 1) if quarter == 4 else date(year, first_month + 3, 1)
    return start, date.fromordinal(end.toordinal() - 1)


def summarize_vat_period(entries: list[VatEntry], year: int, quarter: int) -> VatPeriodSummary:
    """Net output VAT against input VAT for the entries dated in the quarter."""
    start, end = quarter_bounds(year, quarter)
    in_period = [e for e in entries if start <= e.transaction_date <= end]
    inputs = [e.vat_amount for e in in_period if e.direction == VatDirection.INPUT]
    outputs = [e.vat_amount for e in in_period if e.direction == VatDirection.OUTPUT]
    input_vat = sum(inputs, ZERO)
    output_vat = sum(outputs, ZERO)
    return VatPeriodSummary(
        year=year,
        quarter=quarter,
        input_vat=report_money(input_vat),
        output_vat=report_money(output_vat),
        net_vat=report_money(output_vat - input_vat),
        input_records=len(inputs),
        output_records=len(outputs),
    )
