"""
Income Aggregation (``tax_modules.computation.aggregation``).

Responsibility:
    Combine income from several sources into one tax position.  Business
    income is assessed under company income tax (when business details
    are supplied); every other category is pooled as personal income
    under PIT.  Also surfaces compatibility warnings and relief
    suggestions for the combined position.

Architecture position:
    tax_modules -- glue over ``TaxCalculationService``, so every
    underlying computation is validated the same way as a direct one.

Invariants enforced:
    - ``total_tax_liability == pit_liability + cit_liability``.
    - Business income without business details is reported in the
      breakdown but not taxed here.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from tax_engines.computation import TaxComputationResult
from tax_engines.computation.types import amount, report_rate
from tax_kernel.domain.validation import IssueCollector, ValidationResult
from tax_kernel.logging_config import get_logger
from tax_modules.computation.models import (
    ZERO,
    BusinessProfile,
    IncomeCategory,
    IncomeRecord,
    IncomeSource,
    IncomeSourceEntry,
    PersonalReliefClaims,
)
from tax_modules.computation.service import TaxCalculationService

logger = get_logger("modules.computation.aggregation")

# Total income above which each relief is worth suggesting.
PENSION_SUGGESTION_INCOME = Decimal("2000000")
HEALTH_INSURANCE_SUGGESTION_INCOME = Decimal("1000000")
RENT_RELIEF_SUGGESTION_INCOME = Decimal("3000000")

_CATEGORY_BY_SOURCE = {
    IncomeSource.SALARY: IncomeCategory.EMPLOYMENT,
    IncomeSource.PENSION: IncomeCategory.EMPLOYMENT,
    IncomeSource.FREELANCE: IncomeCategory.FREELANCE,
    IncomeSource.BUSINESS: IncomeCategory.BUSINESS,
    IncomeSource.INVESTMENT: IncomeCategory.INVESTMENT,
    IncomeSource.DIGITAL_ASSET: IncomeCategory.INVESTMENT,
    IncomeSource.RENTAL: IncomeCategory.RENTAL,
    # prizes, grants and other one-off receipts are pooled with freelance income
    IncomeSource.PRIZE: IncomeCategory.FREELANCE,
    IncomeSource.GRANT: IncomeCategory.FREELANCE,
    IncomeSource.OTHER: IncomeCategory.FREELANCE,
}


def category_for(source: IncomeSource) -> IncomeCategory:
    return _CATEGORY_BY_SOURCE[source]


def entries_from_records(records: Iterable[IncomeRecord]) -> list[IncomeSourceEntry]:
    return [
        IncomeSourceEntry(
            category=category_for(r.source),
            amount=r.amount,
            description=r.description or r.source.value,
        )
        for r in records
    ]


@dataclass(frozen=True)
class CategorySummary:
    count: int
    total: Decimal


@dataclass(frozen=True)
class AggregatedTaxResult:
    total_gross_income: Decimal
    total_deductions: Decimal
    total_taxable_income: Decimal
    total_tax_liability: Decimal
    total_net_income: Decimal
    pit_liability: Decimal
    cit_liability: Decimal
    breakdown: dict[IncomeCategory, Decimal] = field(default_factory=dict)
    pit: TaxComputationResult | None = None
    cit: TaxComputationResult | None = None

    @property
    def personal_income(self) -> Decimal:
        return sum(
            (v for k, v in self.breakdown.items() if k != IncomeCategory.BUSINESS),
            ZERO,
        )

    @property
    def effective_rate(self) -> Decimal:
        """Combined liability over combined gross income, as a fraction."""
        if self.total_gross_income <= ZERO:
            return report_rate(ZERO)
        return report_rate(self.total_tax_liability / self.total_gross_income)


def summarize_by_category(entries: Iterable[IncomeSourceEntry]) -> dict[IncomeCategory, CategorySummary]:
    counts: dict[IncomeCategory, int] = {}
    totals: dict[IncomeCategory, Decimal] = {}
    for entry in entries:
        counts[entry.category] = counts.get(entry.category, 0) + 1
        totals[entry.category] = totals.get(entry.category, ZERO) + entry.amount
    return {c: CategorySummary(counts[c], totals[c]) for c in counts}


class IncomeAggregator:
    """
    Multi-source income to PIT and CIT.

    Contract:
        Delegates each computation to ``TaxCalculationService.calculate``;
        validation errors therefore surface as InputValidationError.
    """

    def __init__(self, calculations: TaxCalculationService | None = None):
        self._calculations = calculations or TaxCalculationService()

    def aggregate(
        self,
        entries: Sequence[IncomeSourceEntry],
        tax_year: int,
        personal: PersonalReliefClaims | None = None,
        business: BusinessProfile | None = None,
    ) -> AggregatedTaxResult:
        logger.info("income_aggregation_started", extra={
            "tax_year": tax_year,
            "source_count": len(entries),
        })

        breakdown = {category: ZERO for category in IncomeCategory}
        total_deductions = ZERO
        for entry in entries:
            breakdown[entry.category] += entry.amount
            total_deductions += amount(entry.deductions)

        total_gross = sum(breakdown.values(), ZERO)
        personal_income = total_gross - breakdown[IncomeCategory.BUSINESS]
        business_income = breakdown[IncomeCategory.BUSINESS]

        pit = None
        if personal_income > ZERO:
            claims = personal or PersonalReliefClaims()
            pit = self._calculations.calculate(claims.to_input(personal_income, tax_year)).result

        cit = None
        if business_income > ZERO and business is not None:
            cit = self._calculations.calculate(
                business.to_input(business_income, tax_year),
                business_id=business.id,
            ).result
        elif business_income > ZERO:
            logger.warning("business_income_not_assessed", extra={
                "tax_year": tax_year,
                "business_income": str(business_income),
            })

        pit_liability = pit.tax_liability if pit else ZERO
        cit_liability = cit.tax_liability if cit else ZERO
        total_liability = pit_liability + cit_liability
        total_taxable = (pit.taxable_income if pit else ZERO) + (cit.taxable_income if cit else ZERO)

        logger.info("income_aggregation_completed", extra={
            "tax_year": tax_year,
            "total_gross_income": str(total_gross),
            "pit_liability": str(pit_liability),
            "cit_liability": str(cit_liability),
            "total_tax_liability": str(total_liability),
        })

        return AggregatedTaxResult(
            total_gross_income=total_gross,
            total_deductions=total_deductions,
            total_taxable_income=total_taxable,
            total_tax_liability=total_liability,
            total_net_income=total_gross - total_liability,
            pit_liability=pit_liability,
            cit_liability=cit_liability,
            breakdown=breakdown,
            pit=pit,
            cit=cit,
        )

    def compatibility_warnings(
        self,
        entries: Sequence[IncomeSourceEntry],
        tax_year: int,
    ) -> ValidationResult:
        """Warnings about the combination of sources.  Never contains errors."""
        config = self._calculations.config_for(tax_year)
        issues = IssueCollector("INCOME")
        categories = {e.category for e in entries}

        if IncomeCategory.EMPLOYMENT in categories and IncomeCategory.BUSINESS in categories:
            issues.warning(
                "income_sources", "employment_and_business",
                "You have both employment and business income. Ensure you are not "
                "claiming employee benefits for business income.",
            )

        total = sum((e.amount for e in entries), ZERO)
        threshold = config.validation.high_income_warning
        if total > threshold:
            issues.warning(
                "income_sources", "unusually_high",
                f"Total income exceeds {threshold:,.0f}. Additional tax compliance "
                f"requirements may apply.",
            )

        return issues.result()

    def optimization_suggestions(
        self,
        entries: Sequence[IncomeSourceEntry],
        tax_year: int,
        personal: PersonalReliefClaims | None = None,
        business: BusinessProfile | None = None,
    ) -> list[str]:
        config = self._calculations.config_for(tax_year)
        claims = personal or PersonalReliefClaims()
        total = sum((e.amount for e in entries), ZERO)
        business_income = sum(
            (e.amount for e in entries if e.category == IncomeCategory.BUSINESS), ZERO,
        )
        suggestions: list[str] = []

        if amount(claims.pension_contribution) <= ZERO and total > PENSION_SUGGESTION_INCOME:
            suggestions.append(
                "Consider making pension contributions to reduce your taxable income."
            )
        if amount(claims.health_insurance) <= ZERO and total > HEALTH_INSURANCE_SUGGESTION_INCOME:
            suggestions.append(
                "Consider purchasing health insurance - premiums are fully deductible "
                "from taxable income."
            )
        if amount(claims.rent_paid) <= ZERO and total > RENT_RELIEF_SUGGESTION_INCOME:
            pit = config.pit
            suggestions.append(
                f"If you pay rent, claim rent relief ({pit.rent_relief_rate:.0%} of rent "
                f"paid, capped at {pit.rent_relief_cap:,.0f})."
            )

        cit = config.cit
        assets = business.asset_value if business else ZERO
        if ZERO < business_income <= cit.sme_turnover_threshold and assets <= cit.sme_asset_threshold:
            suggestions.append(
                f"Your business may qualify as a small company (0% CIT) if turnover is "
                f"at most {cit.sme_turnover_threshold:,.0f} and assets at most "
                f"{cit.sme_asset_threshold:,.0f}."
            )
        if business_income > cit.sme_turnover_threshold:
            credit = config.capital_credit
            suggestions.append(
                f"Consider capital investment credits - {credit.rate:.0%} of capital "
                f"expenditure, carried forward for {credit.carryforward_years} years."
            )
            suggestions.append(
                f"Corporate donations to approved organisations qualify for a "
                f"{cit.donation_deduction_rate:.0%} deduction."
            )

        return suggestions
