"""
Tests for multi-source income aggregation.

Covers:
- Personal categories pooled under PIT, business income under CIT
- Source-to-category mapping for recorded income
- Compatibility warnings and relief suggestions
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from tax_modules.computation import (
    IncomeAggregator,
    IncomeCategory,
    IncomeSource,
    IncomeSourceEntry,
    PersonalReliefClaims,
    TaxCalculationService,
)
from tax_modules.computation.aggregation import (
    category_for,
    entries_from_records,
    summarize_by_category,
)


def _entry(category, amount, **kwargs):
    return IncomeSourceEntry(category=category, amount=Decimal(amount), **kwargs)


RENT_CLAIM = PersonalReliefClaims(
    rent_paid=Decimal("1200000"),
    landlord_name="Alhaji Musa",
    landlord_address="21 Ahmadu Bello Way, Kaduna",
    landlord_tin="33445566-0001",
)


class TestCategoryMapping:

    def test_direct_categories(self):
        assert category_for(IncomeSource.SALARY) == IncomeCategory.EMPLOYMENT
        assert category_for(IncomeSource.BUSINESS) == IncomeCategory.BUSINESS
        assert category_for(IncomeSource.RENTAL) == IncomeCategory.RENTAL

    def test_pooled_sources(self):
        assert category_for(IncomeSource.PENSION) == IncomeCategory.EMPLOYMENT
        assert category_for(IncomeSource.DIGITAL_ASSET) == IncomeCategory.INVESTMENT
        assert category_for(IncomeSource.PRIZE) == IncomeCategory.FREELANCE

    def test_every_source_mapped(self):
        for source in IncomeSource:
            assert isinstance(category_for(source), IncomeCategory)

    def test_entries_from_records(self, make_income, user_id):
        records = [
            make_income(user_id, "4000000"),
            make_income(user_id, "250000", source=IncomeSource.INVESTMENT),
        ]

        entries = entries_from_records(records)

        assert [e.category for e in entries] == [IncomeCategory.EMPLOYMENT, IncomeCategory.INVESTMENT]
        assert entries[0].description == "salary"

    def test_summarize_by_category(self):
        summary = summarize_by_category([
            _entry(IncomeCategory.FREELANCE, "100"),
            _entry(IncomeCategory.FREELANCE, "50"),
            _entry(IncomeCategory.RENTAL, "10"),
        ])

        assert summary[IncomeCategory.FREELANCE].count == 2
        assert summary[IncomeCategory.FREELANCE].total == Decimal("150")
        assert IncomeCategory.BUSINESS not in summary


class TestAggregate:

    @pytest.fixture(autouse=True)
    def _setup(self, config_provider, deterministic_clock, make_business):
        self.aggregator = IncomeAggregator(
            TaxCalculationService(config_provider=config_provider, clock=deterministic_clock)
        )
        self.business = make_business(uuid4())

    def test_personal_income_pooled_under_pit(self):
        result = self.aggregator.aggregate(
            [
                _entry(IncomeCategory.EMPLOYMENT, "4000000"),
                _entry(IncomeCategory.FREELANCE, "1000000"),
            ],
            2026,
            personal=RENT_CLAIM,
        )

        assert result.pit.gross_income == Decimal("5000000.00")
        assert result.pit_liability == Decimal("646800.00")
        assert result.cit is None
        assert result.total_tax_liability == Decimal("646800.00")
        assert result.personal_income == Decimal("5000000")

    def test_business_income_under_cit(self):
        result = self.aggregator.aggregate(
            [
                _entry(IncomeCategory.EMPLOYMENT, "5000000"),
                _entry(IncomeCategory.BUSINESS, "500000000"),
            ],
            2026,
            business=self.business,
        )

        assert result.cit.gross_income == Decimal("500000000.00")
        assert result.cit_liability == Decimal("15000000.00")
        assert result.total_tax_liability == result.pit_liability + result.cit_liability
        assert result.total_gross_income == Decimal("505000000")
        assert result.total_net_income == result.total_gross_income - result.total_tax_liability
        assert result.breakdown[IncomeCategory.BUSINESS] == Decimal("500000000")

    def test_effective_rate_is_fraction(self):
        result = self.aggregator.aggregate(
            [
                _entry(IncomeCategory.EMPLOYMENT, "5000000"),
                _entry(IncomeCategory.BUSINESS, "50000000"),
            ],
            2026,
            personal=RENT_CLAIM,
            business=self.business,
        )

        # small company: CIT 0, PIT 646,800 over 55M combined
        assert result.cit_liability == Decimal("0.00")
        assert result.effective_rate == Decimal("0.0118")

    def test_business_income_without_profile(self, captured_logs):
        result = self.aggregator.aggregate(
            [_entry(IncomeCategory.BUSINESS, "20000000")], 2026,
        )

        assert result.cit is None
        assert result.pit is None
        assert result.total_tax_liability == Decimal("0")
        assert any(r["message"] == "business_income_not_assessed" for r in captured_logs())

    def test_entry_deductions_totalled(self):
        result = self.aggregator.aggregate(
            [
                _entry(IncomeCategory.FREELANCE, "3000000", deductions=Decimal("200000")),
                _entry(IncomeCategory.RENTAL, "1000000", deductions=Decimal("50000")),
            ],
            2026,
        )

        assert result.total_deductions == Decimal("250000")

    def test_no_income(self):
        result = self.aggregator.aggregate([], 2026)

        assert result.total_gross_income == Decimal("0")
        assert result.effective_rate == Decimal("0.0000")


class TestWarningsAndSuggestions:

    @pytest.fixture(autouse=True)
    def _setup(self, config_provider, make_business):
        self.aggregator = IncomeAggregator(TaxCalculationService(config_provider=config_provider))
        self.make_business = make_business

    def test_employment_and_business_warning(self):
        result = self.aggregator.compatibility_warnings(
            [
                _entry(IncomeCategory.EMPLOYMENT, "5000000"),
                _entry(IncomeCategory.BUSINESS, "1000000"),
            ],
            2026,
        )

        assert result.is_valid
        assert [w.code for w in result.warnings] == ["employment_and_business"]

    def test_high_income_warning(self):
        result = self.aggregator.compatibility_warnings(
            [_entry(IncomeCategory.INVESTMENT, "1500000000")], 2026,
        )

        assert [w.code for w in result.warnings] == ["unusually_high"]

    def test_no_warnings(self):
        result = self.aggregator.compatibility_warnings(
            [_entry(IncomeCategory.EMPLOYMENT, "5000000")], 2026,
        )
        assert result.issues == ()

    def test_relief_suggestions(self):
        suggestions = self.aggregator.optimization_suggestions(
            [_entry(IncomeCategory.EMPLOYMENT, "5000000")], 2026,
        )

        assert len(suggestions) == 3
        assert "pension" in suggestions[0]
        assert "health insurance" in suggestions[1]
        assert "20% of rent paid, capped at 500,000" in suggestions[2]

    def test_claimed_reliefs_not_suggested(self):
        claims = PersonalReliefClaims(
            rent_paid=Decimal("1200000"),
            pension_contribution=Decimal("400000"),
            health_insurance=Decimal("100000"),
        )
        suggestions = self.aggregator.optimization_suggestions(
            [_entry(IncomeCategory.EMPLOYMENT, "5000000")], 2026, personal=claims,
        )
        assert suggestions == []

    def test_small_company_suggestion(self):
        claims = PersonalReliefClaims(
            rent_paid=Decimal("1"), pension_contribution=Decimal("1"), health_insurance=Decimal("1"),
        )
        suggestions = self.aggregator.optimization_suggestions(
            [_entry(IncomeCategory.BUSINESS, "60000000")],
            2026,
            personal=claims,
            business=self.make_business(uuid4()),
        )

        assert len(suggestions) == 1
        assert "small company" in suggestions[0]

    def test_large_business_suggestions(self):
        claims = PersonalReliefClaims(
            rent_paid=Decimal("1"), pension_contribution=Decimal("1"), health_insurance=Decimal("1"),
        )
        suggestions = self.aggregator.optimization_suggestions(
            [_entry(IncomeCategory.BUSINESS, "500000000")], 2026, personal=claims,
        )

        assert any("capital investment credits - 5%" in s for s in suggestions)
        assert any("10% deduction" in s for s in suggestions)
