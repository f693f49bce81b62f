"""
Tests for computation input validation.

Covers:
- Errors block, warnings do not
- Every error reported at once
- Documentation requirements attached to claimed reliefs
- Date rules evaluated against an injected "today"
"""

from datetime import date
from decimal import Decimal

import pytest

from tax_engines.computation import (
    CapitalGainsTaxInput,
    CompanyIncomeTaxInput,
    PersonalIncomeTaxInput,
    PresumptiveTaxInput,
    VatInput,
)
from tax_engines.validation import validate_input
from tax_kernel.exceptions import InputValidationError, UnsupportedTaxTypeError

TODAY = date(2026, 6, 30)


def _codes(result):
    return {(i.field, i.code) for i in result.errors}


def _warning_codes(result):
    return {(i.field, i.code) for i in result.warnings}


class TestPersonalIncomeValidation:

    @pytest.fixture(autouse=True)
    def _setup(self, config_2026):
        self.config = config_2026

    def _validate(self, gross="5000000", **kwargs):
        inp = PersonalIncomeTaxInput(gross_income=Decimal(gross), tax_year=2026, **kwargs)
        return validate_input(inp, self.config, TODAY)

    def test_clean_input(self):
        result = self._validate()
        assert result.is_valid
        assert result.issues == ()

    def test_rent_requires_landlord_details(self):
        result = self._validate(rent_paid=Decimal("1200000"))

        assert not result.is_valid
        assert ("landlord_name", "required") in _codes(result)
        assert ("landlord_address", "required") in _codes(result)
        assert ("landlord_tin", "missing") in _warning_codes(result)

    def test_rent_with_landlord_details(self):
        result = self._validate(
            rent_paid=Decimal("1200000"),
            landlord_name="Chief Bello",
            landlord_address="12 Awolowo Road, Ikoyi",
            landlord_tin="98765432-0001",
        )
        assert result.is_valid

    def test_rent_exceeding_income(self):
        result = self._validate(
            gross="1000000",
            rent_paid=Decimal("1500000"),
            landlord_name="Chief Bello",
            landlord_address="12 Awolowo Road, Ikoyi",
        )

        assert ("rent_paid", "exceeds_gross_income") in _codes(result)
        assert ("deductions", "exceeds_gross_income") in _codes(result)

    def test_negative_gross_income(self):
        result = self._validate(gross="-1")
        assert ("gross_income", "negative_amount") in _codes(result)

    def test_pension_above_ratio_is_warning(self):
        result = self._validate(
            pension_contribution=Decimal("1500000"),
            pension_provider_name="Stanbic IBTC Pension",
            pension_policy_number="PEN-001",
        )

        assert result.is_valid
        assert ("pension_contribution", "unusually_high") in _warning_codes(result)

    def test_health_insurance_requires_provider(self):
        result = self._validate(health_insurance=Decimal("100000"))

        assert ("health_insurance_provider_name", "required") in _codes(result)
        assert ("health_insurance_policy_number", "missing") in _warning_codes(result)

    def test_very_high_income_warns(self):
        result = self._validate(gross="2000000000")

        assert result.is_valid
        assert ("gross_income", "unusually_high") in _warning_codes(result)

    def test_raise_for_errors_carries_all_issues(self):
        result = self._validate(
            gross="-5",
            health_insurance=Decimal("-1"),
        )

        with pytest.raises(InputValidationError) as exc_info:
            result.raise_for_errors()

        fields = {i.field for i in exc_info.value.issues}
        assert {"gross_income", "health_insurance"} <= fields
        assert exc_info.value.code == "INPUT_VALIDATION_FAILED"


class TestCompanyIncomeValidation:

    @pytest.fixture(autouse=True)
    def _setup(self, config_2026):
        self.config = config_2026

    def _validate(self, **kwargs):
        values = {
            "business_name": "Adebayo Foods Ltd",
            "annual_turnover": Decimal("500000000"),
            "tax_year": 2026,
        }
        values.update(kwargs)
        return validate_input(CompanyIncomeTaxInput(**values), self.config, TODAY)

    def test_clean_input(self):
        assert self._validate().is_valid

    def test_business_name_required(self):
        assert ("business_name", "required") in _codes(self._validate(business_name="  "))

    def test_assessable_profits_cannot_exceed_turnover(self):
        result = self._validate(assessable_profits=Decimal("600000000"))
        assert ("assessable_profits", "exceeds_turnover") in _codes(result)

    def test_agricultural_requires_start_date(self):
        result = self._validate(is_agricultural_business=True)
        assert ("agricultural_start_date", "required") in _codes(result)

    def test_agricultural_start_in_future(self):
        result = self._validate(
            is_agricultural_business=True, agricultural_start_date=date(2026, 9, 1),
        )
        assert ("agricultural_start_date", "in_future") in _codes(result)

    def test_agricultural_start_after_tax_year(self):
        result = self._validate(
            tax_year=2025,
            is_agricultural_business=True,
            agricultural_start_date=date(2026, 2, 1),
        )
        assert ("agricultural_start_date", "in_future") in _codes(result)

    def test_agricultural_start_too_old(self):
        result = self._validate(
            is_agricultural_business=True, agricultural_start_date=date(1970, 1, 1),
        )
        assert ("agricultural_start_date", "too_old") in _codes(result)

    def test_unconfirmed_exemption_warns(self):
        result = self._validate(business_type="charity")

        assert result.is_valid
        assert ("tax_exempt_status", "unconfirmed_exemption") in _warning_codes(result)

    def test_exempt_status_requires_business_type(self):
        result = self._validate(tax_exempt_status=True)
        assert ("business_type", "required") in _codes(result)

    def test_assets_far_above_turnover_warns(self):
        result = self._validate(
            annual_turnover=Decimal("10000000"), asset_value=Decimal("200000000"),
        )
        assert ("asset_value", "unusually_high") in _warning_codes(result)


class TestCapitalGainsValidation:

    @pytest.fixture(autouse=True)
    def _setup(self, config_2026):
        self.config = config_2026

    def _validate(self, proceeds="200000000", cost="100000000", **kwargs):
        inp = CapitalGainsTaxInput(
            proceeds=Decimal(proceeds), cost_basis=Decimal(cost), tax_year=2026, **kwargs,
        )
        return validate_input(inp, self.config, TODAY)

    def test_loss_is_warning(self):
        result = self._validate(cost="300000000")

        assert result.is_valid
        assert ("cost_basis", "capital_loss") in _warning_codes(result)

    def test_residence_and_vehicle_conflict(self):
        result = self._validate(
            is_private_residence=True, is_personal_vehicle=True, vehicle_count=1,
        )
        assert ("is_personal_vehicle", "conflicting_flags") in _codes(result)

    def test_vehicle_count_required(self):
        result = self._validate(is_personal_vehicle=True)
        assert ("vehicle_count", "required") in _codes(result)

    def test_loss_of_office_requirements(self):
        result = self._validate(is_loss_of_office=True)

        codes = _codes(result)
        assert ("severance_amount", "required") in codes
        assert ("termination_date", "required") in codes
        assert ("employer_name", "required") in codes

    def test_termination_in_future(self):
        result = self._validate(
            is_loss_of_office=True,
            severance_amount=Decimal("20000000"),
            termination_date=date(2026, 12, 31),
            employer_name="Dangote Cement Plc",
            termination_reason="Redundancy",
        )
        assert _codes(result) == {("termination_date", "in_future")}

    def test_negative_years_of_service(self):
        result = self._validate(years_of_service=-2)
        assert ("years_of_service", "negative_amount") in _codes(result)


class TestOtherValidation:

    @pytest.fixture(autouse=True)
    def _setup(self, config_2026):
        self.config = config_2026

    def test_negative_vat_base(self):
        result = validate_input(VatInput(Decimal("-10"), 2026), self.config, TODAY)
        assert ("base_amount", "negative_amount") in _codes(result)

    def test_presumptive_unknown_activity_warns(self):
        inp = PresumptiveTaxInput(Decimal("2000000"), "carpenter", 2026)
        result = validate_input(inp, self.config, TODAY)

        assert result.is_valid
        assert ("activity_type", "unknown_activity") in _warning_codes(result)

    def test_presumptive_above_ceiling_warns(self):
        inp = PresumptiveTaxInput(Decimal("150000000"), "artisan", 2026, employee_count=25)
        result = validate_input(inp, self.config, TODAY)

        assert ("estimated_turnover", "exceeds_presumptive_ceiling") in _warning_codes(result)
        assert ("employee_count", "unusually_high") in _warning_codes(result)

    def test_presumptive_activity_required(self):
        inp = PresumptiveTaxInput(Decimal("2000000"), "", 2026)
        result = validate_input(inp, self.config, TODAY)
        assert ("activity_type", "required") in _codes(result)

    def test_unsupported_input(self):
        with pytest.raises(UnsupportedTaxTypeError):
            validate_input(object(), self.config, TODAY)
