"""
Configuration Schema (``tax_config.schema``).

Responsibility
--------------
Frozen dataclasses for one tax year's law parameters: bracket tables,
flat rates, thresholds and validation limits.  A ``TaxYearConfig`` is the
explicit snapshot passed into every computation call.

Architecture position
---------------------
**Config layer** -- pure data.  No dependency on engines or modules.

Invariants enforced
-------------------
* Every dataclass is frozen; a snapshot never changes after construction.
* All monetary values and rates are ``Decimal``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class TaxBracket:
    """One progressive slab: ``[lower_bound, upper_bound)`` taxed at ``rate``.

    ``upper_bound`` of None means unbounded.
    """

    lower_bound: Decimal
    upper_bound: Decimal | None
    rate: Decimal

    @property
    def width(self) -> Decimal | None:
        if self.upper_bound is None:
            return None
        return self.upper_bound - self.lower_bound


@dataclass(frozen=True)
class PitParameters:
    brackets: tuple[TaxBracket, ...]
    rent_relief_rate: Decimal
    rent_relief_cap: Decimal
    tax_free_threshold: Decimal


@dataclass(frozen=True)
class CitParameters:
    standard_rate: Decimal
    sme_turnover_threshold: Decimal
    sme_asset_threshold: Decimal
    large_company_threshold: Decimal
    minimum_etr: Decimal
    development_levy_rate: Decimal
    default_profit_margin: Decimal
    donation_deduction_rate: Decimal
    exempt_business_types: tuple[str, ...]
    agricultural_holiday_years: int


@dataclass(frozen=True)
class CgtParameters:
    company_rate: Decimal
    exemption_proceeds_threshold: Decimal
    exemption_gain_threshold: Decimal
    max_exempt_vehicles: int
    severance_exemption_cap: Decimal


@dataclass(frozen=True)
class VatParameters:
    standard_rate: Decimal


@dataclass(frozen=True)
class PresumptiveParameters:
    rates: Mapping[str, Decimal]
    default_rate: Decimal
    minimum_turnover: Decimal
    cit_turnover_ceiling: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "rates", MappingProxyType(dict(self.rates)))

    def rate_for(self, activity_type: str | None) -> tuple[Decimal, bool]:
        """Return ``(rate, from_table)`` for an activity classification."""
        key = (activity_type or "").strip().lower()
        if key in self.rates:
            return self.rates[key], True
        return self.default_rate, False


@dataclass(frozen=True)
class CapitalCreditParameters:
    rate: Decimal
    carryforward_years: int


@dataclass(frozen=True)
class ValidationParameters:
    high_income_warning: Decimal
    pension_warning_ratio: Decimal
    asset_turnover_warning_ratio: Decimal
    agricultural_max_lookback_years: int
    presumptive_max_employees: int
    max_years_of_service: int


@dataclass(frozen=True)
class TaxYearConfig:
    """
    Complete parameter snapshot for one tax year.

    Contract:
        Built by ``tax_config.loader`` from YAML or by
        ``tax_config.store.TaxConfigStore.snapshot`` from stored rows.

    Guarantees:
        ``checksum`` identifies the flat key/value source it was parsed from.
    """

    tax_year: int
    pit: PitParameters
    cit: CitParameters
    cgt: CgtParameters
    vat: VatParameters
    presumptive: PresumptiveParameters
    capital_credit: CapitalCreditParameters
    validation: ValidationParameters
    currency: str = "NGN"
    checksum: str = field(default="", compare=False)
