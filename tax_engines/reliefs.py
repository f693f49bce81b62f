"""
Relief & Deduction Calculator (``tax_engines.reliefs``).

Responsibility:
    Compute the individual reliefs and deductions that reduce taxable
    income or tax: rent relief, pension and health-insurance deductions,
    the corporate donation deduction, and the capital-investment credit
    earned on qualifying expenditure.

Architecture position:
    Engines -- pure calculation over an explicit ``TaxYearConfig``.

Invariants enforced:
    - Rent relief never exceeds the configured cap.
    - The donation deduction never exceeds assessable profits.
    - Every amount is unrounded; callers round at reporting.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from tax_config.schema import TaxYearConfig

ZERO = Decimal("0")


def amount(value: Decimal | None) -> Decimal:
    return ZERO if value is None else value


@dataclass(frozen=True)
class PersonalReliefs:
    rent_relief: Decimal
    pension_relief: Decimal
    health_insurance_relief: Decimal

    @property
    def total(self) -> Decimal:
        return self.rent_relief + self.pension_relief + self.health_insurance_relief

    def as_dict(self) -> dict[str, Decimal]:
        return {
            "rent_relief": self.rent_relief,
            "pension_relief": self.pension_relief,
            "health_insurance_relief": self.health_insurance_relief,
        }


class ReliefCalculator:
    """
    Relief and deduction rules for one tax year.

    Contract:
        Stateless apart from the injected configuration snapshot.
    """

    def __init__(self, config: TaxYearConfig):
        self._config = config

    def rent_relief(self, rent_paid: Decimal | None) -> Decimal:
        """``min(cap, rate * rent_paid)``; zero when nothing was paid."""
        rent = amount(rent_paid)
        if rent <= ZERO:
            return ZERO
        pit = self._config.pit
        return min(pit.rent_relief_cap, rent * pit.rent_relief_rate)

    def personal_reliefs(
        self,
        rent_paid: Decimal | None,
        pension_contribution: Decimal | None,
        health_insurance: Decimal | None,
    ) -> PersonalReliefs:
        return PersonalReliefs(
            rent_relief=self.rent_relief(rent_paid),
            pension_relief=max(ZERO, amount(pension_contribution)),
            health_insurance_relief=max(ZERO, amount(health_insurance)),
        )

    def donation_deduction(
        self,
        approved_donations: Decimal | None,
        assessable_profits: Decimal,
    ) -> Decimal:
        """Deductible share of approved donations, capped at assessable profits."""
        donations = amount(approved_donations)
        if donations <= ZERO:
            return ZERO
        deduction = donations * self._config.cit.donation_deduction_rate
        return min(deduction, max(ZERO, assessable_profits))

    def capital_credit_amount(self, expenditure: Decimal) -> Decimal:
        """Credit earned on a qualifying capital expenditure."""
        return max(ZERO, expenditure) * self._config.capital_credit.rate

    def credit_expiry_year(self, origin_year: int) -> int:
        return origin_year + self._config.capital_credit.carryforward_years
