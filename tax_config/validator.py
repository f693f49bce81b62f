"""
Configuration Validator (``tax_config.validator``).

Responsibility
--------------
Structural checks on a ``TaxYearConfig`` before any computation uses it.

Invariants enforced
-------------------
* PIT brackets start at 0, are contiguous with no gaps or overlaps, have
  strictly positive widths, and end with one unbounded bracket.
* Every rate lies in ``[0, 1]``.
* Thresholds are non-negative and the carryforward window is at least one
  year.

Failure modes
-------------
* Errors  -> the configuration MUST NOT be used for computation.
* Warnings  -> usable but should be reviewed (e.g. non-monotonic rates).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from tax_config.schema import TaxBracket, TaxYearConfig

_ZERO = Decimal("0")
_ONE = Decimal("1")


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def bracket_coverage_problems(brackets: tuple[TaxBracket, ...]) -> list[str]:
    """Return every way ``brackets`` fails to cover ``[0, inf)`` exactly once."""
    problems: list[str] = []
    if not brackets:
        return ["bracket table is empty"]
    if brackets[0].lower_bound != _ZERO:
        problems.append(
            f"first bracket starts at {brackets[0].lower_bound}, expected 0"
        )
    for i, bracket in enumerate(brackets):
        is_last = i == len(brackets) - 1
        if bracket.upper_bound is None:
            if not is_last:
                problems.append(f"bracket {i} is unbounded but is not the last bracket")
            continue
        if bracket.upper_bound <= bracket.lower_bound:
            problems.append(
                f"bracket {i} has non-positive width "
                f"[{bracket.lower_bound}, {bracket.upper_bound})"
            )
        if is_last:
            problems.append(f"last bracket is bounded at {bracket.upper_bound}")
        else:
            nxt = brackets[i + 1].lower_bound
            if nxt > bracket.upper_bound:
                problems.append(f"gap between {bracket.upper_bound} and {nxt}")
            elif nxt < bracket.upper_bound:
                problems.append(f"overlap between {nxt} and {bracket.upper_bound}")
    return problems


def validate_config(config: TaxYearConfig) -> ConfigValidationResult:
    """
    Validate a tax year's parameter snapshot.

    Postconditions:
        A configuration with errors MUST NOT be used for computation.
    """
    result = ConfigValidationResult()

    _validate_brackets(config, result)
    _validate_rates(config, result)
    _validate_thresholds(config, result)

    return result


def _validate_brackets(config: TaxYearConfig, result: ConfigValidationResult) -> None:
    brackets = config.pit.brackets
    for problem in bracket_coverage_problems(brackets):
        result.add_error(f"pit.brackets ({config.tax_year}): {problem}")
    rates = [b.rate for b in brackets]
    if rates != sorted(rates):
        result.add_warning(f"pit.brackets ({config.tax_year}): rates are not non-decreasing")


def _validate_rates(config: TaxYearConfig, result: ConfigValidationResult) -> None:
    rates = {
        "pit.rent_relief_rate": config.pit.rent_relief_rate,
        "cit.standard_rate": config.cit.standard_rate,
        "cit.minimum_etr": config.cit.minimum_etr,
        "cit.development_levy_rate": config.cit.development_levy_rate,
        "cit.default_profit_margin": config.cit.default_profit_margin,
        "cit.donation_deduction_rate": config.cit.donation_deduction_rate,
        "cgt.company_rate": config.cgt.company_rate,
        "vat.standard_rate": config.vat.standard_rate,
        "presumptive.default_rate": config.presumptive.default_rate,
        "capital_credit.rate": config.capital_credit.rate,
    }
    rates.update(
        {f"pit.brackets[{i}].rate": b.rate for i, b in enumerate(config.pit.brackets)}
    )
    rates.update(
        {f"presumptive.rates.{k}": v for k, v in config.presumptive.rates.items()}
    )
    for key, rate in rates.items():
        if not _ZERO <= rate <= _ONE:
            result.add_error(f"{key} must be between 0 and 1, got {rate}")


def _validate_thresholds(config: TaxYearConfig, result: ConfigValidationResult) -> None:
    amounts = {
        "pit.rent_relief_cap": config.pit.rent_relief_cap,
        "pit.tax_free_threshold": config.pit.tax_free_threshold,
        "cit.sme_turnover_threshold": config.cit.sme_turnover_threshold,
        "cit.sme_asset_threshold": config.cit.sme_asset_threshold,
        "cit.large_company_threshold": config.cit.large_company_threshold,
        "cgt.exemption_proceeds_threshold": config.cgt.exemption_proceeds_threshold,
        "cgt.exemption_gain_threshold": config.cgt.exemption_gain_threshold,
        "cgt.severance_exemption_cap": config.cgt.severance_exemption_cap,
        "presumptive.minimum_turnover": config.presumptive.minimum_turnover,
        "presumptive.cit_turnover_ceiling": config.presumptive.cit_turnover_ceiling,
    }
    for key, amount in amounts.items():
        if amount < _ZERO:
            result.add_error(f"{key} must be non-negative, got {amount}")

    if config.capital_credit.carryforward_years < 1:
        result.add_error("capital_credit.carryforward_years must be at least 1")
    if config.cit.agricultural_holiday_years < 0:
        result.add_error("cit.agricultural_holiday_years must be non-negative")
    if config.cgt.max_exempt_vehicles < 0:
        result.add_error("cgt.max_exempt_vehicles must be non-negative")
    if config.cit.sme_turnover_threshold >= config.cit.large_company_threshold:
        result.add_warning(
            "cit.sme_turnover_threshold is not below cit.large_company_threshold"
        )
