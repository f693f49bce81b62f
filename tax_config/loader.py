"""
Configuration Loader (``tax_config.loader``).

Responsibility
--------------
Loads a tax year's YAML parameter file, flattens it into
``section.key`` configuration keys, and parses flat key/value maps into
a frozen ``TaxYearConfig``.  The same parser serves the YAML files and
the rows held by ``tax_config.store``.

Architecture position
---------------------
**Config layer** -- infrastructure tooling.  No dependency on engines or
modules.

Invariants enforced
-------------------
* No silent defaults: a missing key raises ``ConfigNotFoundError``.
* Decimals are parsed from their string form, never through float
  arithmetic.
* ``compute_checksum`` is deterministic for identical inputs.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Structurally invalid parameters  -> ``ValueError`` listing every problem.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from tax_config.schema import (
    CapitalCreditParameters,
    CgtParameters,
    CitParameters,
    PitParameters,
    PresumptiveParameters,
    TaxBracket,
    TaxYearConfig,
    ValidationParameters,
    VatParameters,
)
from tax_kernel.exceptions import ConfigNotFoundError
from tax_kernel.logging_config import get_logger

logger = get_logger("config.loader")

DEFAULT_SETS_DIR = Path(__file__).parent / "sets"

SECTIONS = (
    "pit",
    "cit",
    "cgt",
    "vat",
    "presumptive",
    "capital_credit",
    "validation",
)

# Keys whose stored value is structured (list/dict) rather than a number.
JSON_KEYS = frozenset({
    "pit.brackets",
    "cit.exempt_business_types",
    "presumptive.rates",
})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def flatten_sections(data: dict[str, Any]) -> dict[str, Any]:
    """Flatten ``{section: {key: value}}`` into ``{"section.key": value}``."""
    flat: dict[str, Any] = {}
    for section in SECTIONS:
        for key, value in (data.get(section) or {}).items():
            flat[f"{section}.{key}"] = value
    return flat


def parse_decimal(value: Any) -> Decimal:
    """
    Parse a Decimal from YAML or JSON (string, int, float or Decimal).

    Raises:
        ValueError: if ``value`` is not a valid numeric representation.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Cannot parse decimal from {value!r}")
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except InvalidOperation as exc:
        raise ValueError(f"Cannot parse decimal from {value!r}") from exc


def parse_brackets(raw: list[dict[str, Any]]) -> tuple[TaxBracket, ...]:
    """Parse a bracket list, preserving the declared order."""
    return tuple(
        TaxBracket(
            lower_bound=parse_decimal(item["lower_bound"]),
            upper_bound=(
                None if item.get("upper_bound") is None
                else parse_decimal(item["upper_bound"])
            ),
            rate=parse_decimal(item["rate"]),
        )
        for item in raw
    )


def parse_tax_year_config(
    tax_year: int,
    values: dict[str, Any],
    currency: str = "NGN",
) -> TaxYearConfig:
    """
    Build a ``TaxYearConfig`` from flat ``section.key`` values.

    Raises:
        ConfigNotFoundError: if a required key is absent.
        ValueError: if a value cannot be parsed.
    """

    def raw(key: str) -> Any:
        if key not in values:
            raise ConfigNotFoundError(tax_year, key)
        return values[key]

    def dec(key: str) -> Decimal:
        return parse_decimal(raw(key))

    def whole(key: str) -> int:
        return int(raw(key))

    return TaxYearConfig(
        tax_year=tax_year,
        currency=currency,
        pit=PitParameters(
            brackets=parse_brackets(raw("pit.brackets")),
            rent_relief_rate=dec("pit.rent_relief_rate"),
            rent_relief_cap=dec("pit.rent_relief_cap"),
            tax_free_threshold=dec("pit.tax_free_threshold"),
        ),
        cit=CitParameters(
            standard_rate=dec("cit.standard_rate"),
            sme_turnover_threshold=dec("cit.sme_turnover_threshold"),
            sme_asset_threshold=dec("cit.sme_asset_threshold"),
            large_company_threshold=dec("cit.large_company_threshold"),
            minimum_etr=dec("cit.minimum_etr"),
            development_levy_rate=dec("cit.development_levy_rate"),
            default_profit_margin=dec("cit.default_profit_margin"),
            donation_deduction_rate=dec("cit.donation_deduction_rate"),
            exempt_business_types=tuple(
                str(t).lower() for t in raw("cit.exempt_business_types")
            ),
            agricultural_holiday_years=whole("cit.agricultural_holiday_years"),
        ),
        cgt=CgtParameters(
            company_rate=dec("cgt.company_rate"),
            exemption_proceeds_threshold=dec("cgt.exemption_proceeds_threshold"),
            exemption_gain_threshold=dec("cgt.exemption_gain_threshold"),
            max_exempt_vehicles=whole("cgt.max_exempt_vehicles"),
            severance_exemption_cap=dec("cgt.severance_exemption_cap"),
        ),
        vat=VatParameters(standard_rate=dec("vat.standard_rate")),
        presumptive=PresumptiveParameters(
            rates={
                str(k).lower(): parse_decimal(v)
                for k, v in raw("presumptive.rates").items()
            },
            default_rate=dec("presumptive.default_rate"),
            minimum_turnover=dec("presumptive.minimum_turnover"),
            cit_turnover_ceiling=dec("presumptive.cit_turnover_ceiling"),
        ),
        capital_credit=CapitalCreditParameters(
            rate=dec("capital_credit.rate"),
            carryforward_years=whole("capital_credit.carryforward_years"),
        ),
        validation=ValidationParameters(
            high_income_warning=dec("validation.high_income_warning"),
            pension_warning_ratio=dec("validation.pension_warning_ratio"),
            asset_turnover_warning_ratio=dec("validation.asset_turnover_warning_ratio"),
            agricultural_max_lookback_years=whole("validation.agricultural_max_lookback_years"),
            presumptive_max_employees=whole("validation.presumptive_max_employees"),
            max_years_of_service=whole("validation.max_years_of_service"),
        ),
        checksum=compute_checksum(values),
    )


def load_flat_values(
    tax_year: int,
    config_dir: Path | None = None,
) -> tuple[dict[str, Any], str]:
    """Read ``<tax_year>.yaml`` and return ``(flat values, currency)``."""
    path = (config_dir or DEFAULT_SETS_DIR) / f"{tax_year}.yaml"
    if not path.exists():
        logger.warning("config_year_not_found", extra={
            "tax_year": tax_year,
            "path": str(path),
        })
        raise ConfigNotFoundError(tax_year, path.name)
    data = load_yaml_file(path)
    declared = data.get("tax_year")
    if declared is not None and int(declared) != tax_year:
        raise ValueError(
            f"{path.name} declares tax_year {declared}, expected {tax_year}"
        )
    return flatten_sections(data), data.get("currency", "NGN")


def load_tax_year(tax_year: int, config_dir: Path | None = None) -> TaxYearConfig:
    """
    Load, parse and validate the parameter set for ``tax_year``.

    Emits a ``TAX_CONFIG_TRACE`` log record carrying the checksum so every
    computation can be tied back to the parameters that governed it.

    Raises:
        ConfigNotFoundError: no YAML file for the year.
        ValueError: the parameters fail structural validation.
    """
    from tax_config.validator import validate_config

    values, currency = load_flat_values(tax_year, config_dir)
    config = parse_tax_year_config(tax_year, values, currency)

    validation = validate_config(config)
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )

    logger.info(
        "TAX_CONFIG_TRACE",
        extra={
            "trace_type": "TAX_CONFIG_TRACE",
            "tax_year": tax_year,
            "source": "yaml",
            "checksum": config.checksum,
            "bracket_count": len(config.pit.brackets),
        },
    )
    return config


def available_tax_years(config_dir: Path | None = None) -> tuple[int, ...]:
    """Tax years that have a parameter file, ascending."""
    sets_dir = config_dir or DEFAULT_SETS_DIR
    return tuple(sorted(int(p.stem) for p in sets_dir.glob("*.yaml") if p.stem.isdigit()))


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
