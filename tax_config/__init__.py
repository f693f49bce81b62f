"""
tax_config -- per-year tax law parameters.

Responsibility:
    Provides ``load_tax_year()`` (YAML-backed) and ``TaxConfigStore``
    (repository-backed) which both yield a frozen ``TaxYearConfig``
    snapshot.  Engines never read configuration themselves; callers pass
    the snapshot explicitly into every computation.

Architecture position:
    Sits above ``tax_kernel`` and below ``tax_engines`` / ``tax_modules``.
    The kernel never imports from ``tax_config``.
"""

from __future__ import annotations

from tax_config.loader import available_tax_years, compute_checksum, load_tax_year
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
from tax_config.store import ConfigEntry, ConfigValueType, TaxConfigStore
from tax_config.validator import ConfigValidationResult, validate_config

__all__ = [
    "available_tax_years",
    "compute_checksum",
    "load_tax_year",
    "CapitalCreditParameters",
    "CgtParameters",
    "CitParameters",
    "PitParameters",
    "PresumptiveParameters",
    "TaxBracket",
    "TaxYearConfig",
    "ValidationParameters",
    "VatParameters",
    "ConfigEntry",
    "ConfigValueType",
    "TaxConfigStore",
    "ConfigValidationResult",
    "validate_config",
]
