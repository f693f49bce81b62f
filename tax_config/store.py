"""
Configuration Store (``tax_config.store``).

Responsibility
--------------
The configuration collaborator: versioned values keyed by
``(tax_year, config_key)``.  Changing a year's law parameters is a data
change (new or updated rows), never a code change.  ``snapshot`` turns a
year's rows into the frozen ``TaxYearConfig`` that computations receive.

Architecture position
---------------------
**Config layer** -- stateful service over a ``Repository[ConfigEntry]``
(in-memory or ``SqlAlchemyRepository`` over ``TaxConfigurationModel``).

Invariants enforced
-------------------
* At most one active row per ``(tax_year, config_key)``; ``set_value``
  updates in place.
* No cache: every ``snapshot`` reads the repository, so callers decide
  how long to hold a snapshot.

Failure modes
-------------
* ``ConfigNotFoundError`` for a missing key.
* ``ValueError`` when a snapshot fails structural validation.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4

from tax_config.loader import JSON_KEYS, load_flat_values, parse_decimal, parse_tax_year_config
from tax_config.schema import TaxYearConfig
from tax_config.validator import validate_config
from tax_kernel.domain.repositories import Repository
from tax_kernel.exceptions import ConfigNotFoundError
from tax_kernel.logging_config import get_logger

logger = get_logger("config.store")


class ConfigValueType(str, Enum):
    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    JSON = "json"


@dataclass(frozen=True)
class ConfigEntry:
    """One stored configuration value, serialized as text."""

    id: UUID
    tax_year: int
    config_key: str
    config_value: str
    value_type: ConfigValueType
    description: str | None = None
    is_active: bool = True


def encode_value(value: Any, value_type: ConfigValueType) -> str:
    match value_type:
        case ConfigValueType.JSON:
            return json.dumps(value, sort_keys=True, default=str)
        case ConfigValueType.BOOLEAN:
            return "true" if value else "false"
        case ConfigValueType.NUMBER:
            return str(parse_decimal(value))
        case _:
            return str(value)


def decode_value(text: str, value_type: ConfigValueType) -> Any:
    match value_type:
        case ConfigValueType.JSON:
            return json.loads(text)
        case ConfigValueType.BOOLEAN:
            return text.strip().lower() == "true"
        case ConfigValueType.NUMBER:
            return Decimal(text)
        case _:
            return text


def infer_value_type(key: str, value: Any) -> ConfigValueType:
    if key in JSON_KEYS or isinstance(value, (list, dict)):
        return ConfigValueType.JSON
    if isinstance(value, bool):
        return ConfigValueType.BOOLEAN
    return ConfigValueType.NUMBER


class TaxConfigStore:
    """
    Versioned tax parameters keyed by ``(tax_year, config_key)``.

    Contract:
        Reads and writes go through the injected repository.  The store
        holds no other state.
    """

    def __init__(self, repository: Repository[ConfigEntry]):
        self._repository = repository

    def get_entry(self, tax_year: int, config_key: str) -> ConfigEntry:
        entry = self._repository.find_one(
            tax_year=tax_year, config_key=config_key, is_active=True,
        )
        if entry is None:
            logger.warning(
                "config_not_found",
                extra={"tax_year": tax_year, "config_key": config_key},
            )
            raise ConfigNotFoundError(tax_year, config_key)
        return entry

    def get_value(self, tax_year: int, config_key: str) -> Any:
        """Return the decoded value (Decimal for numbers).

        Raises:
            ConfigNotFoundError: if no active row exists.
        """
        entry = self.get_entry(tax_year, config_key)
        return decode_value(entry.config_value, entry.value_type)

    def get_all(self, tax_year: int) -> list[ConfigEntry]:
        """Active rows for the year, ordered by key."""
        entries = self._repository.find(tax_year=tax_year, is_active=True)
        return sorted(entries, key=lambda e: e.config_key)

    def set_value(
        self,
        tax_year: int,
        config_key: str,
        value: Any,
        value_type: ConfigValueType | None = None,
        description: str | None = None,
    ) -> ConfigEntry:
        """Create or replace the value for ``(tax_year, config_key)``."""
        vtype = value_type or infer_value_type(config_key, value)
        text = encode_value(value, vtype)
        existing = self._repository.find_one(tax_year=tax_year, config_key=config_key)
        if existing is None:
            entry = ConfigEntry(
                id=uuid4(),
                tax_year=tax_year,
                config_key=config_key,
                config_value=text,
                value_type=vtype,
                description=description,
            )
        else:
            entry = replace(
                existing,
                config_value=text,
                value_type=vtype,
                description=description or existing.description,
                is_active=True,
            )
        self._repository.save(entry)
        logger.info(
            "config_value_set",
            extra={
                "tax_year": tax_year,
                "config_key": config_key,
                "value_type": vtype.value,
                "created": existing is None,
            },
        )
        return entry

    def delete_value(self, tax_year: int, config_key: str) -> None:
        self._repository.remove(self.get_entry(tax_year, config_key))

    def seed_defaults(self, tax_year: int, config_dir: Path | None = None) -> int:
        """
        Insert the YAML defaults for ``tax_year`` that are not stored yet.

        Existing rows are left untouched so operator overrides survive a
        re-seed.  Returns the number of rows created.
        """
        values, _ = load_flat_values(tax_year, config_dir)
        created = 0
        for key, value in sorted(values.items()):
            if self._repository.find_one(tax_year=tax_year, config_key=key) is not None:
                continue
            self.set_value(tax_year, key, value)
            created += 1
        logger.info(
            "config_defaults_seeded",
            extra={"tax_year": tax_year, "created": created, "total": len(values)},
        )
        return created

    def snapshot(self, tax_year: int) -> TaxYearConfig:
        """
        Build the frozen parameter snapshot for ``tax_year`` from stored rows.

        Raises:
            ConfigNotFoundError: a required key has no active row.
            ValueError: the assembled parameters fail validation.
        """
        values = {
            e.config_key: decode_value(e.config_value, e.value_type)
            for e in self.get_all(tax_year)
        }
        config = parse_tax_year_config(tax_year, values)
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
                "source": "store",
                "checksum": config.checksum,
                "key_count": len(values),
            },
        )
        return config
