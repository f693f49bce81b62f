"""
Tax Calculation Service (``tax_modules.computation.service``).

Responsibility:
    Validated entry point for ad-hoc calculations.  Loads the year's
    configuration, validates the input, computes through
    ``TaxComputationEngine`` and optionally records the result in the
    calculation history.

Architecture:
    tax_modules -- Thin glue (this layer).
    1. ``config_provider`` supplies the ``TaxYearConfig`` snapshot.
    2. ``validate_input`` checks business rules (pure).
    3. ``TaxComputationEngine`` computes (pure).
    4. The optional history repository persists ``TaxCalculationRecord``.

Failure modes:
    - InputValidationError carrying every field error when validation fails.
      Warnings never block a calculation.
    - ConfigNotFoundError when no configuration exists for the tax year.
    - CollaboratorNotConfiguredError when recording without a history
      repository.

Usage:
    service = TaxCalculationService(history=InMemoryRepository())
    outcome = service.calculate(
        PersonalIncomeTaxInput(gross_income=Decimal("5000000"), tax_year=2026),
        user_id=user_id,
        record=True,
    )
    outcome.result.tax_liability
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID, uuid4

from tax_config import load_tax_year
from tax_config.schema import TaxYearConfig
from tax_engines.computation import TaxComputationEngine, TaxComputationInput, TaxComputationResult
from tax_engines.validation import validate_input
from tax_kernel.domain.clock import Clock, SystemClock
from tax_kernel.domain.repositories import Repository
from tax_kernel.domain.validation import ValidationResult
from tax_kernel.exceptions import CollaboratorNotConfiguredError
from tax_kernel.logging_config import get_logger
from tax_modules.computation.models import TaxCalculationRecord

logger = get_logger("modules.computation.service")


@dataclass(frozen=True)
class CalculationOutcome:
    """A computed result together with the warnings raised while validating it."""

    result: TaxComputationResult
    validation: ValidationResult
    record: TaxCalculationRecord | None = None

    @property
    def warnings(self) -> tuple[str, ...]:
        return tuple(issue.message for issue in self.validation.warnings)


class TaxCalculationService:
    """
    Validate, compute and optionally record one calculation.

    Contract:
        All collaborators are injected.  ``history`` may be omitted when
        nothing needs recording.

    Guarantees:
        - An invalid input never reaches the engine.
        - A recorded calculation carries the JSON-safe breakdown.
    """

    def __init__(
        self,
        config_provider: Callable[[int], TaxYearConfig] = load_tax_year,
        clock: Clock | None = None,
        engine: TaxComputationEngine | None = None,
        history: Repository[TaxCalculationRecord] | None = None,
    ):
        self._config_provider = config_provider
        self._clock = clock or SystemClock()
        self._engine = engine or TaxComputationEngine()
        self._history = history

    def config_for(self, tax_year: int) -> TaxYearConfig:
        return self._config_provider(tax_year)

    def validate(self, inp: TaxComputationInput) -> ValidationResult:
        return validate_input(inp, self.config_for(inp.tax_year), self._clock.today())

    def calculate(
        self,
        inp: TaxComputationInput,
        *,
        user_id: UUID | None = None,
        business_id: UUID | None = None,
        record: bool = False,
        notes: str | None = None,
    ) -> CalculationOutcome:
        config = self.config_for(inp.tax_year)
        validation = validate_input(inp, config, self._clock.today())

        if not validation.is_valid:
            logger.warning("tax_calculation_rejected", extra={
                "tax_type": inp.tax_type.value,
                "tax_year": inp.tax_year,
                "error_fields": [issue.field for issue in validation.errors],
            })
        validation.raise_for_errors()

        if validation.warnings:
            logger.info("tax_calculation_warnings", extra={
                "tax_type": inp.tax_type.value,
                "warning_fields": [issue.field for issue in validation.warnings],
            })

        result = self._engine.compute(inp, config)

        saved = None
        if record:
            saved = self._record(result, user_id, business_id, notes)

        return CalculationOutcome(result=result, validation=validation, record=saved)

    def history(
        self,
        *,
        user_id: UUID | None = None,
        business_id: UUID | None = None,
    ) -> list[TaxCalculationRecord]:
        """Recorded calculations, newest first."""
        if self._history is None:
            return []
        criteria = {}
        if user_id is not None:
            criteria["user_id"] = user_id
        if business_id is not None:
            criteria["business_id"] = business_id
        records = self._history.find(**criteria)
        return sorted(records, key=lambda r: r.calculated_at, reverse=True)

    def _record(
        self,
        result: TaxComputationResult,
        user_id: UUID | None,
        business_id: UUID | None,
        notes: str | None,
    ) -> TaxCalculationRecord:
        if self._history is None:
            raise CollaboratorNotConfiguredError(
                "TaxCalculationService", "calculation history", "record",
            )

        record = TaxCalculationRecord(
            id=uuid4(),
            tax_type=result.tax_type,
            tax_year=result.tax_year,
            gross_income=result.gross_income,
            deductions=result.deductions,
            total_reliefs=result.total_reliefs,
            taxable_income=result.taxable_income,
            tax_liability=result.tax_liability,
            calculated_at=self._clock.now(),
            user_id=user_id,
            business_id=business_id,
            breakdown=result.to_dict(),
            notes=notes,
        )
        self._history.save(record)

        logger.info("tax_calculation_recorded", extra={
            "record_id": str(record.id),
            "tax_type": record.tax_type.value,
            "tax_year": record.tax_year,
            "tax_liability": str(record.tax_liability),
        })
        return record
