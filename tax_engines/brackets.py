"""
Progressive Bracket Table (``tax_engines.brackets``).

Responsibility:
    Walk a progressive bracket table from the lowest slab upward and
    report the tax per slab, the total, and the marginal rate.

Architecture position:
    Engines -- pure calculation.  ZERO I/O beyond a CRITICAL log record
    when a coverage defect is detected.

Invariants enforced:
    - A BracketTable cannot be constructed over brackets that fail to
      cover ``[0, inf)`` exactly once.
    - All arithmetic is unrounded Decimal; rounding happens at reporting.
    - ``sum(slice.taxable_amount) == taxable_income`` after a walk.

Failure modes:
    - BracketCoverageError on an invalid table, or if a walk ever ends
      with income left unallocated.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from tax_config.schema import TaxBracket
from tax_config.validator import bracket_coverage_problems
from tax_kernel.exceptions import BracketCoverageError
from tax_kernel.logging_config import get_logger

logger = get_logger("engines.brackets")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class BracketSlice:
    """The part of taxable income that fell into one bracket."""

    lower_bound: Decimal
    upper_bound: Decimal | None
    rate: Decimal
    taxable_amount: Decimal
    tax: Decimal


@dataclass(frozen=True)
class BracketWalk:
    """Outcome of walking a bracket table for one taxable amount."""

    taxable_income: Decimal
    total_tax: Decimal
    slices: tuple[BracketSlice, ...]
    marginal_rate: Decimal

    @property
    def effective_rate(self) -> Decimal:
        if self.taxable_income <= _ZERO:
            return _ZERO
        return self.total_tax / self.taxable_income


class BracketTable:
    """
    Validated, ordered progressive bracket table.

    Contract:
        Constructed only over a contiguous table starting at 0 and ending
        with one unbounded bracket.

    Guarantees:
        ``tax_for`` is non-decreasing in its argument and continuous at
        every bracket boundary.
    """

    def __init__(self, brackets: tuple[TaxBracket, ...]):
        problems = bracket_coverage_problems(tuple(brackets))
        if problems:
            logger.critical(
                "bracket_coverage_violated",
                extra={"problems": problems},
            )
            raise BracketCoverageError("; ".join(problems))
        self._brackets = tuple(brackets)

    @property
    def brackets(self) -> tuple[TaxBracket, ...]:
        return self._brackets

    def walk(self, taxable_income: Decimal) -> BracketWalk:
        """Allocate ``taxable_income`` across brackets from the bottom up.

        Negative input is treated as zero; callers clamp before calling.
        """
        remaining = max(_ZERO, taxable_income)
        total = _ZERO
        marginal = _ZERO
        slices: list[BracketSlice] = []

        for bracket in self._brackets:
            if remaining <= _ZERO:
                break
            width = bracket.width
            in_bracket = remaining if width is None else min(remaining, width)
            tax = in_bracket * bracket.rate
            slices.append(
                BracketSlice(
                    lower_bound=bracket.lower_bound,
                    upper_bound=bracket.upper_bound,
                    rate=bracket.rate,
                    taxable_amount=in_bracket,
                    tax=tax,
                )
            )
            total += tax
            marginal = bracket.rate
            remaining -= in_bracket

        if remaining > _ZERO:
            logger.critical(
                "bracket_walk_unallocated",
                extra={"taxable_income": str(taxable_income), "unallocated": str(remaining)},
            )
            raise BracketCoverageError(
                "income left unallocated after last bracket", str(remaining),
            )

        return BracketWalk(
            taxable_income=max(_ZERO, taxable_income),
            total_tax=total,
            slices=tuple(slices),
            marginal_rate=marginal,
        )

    def tax_for(self, taxable_income: Decimal) -> Decimal:
        return self.walk(taxable_income).total_tax
