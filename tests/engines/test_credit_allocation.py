"""
Tests for FIFO capital-credit allocation.

Covers:
- Oldest-first draw with partial consumption
- Expired, exhausted and flagged credits skipped
- Liability and balance bounds on the total applied
- Deterministic ordering on equal origin years
"""

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID, uuid4

import pytest

from tax_engines.credit_allocation import (
    allocate_fifo,
    available_balance,
    eligible_credits,
    is_eligible,
)
from tax_kernel.exceptions import InputValidationError


@dataclass(frozen=True)
class _Credit:
    id: UUID
    origin_year: int
    remaining_amount: Decimal
    expiry_year: int
    fully_utilized: bool = False


def _credit(origin_year, remaining, expiry_year=None, **kwargs):
    return _Credit(
        id=kwargs.pop("id", uuid4()),
        origin_year=origin_year,
        remaining_amount=Decimal(remaining),
        expiry_year=expiry_year if expiry_year is not None else origin_year + 5,
        **kwargs,
    )


class TestEligibility:

    def test_within_window(self):
        assert is_eligible(_credit(2024, "100"), 2026)

    def test_expiry_year_is_inclusive(self):
        assert is_eligible(_credit(2021, "100"), 2026)
        assert not is_eligible(_credit(2020, "100"), 2026)

    def test_exhausted_not_eligible(self):
        assert not is_eligible(_credit(2024, "0"), 2026)
        assert not is_eligible(_credit(2024, "10", fully_utilized=True), 2026)

    def test_ordering_oldest_first(self):
        newer = _credit(2025, "50")
        older = _credit(2023, "20")
        assert eligible_credits([newer, older], 2026) == [older, newer]

    def test_same_year_ordered_by_id(self):
        a = _credit(2024, "10", id=UUID("00000000-0000-4000-a000-000000000002"))
        b = _credit(2024, "10", id=UUID("00000000-0000-4000-a000-000000000001"))
        assert eligible_credits([a, b], 2026) == [b, a]

    def test_available_balance_excludes_expired(self):
        credits = [_credit(2020, "999"), _credit(2024, "100"), _credit(2025, "50")]
        assert available_balance(credits, 2026) == Decimal("150")


class TestAllocateFifo:

    def test_partial_consumption_of_newer_credit(self):
        """Credits 2024:100 and 2025:50 against 120 leave 2025 at 30."""
        c2024 = _credit(2024, "100")
        c2025 = _credit(2025, "50")

        allocation = allocate_fifo([c2025, c2024], 2026, Decimal("120"))

        assert allocation.credits_applied == Decimal("120")
        assert allocation.remaining_tax == Decimal("0")
        assert allocation.credits_used == 2
        first, second = allocation.applications
        assert first.credit_id == c2024.id
        assert first.remaining_after == Decimal("0")
        assert first.fully_utilized is True
        assert second.credit_id == c2025.id
        assert second.amount_applied == Decimal("20")
        assert second.remaining_after == Decimal("30")
        assert second.fully_utilized is False

    def test_credits_short_of_liability(self):
        allocation = allocate_fifo([_credit(2024, "100")], 2026, Decimal("250"))

        assert allocation.credits_applied == Decimal("100")
        assert allocation.remaining_tax == Decimal("150")

    def test_expired_credit_skipped(self):
        expired = _credit(2019, "500")
        allocation = allocate_fifo([expired], 2026, Decimal("120"))

        assert allocation.credits_applied == Decimal("0")
        assert allocation.applications == ()

    def test_zero_liability_draws_nothing(self):
        allocation = allocate_fifo([_credit(2024, "100")], 2026, Decimal("0"))

        assert allocation.credits_used == 0
        assert allocation.remaining_tax == Decimal("0")

    def test_stops_once_liability_covered(self):
        credits = [_credit(2022, "80"), _credit(2023, "80"), _credit(2024, "80")]
        allocation = allocate_fifo(credits, 2026, Decimal("100"))

        assert allocation.credits_used == 2
        assert [a.origin_year for a in allocation.applications] == [2022, 2023]

    def test_applied_bounded_by_liability_and_balance(self):
        credits = [_credit(2022, "35.50"), _credit(2025, "12.25")]
        for liability in ("0", "10", "35.50", "40", "47.75", "1000"):
            allocation = allocate_fifo(credits, 2026, Decimal(liability))
            assert allocation.credits_applied <= Decimal(liability)
            assert allocation.credits_applied <= Decimal("47.75")
            assert allocation.credits_applied + allocation.remaining_tax == Decimal(liability)

    def test_negative_liability_rejected(self):
        with pytest.raises(InputValidationError) as exc_info:
            allocate_fifo([_credit(2024, "100")], 2026, Decimal("-1"))

        assert exc_info.value.issues[0].field == "tax_liability"

    def test_inputs_not_mutated(self):
        credit = _credit(2024, "100")
        allocate_fifo([credit], 2026, Decimal("60"))
        assert credit.remaining_amount == Decimal("100")

    def test_trace_emitted(self, captured_logs):
        allocate_fifo([_credit(2024, "100")], 2026, Decimal("60"))

        traces = [r for r in captured_logs() if r["message"] == "TAX_ENGINE_TRACE"]
        assert len(traces) == 1
        assert traces[0]["engine_name"] == "credit_allocation"
        assert len(traces[0]["input_fingerprint"]) == 16
