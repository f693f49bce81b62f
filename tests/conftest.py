"""
Pytest fixtures for the tax engine test suite.

Provides:
- Structured logging configured once per session, LogContext cleared per test
- The 2026 configuration snapshot
- A deterministic clock and a test actor id
- In-memory SQLite SQLAlchemy sessions for the ORM companions
- Builders for common domain objects
"""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import Generator
from uuid import UUID, uuid4

import pytest
from sqlalchemy.orm import Session

from tax_config import load_tax_year
from tax_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from tax_kernel.domain.clock import DeterministicClock
from tax_kernel.domain.repositories import InMemoryDocumentSource, InMemoryRepository
from tax_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from tax_modules.capital_credit import CapitalCreditLedger
from tax_modules.computation.models import BusinessProfile, IncomeRecord, IncomeSource
from tax_modules.tax_return import Document, TaxReturnAssembler


# Test actor ID for all test operations
TEST_ACTOR_ID = uuid4()


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture tax_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, engine):
            engine.compute(...)
            logs = captured_logs()
            assert any(r["message"] == "tax_computation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("tax_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Configuration and time
# =============================================================================


@pytest.fixture(scope="session")
def config_2026():
    """The 2026 parameter snapshot shipped in tax_config/sets."""
    return load_tax_year(2026)


@pytest.fixture
def config_provider(config_2026):
    """Serve the 2026 parameters for any requested year."""
    from dataclasses import replace

    def _provide(tax_year: int):
        return config_2026 if tax_year == 2026 else replace(config_2026, tax_year=tax_year)

    return _provide


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    """Fixed at 2026-06-30 12:00 UTC."""
    return DeterministicClock()


@pytest.fixture
def test_actor_id() -> UUID:
    return TEST_ACTOR_ID


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def sqlite_database() -> Generator[None, None, None]:
    """In-memory SQLite database with every ORM table created."""
    reset_engine()
    init_engine_from_url("sqlite:///:memory:")
    create_tables()
    try:
        yield
    finally:
        drop_tables()
        reset_engine()


@pytest.fixture
def session(sqlite_database) -> Generator[Session, None, None]:
    """A session on ``sqlite_database``; rolled back after the test."""
    db_session = get_session()
    try:
        yield db_session
    finally:
        db_session.rollback()
        db_session.close()


# =============================================================================
# Domain builders
# =============================================================================


@pytest.fixture
def user_id() -> UUID:
    return uuid4()


@pytest.fixture
def make_income():
    def _make(user_id, amount, tax_year=2026, source=IncomeSource.SALARY, business_id=None):
        return IncomeRecord(
            id=uuid4(),
            user_id=user_id,
            tax_year=tax_year,
            source=source,
            amount=Decimal(str(amount)),
            business_id=business_id,
        )

    return _make


@pytest.fixture
def make_document():
    def _make(owner_id, document_type, tax_year=2026):
        return Document(
            id=uuid4(),
            owner_id=owner_id,
            document_type=document_type,
            file_url=f"https://files.example/{document_type}/{uuid4().hex[:8]}.pdf",
            tax_year=tax_year,
        )

    return _make


@pytest.fixture
def make_business():
    def _make(owner_id, **overrides):
        values = {
            "id": uuid4(),
            "owner_id": owner_id,
            "name": "Adebayo Foods Ltd",
            "tin": "12345678-0001",
            "business_type": "manufacturing",
            "asset_value": Decimal("50000000"),
        }
        values.update(overrides)
        return BusinessProfile(**values)

    return _make


@pytest.fixture
def ledger(config_provider) -> CapitalCreditLedger:
    return CapitalCreditLedger(InMemoryRepository(), config_provider=config_provider)


@pytest.fixture
def assembler_parts(config_provider, deterministic_clock, ledger):
    """Repositories and collaborators behind ``assembler`` for direct seeding."""
    return {
        "returns": InMemoryRepository(),
        "income_records": InMemoryRepository(),
        "businesses": InMemoryRepository(),
        "documents": InMemoryDocumentSource(),
        "config_provider": config_provider,
        "clock": deterministic_clock,
        "ledger": ledger,
    }


@pytest.fixture
def assembler(assembler_parts) -> TaxReturnAssembler:
    return TaxReturnAssembler(**assembler_parts)


@pytest.fixture
def agricultural_start() -> date:
    return date(2023, 3, 1)
