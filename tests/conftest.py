"""
Pytest fixtures for the FEAA ordering test suite.

Provides:
- An in-memory SQLite backing store per test (fresh schema every time)
- A fake auth provider and mock contact transports
- A deterministic clock and a fresh ValueCache per test
- Captured structured logs
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import sessionmaker

from feaa_config.schema import FeaaConfig, ReportDefinition
from feaa_kernel.db.engine import build_engine, create_tables
from feaa_kernel.domain.clock import DeterministicClock
from feaa_kernel.domain.contact import ContactMethod
from feaa_kernel.domain.value_cache import ValueCache
from feaa_kernel.domain.values import Report
from feaa_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from feaa_kernel.services.backing_store import SqlBackingStore
from feaa_services.auth import AuthToken, StaticAuthProvider
from feaa_services.order_desk import OrderDesk

TEST_USER = "alice"
TEST_PASSWORD = "secret"


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
    Capture feaa logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "order_created" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("feaa")
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
# Domain fixtures
# =============================================================================


@pytest.fixture
def value_cache() -> ValueCache:
    return ValueCache()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock()


@pytest.fixture
def order_date() -> datetime:
    return datetime(2024, 3, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def make_report(value_cache):
    """Factory for interned reports: make_report("Audit", "10", legal_data=[1.0])."""

    def _make(name: str = "Audit", commission="10", **payloads) -> Report:
        return Report.create(value_cache, name, commission, **payloads)

    return _make


# =============================================================================
# Database / store fixtures
# =============================================================================


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database with every table created."""
    eng = build_engine("sqlite://")
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def store(session_factory, value_cache) -> SqlBackingStore:
    return SqlBackingStore(session_factory, value_cache)


@pytest.fixture
def token() -> AuthToken:
    return AuthToken(TEST_USER)


@pytest.fixture
def full_client(store) -> int:
    """A client with every contact field on file."""
    return store.add_client(
        first_name="Brian",
        last_name="Cohen",
        phone_number="0400 000 000",
        email_address="brian@example.com",
        address="1 Nazareth St",
        suburb="Bethlehem",
        state="NSW",
        post_code="2000",
        internal_accounting="IA-42",
        business_name="Cohen & Sons",
        pigeon_coop_id="COOP-9",
    )


@pytest.fixture
def email_only_client(store) -> int:
    return store.add_client(
        first_name="Reg",
        last_name="Judean",
        email_address="reg@pfj.example",
    )


# =============================================================================
# Session fixtures
# =============================================================================


@pytest.fixture
def auth() -> StaticAuthProvider:
    return StaticAuthProvider({TEST_USER: TEST_PASSWORD})


@pytest.fixture
def transports() -> dict[ContactMethod, MagicMock]:
    """One recording transport per channel."""
    return {method: MagicMock(name=f"{method.name.lower()}_transport") for method in ContactMethod}


@pytest.fixture
def config() -> FeaaConfig:
    return FeaaConfig(
        firm_name="Crimson Permanent Assurance",
        database_url="sqlite://",
        log_level="DEBUG",
        default_contact_priority=(),
        reports=(
            ReportDefinition("Cash Flow", Decimal("8.00"), cash_flow_data=(1.0, 2.0)),
            ReportDefinition("Annual Return", Decimal("12.50"), legal_data=(3.0,)),
        ),
        checksum="test",
    )


@pytest.fixture
def desk(store, auth, transports, config, clock, value_cache) -> OrderDesk:
    return OrderDesk(
        store,
        auth,
        transports,
        config=config,
        clock=clock,
        value_cache=value_cache,
    )


@pytest.fixture
def logged_in_desk(desk) -> OrderDesk:
    assert desk.login(TEST_USER, TEST_PASSWORD)
    return desk
