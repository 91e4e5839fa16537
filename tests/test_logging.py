"""
Tests for feaa_kernel.logging_config.

Covers what ordering code relies on:
- Money, dates, channels and id sets render as stable JSON
- Session fields: stringified, scoped by bind(), and winning over extras
- Commit and delivery failures carry their structured fields
- reset_logging hands the namespace back to the root logger
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from feaa_kernel.domain.contact import ContactMethod
from feaa_kernel.exceptions import InvoiceDeliveryError, PartialCommitError
from feaa_kernel.logging_config import (
    LogContext,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _fresh_logging():
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


@pytest.fixture
def json_lines():
    """Configure logging into a buffer; call the fixture value to read parsed lines."""
    stream = StringIO()
    configure_logging(stream=stream, level=logging.DEBUG)

    def _read() -> list[dict]:
        return [json.loads(line) for line in stream.getvalue().splitlines() if line]

    return _read


logger = get_logger("tests.logging")


class _Opaque:
    def __str__(self) -> str:
        return "opaque"


class TestRecordEncoding:
    def test_money_dates_channels_and_id_sets(self, json_lines):
        when = datetime(2024, 1, 1, tzinfo=timezone.utc)
        logger.info(
            "order_priced",
            extra={
                "total": Decimal("12.50"),
                "at": when,
                "order_ids": {3, 1, 2},
                "method": ContactMethod.CARRIER_PIGEON,
            },
        )

        (record,) = json_lines()
        assert record["total"] == "12.50"
        assert record["at"] == "2024-01-01T00:00:00+00:00"
        assert record["order_ids"] == [1, 2, 3]
        assert record["method"] == "carrier pigeon"

    def test_unknown_objects_fall_back_to_str(self, json_lines):
        logger.info("odd_value", extra={"value": _Opaque()})
        assert json_lines()[0]["value"] == "opaque"


class TestSessionFields:
    def test_bind_stringifies_and_restores(self):
        LogContext.set(session_id="s-1")
        with LogContext.bind(order_id=17, client_id=4):
            assert LogContext.get_all() == {
                "session_id": "s-1",
                "order_id": "17",
                "client_id": "4",
            }
        assert LogContext.get_all() == {"session_id": "s-1"}

    def test_bind_discards_changes_made_inside(self):
        with LogContext.bind(order_id=1):
            LogContext.set(actor_id="alice")
        assert LogContext.get_all() == {}

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError):
            LogContext.set(invoice_id="x")

    def test_bound_field_wins_over_extra(self, json_lines):
        with LogContext.bind(order_id=9):
            logger.info("invoice_dispatched", extra={"order_id": 1, "method": "email"})

        (record,) = json_lines()
        assert record["order_id"] == "9"
        assert record["method"] == "email"

    def test_finalise_logs_under_the_order(
        self, logged_in_desk, email_only_client, captured_logs
    ):
        order_id = logged_in_desk.create_order(email_only_client, order_type=2)
        logged_in_desk.finalise_order(order_id, ["email"])

        record = next(r for r in captured_logs() if r["message"] == "order_finalised")
        assert record["order_id"] == str(order_id)
        assert record["client_id"] == str(email_only_client)
        assert record["method"] == "email"
        assert LogContext.get_all() == {}


class TestFailureFields:
    def test_partial_commit(self, json_lines):
        try:
            raise PartialCommitError(failed_ids=[3], saved_ids=[1, 2])
        except PartialCommitError:
            logger.error("staging_commit_failed", exc_info=True)

        (record,) = json_lines()
        assert record["exc_code"] == "PARTIAL_COMMIT"
        assert record["exc_failed_ids"] == [3]
        assert record["exc_saved_ids"] == [1, 2]
        assert record["exc_failed_count"] == 1
        assert record["exc_saved_count"] == 2
        assert "traceback" in record

    def test_delivery_failure_names_the_cause(self, json_lines):
        try:
            try:
                raise ConnectionError("coop unreachable")
            except ConnectionError as e:
                raise InvoiceDeliveryError("carrier pigeon", 5, str(e)) from e
        except InvoiceDeliveryError:
            logger.error("invoice_delivery_failed", exc_info=True)

        (record,) = json_lines()
        assert record["exc_code"] == "INVOICE_DELIVERY_FAILED"
        assert record["exc_method"] == "carrier pigeon"
        assert record["exc_client_id"] == 5
        assert record["exc_cause"] == "ConnectionError: coop unreachable"

    def test_foreign_exception_has_no_code(self, json_lines):
        try:
            raise KeyError("fName")
        except KeyError:
            logger.error("lookup_failed", exc_info=True)

        (record,) = json_lines()
        assert record["exc_type"] == "KeyError"
        assert "exc_code" not in record
        assert "exc_cause" not in record


class TestSetup:
    def test_second_configure_keeps_first_handler(self):
        first = configure_logging(stream=StringIO())
        assert configure_logging(stream=StringIO()) is first
        assert logging.getLogger("feaa").handlers == [first]

    def test_reset_restores_propagation(self):
        configure_logging(stream=StringIO())
        reset_logging()

        root = logging.getLogger("feaa")
        assert root.propagate
        assert root.handlers == []
        assert root.level == logging.NOTSET
