"""
BackingStore -- the persistent store the ordering core consumes.

Responsibility:
    ``BackingStore`` is the interface the staging cache, client records and
    the order desk depend on.  ``SqlBackingStore`` implements it over the
    SQLAlchemy tables in ``feaa_kernel.db.models``.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.  Owns its sessions
    (one short transaction per call) because callers above it are not
    SQLAlchemy-aware.

Invariants enforced:
    - Order ids come from a locked sequence row, never max()+1.
    - Reports loaded back from the store are rebuilt through the store's
      ValueCache, so their payloads are the canonical shared tuples.
    - Every token-taking call rejects a missing token.

Failure modes:
    - UnauthenticatedError when ``token`` is None.
    - SQLAlchemyError propagates from the database.
"""

from __future__ import annotations

import threading
from datetime import UTC
from abc import ABC, abstractmethod
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from feaa_kernel.db.engine import session_scope
from feaa_kernel.db.models import ClientRow, OrderRow, SequenceCounter
from feaa_kernel.domain.client import ClientField
from feaa_kernel.domain.cost_policy import CostPolicy
from feaa_kernel.domain.order import Order
from feaa_kernel.domain.value_cache import ValueCache
from feaa_kernel.domain.values import Report
from feaa_kernel.exceptions import UnauthenticatedError
from feaa_kernel.logging_config import get_logger

logger = get_logger("services.backing_store")

ORDER_SEQUENCE = "order"

_CLIENT_COLUMNS: dict[str, str] = {
    ClientField.FIRST_NAME.value: "first_name",
    ClientField.LAST_NAME.value: "last_name",
    ClientField.PHONE_NUMBER.value: "phone_number",
    ClientField.EMAIL_ADDRESS.value: "email_address",
    ClientField.ADDRESS.value: "address",
    ClientField.SUBURB.value: "suburb",
    ClientField.STATE.value: "state",
    ClientField.POST_CODE.value: "post_code",
    ClientField.INTERNAL_ACCOUNTING.value: "internal_accounting",
    ClientField.BUSINESS_NAME.value: "business_name",
    ClientField.PIGEON_COOP_ID.value: "pigeon_coop_id",
}


class BackingStore(ABC):
    """
    Persistent store for clients and orders.

    Contract:
        Calls are synchronous; bounding their latency is the caller's
        concern.  ``save_order`` is an upsert keyed by order id.
    """

    @abstractmethod
    def get_client_field(self, token: Any, client_id: int, field_name: str) -> str | None:
        ...

    @abstractmethod
    def save_order(self, token: Any, order: Order) -> None:
        ...

    @abstractmethod
    def get_order(self, token: Any, order_id: int) -> Order | None:
        ...

    @abstractmethod
    def get_orders(self, token: Any) -> list[Order]:
        ...

    @abstractmethod
    def get_client_ids(self, token: Any) -> list[int]:
        ...

    @abstractmethod
    def get_next_order_id(self) -> int:
        ...

    @abstractmethod
    def remove_order(self, token: Any, order_id: int) -> bool:
        ...


def _require_token(token: Any, operation: str) -> None:
    if token is None:
        raise UnauthenticatedError(operation)


class SqlBackingStore(BackingStore):
    """
    SQLAlchemy implementation of ``BackingStore``.

    Guarantees:
        - Each call runs in its own transaction (``session_scope``).
        - ``get_next_order_id`` is strictly increasing for this database.
    """

    def __init__(self, session_factory: sessionmaker[Session], value_cache: ValueCache):
        self._session_factory = session_factory
        self._value_cache = value_cache
        # SQLite ignores FOR UPDATE; serialize allocation within the process too
        self._sequence_lock = threading.Lock()

    # -----------------------------------------------------------------
    # Clients
    # -----------------------------------------------------------------

    def add_client(self, **fields: str | None) -> int:
        """Insert a client (seeding / admin use).  Returns the new id."""
        unknown = set(fields) - set(_CLIENT_COLUMNS.values())
        if unknown:
            raise ValueError(f"Unknown client fields: {sorted(unknown)}")
        with session_scope(self._session_factory) as session:
            row = ClientRow(**fields)
            session.add(row)
            session.flush()
            client_id = row.id
        logger.info("client_added", extra={"client_id": client_id})
        return client_id

    def get_client_field(self, token: Any, client_id: int, field_name: str) -> str | None:
        _require_token(token, "get_client_field")
        column = _CLIENT_COLUMNS.get(field_name)
        if column is None:
            raise ValueError(f"Unknown client field: {field_name!r}")
        with session_scope(self._session_factory) as session:
            row = session.get(ClientRow, client_id)
            value = getattr(row, column) if row is not None else None
        logger.debug(
            "client_field_fetched",
            extra={"client_id": client_id, "field_name": field_name},
        )
        return value

    def get_client_ids(self, token: Any) -> list[int]:
        _require_token(token, "get_client_ids")
        with session_scope(self._session_factory) as session:
            return list(session.scalars(select(ClientRow.id).order_by(ClientRow.id)))

    # -----------------------------------------------------------------
    # Orders
    # -----------------------------------------------------------------

    def get_next_order_id(self) -> int:
        with self._sequence_lock, session_scope(self._session_factory) as session:
            counter = session.execute(
                select(SequenceCounter)
                .where(SequenceCounter.name == ORDER_SEQUENCE)
                .with_for_update()
            ).scalar_one_or_none()
            if counter is None:
                counter = SequenceCounter(name=ORDER_SEQUENCE, current_value=0)
                session.add(counter)
            counter.current_value += 1
            value = counter.current_value
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": ORDER_SEQUENCE, "value": value},
        )
        return value

    def save_order(self, token: Any, order: Order) -> None:
        _require_token(token, "save_order")
        lines = [
            {**report.to_dict(), "employee_count": count}
            for report, count in order.lines().items()
        ]
        order_date = order.order_date
        if order_date.tzinfo is not None:
            order_date = order_date.astimezone(UTC)
        with session_scope(self._session_factory) as session:
            session.merge(
                OrderRow(
                    id=order.order_id,
                    client_id=order.client_id,
                    order_date=order_date,
                    finalised=order.is_finalised,
                    policy=order.policy.to_dict(),
                    lines=lines,
                )
            )
        logger.info(
            "order_saved",
            extra={"order_id": order.order_id, "line_count": len(lines)},
        )

    def get_order(self, token: Any, order_id: int) -> Order | None:
        _require_token(token, "get_order")
        with session_scope(self._session_factory) as session:
            row = session.get(OrderRow, order_id)
            return self._to_order(row) if row is not None else None

    def get_orders(self, token: Any) -> list[Order]:
        _require_token(token, "get_orders")
        with session_scope(self._session_factory) as session:
            rows = session.scalars(select(OrderRow).order_by(OrderRow.id))
            return [self._to_order(row) for row in rows]

    def remove_order(self, token: Any, order_id: int) -> bool:
        _require_token(token, "remove_order")
        with session_scope(self._session_factory) as session:
            row = session.get(OrderRow, order_id)
            if row is None:
                return False
            session.delete(row)
        logger.info("order_removed", extra={"order_id": order_id})
        return True

    def _to_order(self, row: OrderRow) -> Order:
        order_date = row.order_date
        if order_date.tzinfo is None:
            # SQLite drops the offset; save_order writes UTC
            order_date = order_date.replace(tzinfo=UTC)
        order = Order(
            row.id,
            row.client_id,
            order_date,
            CostPolicy.from_dict(row.policy),
        )
        for line in row.lines:
            order.set_report(Report.from_dict(self._value_cache, line), line["employee_count"])
        if row.finalised:
            order.finalise()
        return order
