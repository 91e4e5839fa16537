"""
Module: feaa_kernel.db.models
Responsibility: ORM tables behind SqlBackingStore -- clients, orders and the
    named sequence counters used for order id allocation.
Architecture position: Kernel > DB.  May import from db/base.py only.

Invariants enforced:
    - Order ids come from ``sequence_counters`` (locked row), never from an
      aggregate max()+1 over ``orders``.
    - Money and loading values are stored as strings inside the order's JSON
      columns so no float round-trip ever touches them.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from feaa_kernel.db.base import Base


class ClientRow(Base):
    """
    A client and its contact details.

    Every contact column is nullable: a client usually has only some of the
    contact methods on file.
    """

    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    first_name: Mapped[str | None] = mapped_column(String(100))
    last_name: Mapped[str | None] = mapped_column(String(100))
    phone_number: Mapped[str | None] = mapped_column(String(50))
    email_address: Mapped[str | None] = mapped_column(String(255))
    address: Mapped[str | None] = mapped_column(String(255))
    suburb: Mapped[str | None] = mapped_column(String(100))
    state: Mapped[str | None] = mapped_column(String(50))
    post_code: Mapped[str | None] = mapped_column(String(20))
    internal_accounting: Mapped[str | None] = mapped_column(String(100))
    business_name: Mapped[str | None] = mapped_column(String(255))
    pigeon_coop_id: Mapped[str | None] = mapped_column(String(100))


class OrderRow(Base):
    """
    A persisted order.

    ``policy`` holds ``CostPolicy.to_dict()``; ``lines`` holds one
    ``Report.to_dict()`` per line plus its ``employee_count``.
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=False)
    client_id: Mapped[int] = mapped_column(nullable=False, index=True)
    order_date: Mapped[datetime] = mapped_column(nullable=False)
    finalised: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    policy: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    lines: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row represents a named sequence with its current value.
    Row-level locking ensures uniqueness under concurrency.
    """

    __tablename__ = "sequence_counters"

    name: Mapped[str] = mapped_column(String(50), primary_key=True)
    current_value: Mapped[int] = mapped_column(nullable=False, default=0)
