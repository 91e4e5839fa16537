"""
Module: feaa_kernel.db.base
Responsibility: Declarative base class for all SQLAlchemy ORM models, with a
    type annotation map that keeps column types consistent.
Architecture position: Kernel > DB.  Lowest-level import target within the
    persistence layer.  MUST NOT import from models, services or domain.

Invariants enforced:
    - Decimal precision: Python Decimal maps to Numeric(38, 9).  NEVER use
      float for monetary amounts.
    - Timestamps are timezone-aware.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import BigInteger, DateTime, Integer, Numeric
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """
    Declarative base for all SQLAlchemy models.

    Guarantees:
        - Decimal maps to Numeric(38, 9) -- financial-grade precision.
        - datetime maps to DateTime(timezone=True).
        - int maps to BigInteger (INTEGER on SQLite).

    Unlike a surrogate-key schema, each model declares its own primary key:
    order ids are allocated by the store's sequence and are part of the
    domain.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        # SQLite only autoincrements INTEGER primary keys
        int: BigInteger().with_variant(Integer, "sqlite"),
    }
