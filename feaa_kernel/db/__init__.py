"""
Module: feaa_kernel.db
Responsibility: SQLAlchemy declarative base, engine/session management and
    the ORM tables behind ``SqlBackingStore``.
"""

from feaa_kernel.db.base import Base
from feaa_kernel.db.engine import build_engine, create_tables, session_scope

__all__ = [
    "Base",
    "build_engine",
    "create_tables",
    "session_scope",
]
