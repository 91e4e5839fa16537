"""
Bootstrap -- assemble an OrderDesk from configuration.

Wires logging, the database engine, the SQL backing store and the contact
transports for one process.  Tests construct ``OrderDesk`` directly instead.
"""

from __future__ import annotations

from collections.abc import Mapping

from sqlalchemy.orm import sessionmaker

from feaa_config import get_active_config
from feaa_config.schema import FeaaConfig
from feaa_kernel.db.engine import build_engine, create_tables
from feaa_kernel.domain.clock import Clock
from feaa_kernel.domain.contact import ContactMethod
from feaa_kernel.domain.value_cache import ValueCache
from feaa_kernel.logging_config import configure_logging, get_logger
from feaa_kernel.services.backing_store import SqlBackingStore
from feaa_services.auth import AuthProvider
from feaa_services.dispatch import ContactTransport, LoggingTransport
from feaa_services.order_desk import OrderDesk

logger = get_logger("services.bootstrap")


def dry_run_transports() -> dict[ContactMethod, ContactTransport]:
    """A LoggingTransport for every channel."""
    return {method: LoggingTransport(method) for method in ContactMethod}


def open_order_desk(
    auth: AuthProvider,
    *,
    config: FeaaConfig | None = None,
    transports: Mapping[ContactMethod, ContactTransport] | None = None,
    clock: Clock | None = None,
) -> tuple[OrderDesk, SqlBackingStore]:
    """
    Build a ready-to-use desk and the store behind it.

    Tables are created if missing.  Without ``transports`` every channel
    uses the dry-run LoggingTransport.
    """
    config = config or get_active_config()
    configure_logging(level=config.log_level)

    engine = build_engine(config.database_url)
    create_tables(engine)
    value_cache = ValueCache()
    store = SqlBackingStore(
        sessionmaker(bind=engine, expire_on_commit=False), value_cache
    )
    desk = OrderDesk(
        store,
        auth,
        transports if transports is not None else dry_run_transports(),
        config=config,
        clock=clock,
        value_cache=value_cache,
    )
    logger.info(
        "order_desk_opened",
        extra={"dialect": engine.dialect.name, "config_checksum": config.checksum},
    )
    return desk, store
