"""
feaa_services -- Package init and public API.

Responsibility:
    Session-level orchestration over the kernel: authentication, invoice
    dispatch, the report catalog and the ``OrderDesk`` facade.

Architecture position:
    Services -- outermost layer.

    Dependency direction:
        feaa_services/ -> feaa_config/  (allowed)
        feaa_services/ -> feaa_kernel/  (allowed)
        feaa_kernel/   -> feaa_services/ (FORBIDDEN)
        feaa_config/   -> feaa_services/ (FORBIDDEN)
"""

from feaa_services.auth import AuthProvider, AuthToken, StaticAuthProvider
from feaa_services.bootstrap import dry_run_transports, open_order_desk
from feaa_services.dispatch import (
    ContactHandler,
    ContactTransport,
    DispatchChain,
    DispatchOutcome,
    LoggingTransport,
)
from feaa_services.order_desk import OrderDesk
from feaa_services.report_catalog import ReportCatalog

__all__ = [
    "AuthProvider",
    "AuthToken",
    "ContactHandler",
    "ContactTransport",
    "DispatchChain",
    "DispatchOutcome",
    "LoggingTransport",
    "OrderDesk",
    "ReportCatalog",
    "StaticAuthProvider",
    "dry_run_transports",
    "open_order_desk",
]
