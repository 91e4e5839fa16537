"""
OrderDesk -- session facade over the ordering core.

Responsibility:
    The one surface callers use: authenticate, create and edit orders,
    finalise them (which sends the invoice), and commit staged work on
    logout.  Wires together the backing store, the staging cache, the
    report catalog and the dispatch chain.

Architecture position:
    Services -- outermost layer.  Holds the session token; everything below
    receives it as an opaque value.

Invariants enforced:
    - Every operation except ``login`` requires a session token.
    - Order lookup consults the staging cache before the store, so a staged
      copy always shadows the persisted one.
    - Every mutation of an order is staged dirty before returning.
    - ``logout`` forgets the token only after a complete commit.

Failure modes:
    - UnauthenticatedError: no session.
    - UnknownClientError / UnknownOrderTypeError / InvalidCostPolicyError:
      bad ``create_order`` arguments.
    - OrderNotFoundError: order id neither staged nor stored.
    - OrderFinalisedError: editing a finalised order.
    - InvoiceDeliveryError: the chosen channel's transport raised.
    - PartialCommitError: ``logout`` could not save every staged order.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime
from decimal import Decimal

from feaa_config import get_active_config
from feaa_config.schema import FeaaConfig
from feaa_kernel.domain.client import ClientRecord
from feaa_kernel.domain.clock import Clock, SystemClock
from feaa_kernel.domain.contact import (
    ContactMethod,
    known_contact_methods,
    parse_contact_priority,
)
from feaa_kernel.domain.order import Order, build_order
from feaa_kernel.domain.value_cache import ValueCache
from feaa_kernel.domain.values import Report
from feaa_kernel.exceptions import (
    OrderNotFoundError,
    UnauthenticatedError,
    UnknownClientError,
)
from feaa_kernel.logging_config import LogContext, get_logger
from feaa_kernel.services.backing_store import BackingStore
from feaa_kernel.services.staging_cache import StagingCache
from feaa_services.auth import AuthProvider, AuthToken
from feaa_services.dispatch import ContactTransport, DispatchChain
from feaa_services.report_catalog import ReportCatalog

logger = get_logger("services.order_desk")


class OrderDesk:
    """
    Facade for one caller session.

    Contract:
        Operations within a session are sequential.  Construct one desk per
        authenticated caller.
    """

    def __init__(
        self,
        store: BackingStore,
        auth: AuthProvider,
        transports: Mapping[ContactMethod, ContactTransport],
        *,
        config: FeaaConfig | None = None,
        clock: Clock | None = None,
        value_cache: ValueCache | None = None,
    ):
        self._store = store
        self._auth = auth
        self._transports = dict(transports)
        self._config = config or get_active_config()
        self._clock = clock or SystemClock()
        self._value_cache = value_cache or ValueCache()
        self._staging = StagingCache(store)
        self._catalog = ReportCatalog.from_config(self._config, self._value_cache)
        self._token: AuthToken | None = None

    @property
    def staging(self) -> StagingCache:
        return self._staging

    @property
    def catalog(self) -> ReportCatalog:
        return self._catalog

    @property
    def is_logged_in(self) -> bool:
        return self._token is not None

    def _require_token(self, operation: str) -> AuthToken:
        if self._token is None:
            raise UnauthenticatedError(operation)
        return self._token

    # -----------------------------------------------------------------
    # Session
    # -----------------------------------------------------------------

    def login(self, user: str, password: str) -> bool:
        token = self._auth.login(user, password)
        if token is None:
            return False
        self._token = token
        logger.info("session_started", extra={"actor_id": user})
        return True

    def logout(self) -> None:
        """Commit staged orders, then end the session.

        On PartialCommitError the session stays open so the caller can
        retry; the failed orders remain staged.
        """
        token = self._require_token("logout")
        result = self._staging.commit(token)
        self._auth.logout(token)
        self._token = None
        logger.info("session_ended", extra={"saved_count": result.count})

    # -----------------------------------------------------------------
    # Clients and reports
    # -----------------------------------------------------------------

    def get_all_client_ids(self) -> list[int]:
        return self._store.get_client_ids(self._require_token("get_all_client_ids"))

    def get_client(self, client_id: int) -> ClientRecord:
        """A fresh record per call; fields load lazily on first read."""
        token = self._require_token("get_client")
        return ClientRecord(token, client_id, self._store)

    def get_all_reports(self) -> list[Report]:
        self._require_token("get_all_reports")
        return self._catalog.reports()

    def get_known_contact_methods(self) -> list[str]:
        self._require_token("get_known_contact_methods")
        return known_contact_methods()

    # -----------------------------------------------------------------
    # Orders
    # -----------------------------------------------------------------

    def get_all_orders(self) -> list[int]:
        token = self._require_token("get_all_orders")
        stored = {order.order_id for order in self._store.get_orders(token)}
        return sorted(stored | self._staging.staged_ids())

    def create_order(
        self,
        client_id: int,
        date: datetime | None = None,
        is_critical: bool = False,
        is_scheduled: bool = False,
        order_type: int = 1,
        critical_loading_raw: int = 0,
        max_counted_employees: int = 0,
        num_quarters: int = 1,
    ) -> int:
        token = self._require_token("create_order")
        if client_id not in self._store.get_client_ids(token):
            raise UnknownClientError(client_id)

        order = build_order(
            self._store.get_next_order_id(),
            client_id,
            date if date is not None else self._clock.now(),
            order_type=order_type,
            is_critical=is_critical,
            is_scheduled=is_scheduled,
            critical_loading_raw=critical_loading_raw,
            max_counted_employees=max_counted_employees,
            num_quarters=num_quarters,
        )
        self._staging.register_clean(order)
        logger.info(
            "order_created",
            extra={
                "order_id": order.order_id,
                "client_id": client_id,
                "kind": order.policy.kind.value,
                "critical": order.policy.is_critical,
                "scheduled": order.policy.is_scheduled,
            },
        )
        return order.order_id

    def remove_order(self, order_id: int) -> bool:
        token = self._require_token("remove_order")
        in_store = self._store.remove_order(token, order_id)
        in_staging = self._staging.discard(order_id)
        return in_store or in_staging

    def _load_order(self, token: AuthToken, order_id: int) -> Order:
        order = self._staging.get_temporary(order_id)
        if order is None:
            order = self._store.get_order(token, order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def order_line_set(self, order_id: int, report: Report, num_employees: int) -> None:
        token = self._require_token("order_line_set")
        order = self._load_order(token, order_id)
        order.set_report(report, num_employees)
        self._staging.register_dirty(order)

    def get_order_total_commission(self, order_id: int) -> Decimal:
        token = self._require_token("get_order_total_commission")
        return self._load_order(token, order_id).get_total_commission()

    def get_order_short_desc(self, order_id: int) -> str:
        token = self._require_token("get_order_short_desc")
        return self._load_order(token, order_id).short_desc()

    def get_order_long_desc(self, order_id: int) -> str:
        token = self._require_token("get_order_long_desc")
        return self._load_order(token, order_id).long_desc()

    def finalise_order(
        self, order_id: int, contact_priority: Sequence[str] | None = None
    ) -> bool:
        """
        Finalise the order and send its invoice.

        ``contact_priority`` holds channel labels ("email", "mail", ...).
        When it is empty or holds only unknown labels, the configured
        default priority is used.  Returns True if a channel delivered.
        """
        token = self._require_token("finalise_order")
        order = self._load_order(token, order_id)
        order.finalise()
        self._staging.register_dirty(order)

        labels = [
            label for label in contact_priority or () if ContactMethod.from_label(label)
        ]
        methods = parse_contact_priority(labels or self._config.default_contact_priority)
        chain = DispatchChain.from_priority(methods, self._transports)

        with LogContext.bind(order_id=order_id, client_id=order.client_id):
            outcome = chain.send_invoice(
                token,
                self.get_client(order.client_id),
                order.generate_invoice_data(self._config.firm_name),
            )
            logger.info(
                "order_finalised",
                extra={
                    "delivered": outcome.delivered,
                    "method": outcome.method.label if outcome.method else None,
                },
            )
        return outcome.delivered
