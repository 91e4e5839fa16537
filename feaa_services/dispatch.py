"""
Dispatch -- invoice delivery over a client's contact channels.

Responsibility:
    Delivers invoice text through the first contact channel, in caller
    priority order, for which the client has the required details on file.

Architecture position:
    Services -- outer layer.  Reads client fields through ``ClientRecord``
    and hands the message to a ``ContactTransport`` per channel.

Invariants enforced:
    - Handlers are an explicit ordered list iterated by ``DispatchChain``;
      no handler decides whether the next one runs.
    - At most one channel sends per invoice: the first capable one.
    - A field counts as present only when it is non-empty.
    - Exhausting every channel is a normal, falsy outcome, not an error.

Failure modes:
    - InvoiceDeliveryError when the chosen channel's transport raises.
      Later channels are not tried.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from feaa_kernel.domain.client import ClientRecord
from feaa_kernel.domain.contact import (
    CHANNEL_FIELDS,
    DEFAULT_PRIORITY,
    ContactMethod,
    known_contact_methods,
    parse_contact_priority,
)
from feaa_kernel.exceptions import InvoiceDeliveryError
from feaa_kernel.logging_config import get_logger

logger = get_logger("services.dispatch")

__all__ = [
    "DEFAULT_PRIORITY",
    "ContactHandler",
    "ContactMethod",
    "ContactTransport",
    "DispatchChain",
    "DispatchOutcome",
    "LoggingTransport",
    "known_contact_methods",
    "parse_contact_priority",
]


# ---------------------------------------------------------------------------
# Transports
# ---------------------------------------------------------------------------


class ContactTransport(Protocol):
    """Delivers a message over one channel.  May raise."""

    def send(
        self,
        token: Any,
        first_name: str | None,
        last_name: str | None,
        data: str,
        *address: str,
    ) -> None: ...


class LoggingTransport:
    """Dry-run transport: records each send and writes it to the structured log."""

    def __init__(self, method: ContactMethod):
        self.method = method
        self.sent: list[tuple[str | None, str | None, str, tuple[str, ...]]] = []

    def send(
        self,
        token: Any,
        first_name: str | None,
        last_name: str | None,
        data: str,
        *address: str,
    ) -> None:
        self.sent.append((first_name, last_name, data, address))
        logger.info(
            "invoice_sent_dry_run",
            extra={
                "method": self.method.label,
                "recipient": f"{first_name or ''} {last_name or ''}".strip(),
                "address": list(address),
                "data_length": len(data),
            },
        )


# ---------------------------------------------------------------------------
# Chain
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContactHandler:
    """One channel: a capability check over the client plus its transport."""

    method: ContactMethod
    transport: ContactTransport

    def address(self, client: ClientRecord) -> tuple[str, ...] | None:
        """The channel's address fields, or None if any is missing or empty."""
        values = []
        for field in CHANNEL_FIELDS[self.method]:
            value = client.get_field(field)
            if not value:
                return None
            values.append(value)
        return tuple(values)

    def is_capable(self, client: ClientRecord) -> bool:
        return self.address(client) is not None

    def send(self, token: Any, client: ClientRecord, data: str, address: tuple[str, ...]) -> None:
        self.transport.send(token, client.first_name, client.last_name, data, *address)


@dataclass(frozen=True)
class DispatchOutcome:
    """Result of one invoice dispatch.  Truthy iff delivered."""

    delivered: bool
    method: ContactMethod | None = None
    attempted: tuple[ContactMethod, ...] = ()

    def __bool__(self) -> bool:
        return self.delivered


class DispatchChain:
    """
    Ordered list of contact handlers.

    Contract:
        ``send_invoice`` sends through the first capable handler and stops.
    """

    def __init__(self, handlers: Sequence[ContactHandler]):
        self._handlers = tuple(handlers)

    @classmethod
    def from_priority(
        cls,
        methods: Iterable[ContactMethod],
        transports: Mapping[ContactMethod, ContactTransport],
    ) -> DispatchChain:
        """Build a chain for ``methods``; channels without a transport are left out."""
        handlers = []
        for method in methods:
            transport = transports.get(method)
            if transport is None:
                logger.debug("contact_method_unavailable", extra={"method": method.label})
                continue
            handlers.append(ContactHandler(method, transport))
        return cls(handlers)

    @property
    def methods(self) -> tuple[ContactMethod, ...]:
        return tuple(handler.method for handler in self._handlers)

    def send_invoice(self, token: Any, client: ClientRecord, data: str) -> DispatchOutcome:
        attempted: list[ContactMethod] = []
        for handler in self._handlers:
            attempted.append(handler.method)
            address = handler.address(client)
            if address is None:
                continue
            try:
                handler.send(token, client, data, address)
            except Exception as e:
                raise InvoiceDeliveryError(
                    handler.method.label, client.client_id, str(e)
                ) from e
            logger.info(
                "invoice_dispatched",
                extra={"client_id": client.client_id, "method": handler.method.label},
            )
            return DispatchOutcome(True, handler.method, tuple(attempted))

        logger.warning(
            "invoice_undeliverable",
            extra={
                "client_id": client.client_id,
                "attempted": [m.label for m in attempted],
            },
        )
        return DispatchOutcome(False, None, tuple(attempted))
