"""
Client -- lazily hydrated, memoized view over a client's stored fields.

Responsibility:
    Loading a client from the backing store is slow, and callers (the
    dispatch chain in particular) read the same handful of fields several
    times.  ``ClientRecord`` fetches each field on first access only and
    keeps the result for the record's lifetime.

Architecture position:
    Kernel > Domain.  Depends only on the ``ClientFieldSource`` protocol;
    the concrete store lives in ``feaa_kernel.services.backing_store``.

Invariants enforced:
    - At most one fetch per field per record instance, including when the
      fetched value is absent (None) or empty.
    - At-most-once holds under concurrent first access: the fetch runs under
      the record's lock with a double check.
    - Values are never refreshed; build a new record for fresh data.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from enum import Enum
from typing import Any, Generic, Protocol, TypeVar

T = TypeVar("T")


class ClientField(str, Enum):
    """Client fields and the names the backing store knows them by."""

    FIRST_NAME = "fName"
    LAST_NAME = "lName"
    PHONE_NUMBER = "phoneNumber"
    EMAIL_ADDRESS = "emailAddress"
    ADDRESS = "address"
    SUBURB = "suburb"
    STATE = "state"
    POST_CODE = "postCode"
    INTERNAL_ACCOUNTING = "internal accounting"
    BUSINESS_NAME = "businessName"
    PIGEON_COOP_ID = "pigeonCoopID"


class ClientFieldSource(Protocol):
    """The slice of the backing store a ClientRecord reads from."""

    def get_client_field(
        self, token: Any, client_id: int, field_name: str
    ) -> str | None: ...


class MemoizedField(Generic[T]):
    """
    A value that is *unfetched*, *fetched(value)* or *fetched(absent)*.

    Contract:
        ``get(fetch, lock)`` calls ``fetch`` at most once over the life of
        the slot.  An absent result (None) counts as fetched.
    """

    __slots__ = ("_value", "_fetched")

    def __init__(self) -> None:
        self._value: T | None = None
        self._fetched = False

    @property
    def fetched(self) -> bool:
        return self._fetched

    def get(self, fetch: Callable[[], T | None], lock: threading.Lock) -> T | None:
        if self._fetched:
            return self._value
        with lock:
            if not self._fetched:
                self._value = fetch()
                # publish only after the value is in place
                self._fetched = True
        return self._value


class _LazyField:
    """Descriptor exposing one ClientField as a memoized read-only attribute."""

    def __init__(self, field: ClientField):
        self.field = field

    def __get__(self, instance: ClientRecord | None, owner: type) -> Any:
        if instance is None:
            return self
        return instance.get_field(self.field)


class ClientRecord:
    """
    A client, hydrated field by field on demand.

    Contract:
        One instance per lookup.  Each attribute below fetches its store
        field on first read and then returns the memoized value.
    """

    first_name = _LazyField(ClientField.FIRST_NAME)
    last_name = _LazyField(ClientField.LAST_NAME)
    phone_number = _LazyField(ClientField.PHONE_NUMBER)
    email_address = _LazyField(ClientField.EMAIL_ADDRESS)
    address = _LazyField(ClientField.ADDRESS)
    suburb = _LazyField(ClientField.SUBURB)
    state = _LazyField(ClientField.STATE)
    post_code = _LazyField(ClientField.POST_CODE)
    internal_accounting = _LazyField(ClientField.INTERNAL_ACCOUNTING)
    business_name = _LazyField(ClientField.BUSINESS_NAME)
    pigeon_coop_id = _LazyField(ClientField.PIGEON_COOP_ID)

    def __init__(self, token: Any, client_id: int, source: ClientFieldSource):
        self._token = token
        self._id = client_id
        self._source = source
        self._lock = threading.Lock()
        self._slots: dict[ClientField, MemoizedField[str]] = {
            field: MemoizedField() for field in ClientField
        }

    @property
    def client_id(self) -> int:
        return self._id

    def get_field(self, field: ClientField) -> str | None:
        return self._slots[field].get(
            lambda: self._source.get_client_field(self._token, self._id, field.value),
            self._lock,
        )

    def is_fetched(self, field: ClientField) -> bool:
        return self._slots[field].fetched

    def __repr__(self) -> str:
        loaded = sum(1 for slot in self._slots.values() if slot.fetched)
        return f"ClientRecord(id={self._id}, fetched={loaded}/{len(self._slots)})"
