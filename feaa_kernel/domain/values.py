"""
Values -- Immutable report value object.

Responsibility:
    Defines ``Report``, the priced unit of work placed on an order.  A Report
    carries a name, a per-employee commission, and five heavy payload blocks
    that are shared through a ``ValueCache``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Immutable after construction (frozen dataclass with slots).
    - Equality is by value across all fields; identity is irrelevant, so a
      Report rebuilt from the same data (e.g. loaded back from the store)
      compares equal to the original.
    - ``hash(report)`` is derived from a SHA-256 over a canonical encoding of
      every field, in field order, so it is stable across interpreter runs
      and agrees with ``==``.
    - Commission is a Decimal, never a float.

Failure modes:
    - ValueError if the commission cannot be converted to Decimal or is
      negative.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from feaa_kernel.domain.value_cache import Payload, ValueCache, payload_digest

PAYLOAD_FIELDS = (
    "legal_data",
    "cash_flow_data",
    "merges_data",
    "tallying_data",
    "deductions_data",
)


def to_decimal(value: Decimal | str | int | float) -> Decimal:
    """Convert an amount to a finite Decimal; floats go through ``str`` first."""
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value))
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid amount: {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    return amount


@dataclass(frozen=True, slots=True)
class Report:
    """
    Report value object.

    Contract:
        Construct through ``Report.create`` so every payload block is
        interned; direct construction is allowed for already-canonical
        tuples.

    Guarantees:
        - Immutable and hashable.
        - ``a == b`` iff name, commission and all five payloads are equal.
        - Equal reports share a hash.
    """

    name: str
    commission_per_employee: Decimal
    legal_data: Payload | None = None
    cash_flow_data: Payload | None = None
    merges_data: Payload | None = None
    tallying_data: Payload | None = None
    deductions_data: Payload | None = None
    _hash: int = field(init=False, repr=False, compare=False, default=0)

    def __post_init__(self) -> None:
        commission = to_decimal(self.commission_per_employee)
        if commission < 0:
            raise ValueError(f"commission_per_employee must be non-negative: {commission}")
        object.__setattr__(self, "commission_per_employee", commission)
        object.__setattr__(self, "_hash", self._compute_hash())

    @classmethod
    def create(
        cls,
        cache: ValueCache,
        name: str,
        commission_per_employee: Decimal | str | int | float,
        *,
        legal_data: Any = None,
        cash_flow_data: Any = None,
        merges_data: Any = None,
        tallying_data: Any = None,
        deductions_data: Any = None,
    ) -> Report:
        """Build a Report whose payload blocks are canonical instances from ``cache``."""
        return cls(
            name=name,
            commission_per_employee=to_decimal(commission_per_employee),
            legal_data=cache.intern(legal_data),
            cash_flow_data=cache.intern(cash_flow_data),
            merges_data=cache.intern(merges_data),
            tallying_data=cache.intern(tallying_data),
            deductions_data=cache.intern(deductions_data),
        )

    @property
    def sort_key(self) -> tuple[str, Decimal]:
        """Deterministic ordering used by every rendering: (name, commission)."""
        return (self.name, self.commission_per_employee)

    def payloads(self) -> dict[str, Payload | None]:
        return {name: getattr(self, name) for name in PAYLOAD_FIELDS}

    def to_dict(self) -> dict[str, Any]:
        """JSON-safe representation (commission as string)."""
        data: dict[str, Any] = {
            "name": self.name,
            "commission_per_employee": str(self.commission_per_employee),
        }
        for name, payload in self.payloads().items():
            data[name] = list(payload) if payload is not None else None
        return data

    @classmethod
    def from_dict(cls, cache: ValueCache, data: dict[str, Any]) -> Report:
        """Rebuild a Report from ``to_dict`` output, re-interning its payloads."""
        return cls.create(
            cache,
            data["name"],
            data["commission_per_employee"],
            **{name: data.get(name) for name in PAYLOAD_FIELDS},
        )

    def _compute_hash(self) -> int:
        h = hashlib.sha256()
        h.update(self.name.encode("utf-8"))
        h.update(b"\x00")
        # normalize() so that Decimal("10") and Decimal("10.00") hash alike
        h.update(str(self.commission_per_employee.normalize()).encode("ascii"))
        for name in PAYLOAD_FIELDS:
            payload = getattr(self, name)
            h.update(b"\x00")
            if payload is None:
                h.update(b"-")
            else:
                h.update(payload_digest(payload).encode("ascii"))
        return struct.unpack(">q", h.digest()[:8])[0]

    def __hash__(self) -> int:
        return self._hash

    def __str__(self) -> str:
        return self.name
