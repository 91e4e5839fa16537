"""
Cost Policy -- orthogonal billing capabilities for orders.

Responsibility:
    Describes how an order is priced as a composition of three independent
    strategies instead of one class per combination:

        capping     -- how many employees on a report line are billable
        loading     -- fractional surcharge on the one-off total (critical work)
        recurrence  -- how many quarters the one-off total is charged for

    ``compute_commission`` is the single place where the arithmetic lives.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Capping limits each line independently: min(count, max_counted).
    - Loading applies to the capped total: total + total * loading.
    - Recurrence wraps the loaded total: per_quarter * quarters, with the
      per-quarter amount kept separately (``recurring_cost``).
    - All money arithmetic is Decimal.

Failure modes:
    - InvalidCostPolicyError on negative cap, negative loading, or quarters < 1.

Supported order configurations (kind, cap, loading, quarters), each either
one-off (-) or scheduled over N quarters:

    regular accounting               REGULAR, cap, 0,    -/N
    critical regular accounting      REGULAR, cap, L,    -/N
    audit                            AUDIT,   -,   0,    -/N
    critical audit                   AUDIT,   -,   L,    -/N
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from feaa_kernel.domain.values import Report, to_decimal
from feaa_kernel.exceptions import InvalidCostPolicyError, UnknownOrderTypeError

_ZERO = Decimal("0")


class OrderKind(str, Enum):
    """Kind of accounting work; selects the default capping strategy."""

    REGULAR = "regular"  # regular accounting work, order type 1
    AUDIT = "audit"  # audit work, order type 2

    @classmethod
    def from_order_type(cls, order_type: int) -> OrderKind:
        """Map the legacy numeric order type flag."""
        if order_type == 1:
            return cls.REGULAR
        if order_type == 2:
            return cls.AUDIT
        raise UnknownOrderTypeError(order_type)


# ---------------------------------------------------------------------------
# Capping strategies
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class UncappedHeadcount:
    """Every employee on a line is billed."""

    def billable(self, employee_count: int) -> int:
        return employee_count

    def is_capped(self, employee_count: int) -> bool:
        return False


@dataclass(frozen=True)
class HeadcountCap:
    """Bulk pricing: past ``max_counted`` employees the line cost stays flat."""

    max_counted: int

    def __post_init__(self) -> None:
        if self.max_counted < 0:
            raise InvalidCostPolicyError(
                "max_counted_employees", self.max_counted, "must be non-negative"
            )

    def billable(self, employee_count: int) -> int:
        return min(employee_count, self.max_counted)

    def is_capped(self, employee_count: int) -> bool:
        return employee_count > self.max_counted


CappingStrategy = UncappedHeadcount | HeadcountCap


@dataclass(frozen=True)
class Recurrence:
    """Charge the one-off total every quarter for ``quarters`` quarters."""

    quarters: int

    def __post_init__(self) -> None:
        if self.quarters < 1:
            raise InvalidCostPolicyError(
                "number_of_quarters", self.quarters, "must be at least 1"
            )


# ---------------------------------------------------------------------------
# Policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CostPolicy:
    """
    Tagged pricing configuration for a single order.

    Contract:
        Immutable.  Any combination of the three strategies is valid, which
        is what lets new order types be added as configurations rather than
        classes.
    """

    kind: OrderKind = OrderKind.AUDIT
    capping: CappingStrategy = field(default_factory=UncappedHeadcount)
    critical_loading: Decimal = _ZERO
    recurrence: Recurrence | None = None

    def __post_init__(self) -> None:
        loading = to_decimal(self.critical_loading)
        if loading < 0:
            raise InvalidCostPolicyError(
                "critical_loading", loading, "must be non-negative"
            )
        object.__setattr__(self, "critical_loading", loading)

    @property
    def is_critical(self) -> bool:
        return self.critical_loading > 0

    @property
    def is_scheduled(self) -> bool:
        return self.recurrence is not None

    @property
    def number_of_quarters(self) -> int:
        return self.recurrence.quarters if self.recurrence is not None else 1

    @property
    def max_counted_employees(self) -> int | None:
        if isinstance(self.capping, HeadcountCap):
            return self.capping.max_counted
        return None

    @classmethod
    def from_flags(
        cls,
        *,
        order_type: int,
        is_critical: bool,
        is_scheduled: bool,
        critical_loading_raw: int = 0,
        max_counted_employees: int = 0,
        num_quarters: int = 1,
    ) -> CostPolicy:
        """
        Build a policy from the order-creation flags.

        Regular work is capped at ``max_counted_employees``; audit work is
        never capped.  ``critical_loading_raw`` is a whole percentage and
        only applies when ``is_critical`` is set.
        """
        kind = OrderKind.from_order_type(order_type)
        capping: CappingStrategy = (
            HeadcountCap(max_counted_employees)
            if kind is OrderKind.REGULAR
            else UncappedHeadcount()
        )
        loading = Decimal(critical_loading_raw) / Decimal(100) if is_critical else _ZERO
        recurrence = Recurrence(num_quarters) if is_scheduled else None
        return cls(
            kind=kind,
            capping=capping,
            critical_loading=loading,
            recurrence=recurrence,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "kind": self.kind.value,
            "max_counted_employees": self.max_counted_employees,
            "critical_loading": str(self.critical_loading),
            "number_of_quarters": self.recurrence.quarters if self.recurrence else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> CostPolicy:
        cap = data.get("max_counted_employees")
        quarters = data.get("number_of_quarters")
        return cls(
            kind=OrderKind(data["kind"]),
            capping=HeadcountCap(int(cap)) if cap is not None else UncappedHeadcount(),
            critical_loading=to_decimal(data.get("critical_loading") or "0"),
            recurrence=Recurrence(int(quarters)) if quarters is not None else None,
        )


# ---------------------------------------------------------------------------
# Commission arithmetic
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LineCharge:
    """Priced view of one report line."""

    report: Report
    employee_count: int
    billable_count: int
    subtotal: Decimal
    capped: bool


@dataclass(frozen=True)
class CommissionBreakdown:
    """
    Result of pricing an order.

    Attributes:
        lines: Line charges sorted by (name, commission).
        base_total: Sum of capped subtotals (one quarter, before loading).
        loading_amount: Critical surcharge for one quarter.
        recurring_cost: Loaded amount charged each quarter.
        quarters: Quarters charged (1 for one-off orders).
        total: recurring_cost * quarters.
    """

    lines: tuple[LineCharge, ...]
    base_total: Decimal
    loading_amount: Decimal
    recurring_cost: Decimal
    quarters: int
    total: Decimal

    @property
    def total_loading(self) -> Decimal:
        """Critical surcharge across every quarter."""
        return self.total - self.base_total * self.quarters


def compute_commission(
    lines: Mapping[Report, int],
    policy: CostPolicy,
) -> CommissionBreakdown:
    """Price ``lines`` under ``policy``."""
    charges: list[LineCharge] = []
    base_total = _ZERO
    for report in sorted(lines, key=lambda r: r.sort_key):
        count = lines[report]
        billable = policy.capping.billable(count)
        subtotal = report.commission_per_employee * billable
        base_total += subtotal
        charges.append(
            LineCharge(
                report=report,
                employee_count=count,
                billable_count=billable,
                subtotal=subtotal,
                capped=policy.capping.is_capped(count),
            )
        )

    loading_amount = base_total * policy.critical_loading
    recurring_cost = base_total + loading_amount
    quarters = policy.number_of_quarters
    return CommissionBreakdown(
        lines=tuple(charges),
        base_total=base_total,
        loading_amount=loading_amount,
        recurring_cost=recurring_cost,
        quarters=quarters,
        total=recurring_cost * quarters,
    )
