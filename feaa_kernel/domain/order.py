"""
Order -- an accounting order priced by a CostPolicy.

Responsibility:
    Holds the report lines (Report -> employee count) for one client order,
    enforces the finalise-once lifecycle, and answers pricing and rendering
    queries through ``compute_commission`` and ``invoice_text``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Lines are keyed by Report value equality.  Reports rebuilt elsewhere
      (e.g. loaded back from the store) update the existing line; the
      first-seen key object is kept.
    - Once finalised, lines are immutable; ``finalise`` is one-way.
    - ``copy`` is deep and independent, preserving policy and the
      finalised flag.

Failure modes:
    - OrderFinalisedError from ``set_report`` on a finalised order.
    - InvalidArgumentError for a negative employee count.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from feaa_kernel.domain import invoice_text
from feaa_kernel.domain.cost_policy import (
    CommissionBreakdown,
    CostPolicy,
    compute_commission,
)
from feaa_kernel.domain.values import Report
from feaa_kernel.exceptions import InvalidArgumentError, OrderFinalisedError


class Order:
    """
    A client order.

    Contract:
        Mutate only via ``set_report`` until ``finalise``; afterwards the
        order is read-only.

    Guarantees:
        - ``get_all_reports`` never holds two value-equal reports.
        - ``get_total_commission`` and the renderings are pure over
          (lines, policy).
    """

    def __init__(
        self,
        order_id: int,
        client_id: int,
        order_date: datetime,
        policy: CostPolicy | None = None,
    ):
        self._id = order_id
        self._client_id = client_id
        self._date = order_date
        self._policy = policy or CostPolicy()
        self._lines: dict[Report, int] = {}
        self._finalised = False

    @property
    def order_id(self) -> int:
        return self._id

    @property
    def client_id(self) -> int:
        return self._client_id

    @property
    def order_date(self) -> datetime:
        return self._date

    @property
    def policy(self) -> CostPolicy:
        return self._policy

    @property
    def is_finalised(self) -> bool:
        return self._finalised

    # -----------------------------------------------------------------
    # Lines
    # -----------------------------------------------------------------

    def _existing_key(self, report: Report) -> Report:
        # Reports are rebuilt over the wire, so identity cannot be relied on
        for contained in self._lines:
            if contained == report:
                return contained
        return report

    def set_report(self, report: Report, employee_count: int) -> None:
        """Insert a line, or update the count of a value-equal line."""
        if self._finalised:
            raise OrderFinalisedError(self._id)
        if employee_count < 0:
            raise InvalidArgumentError(
                f"employee_count must be non-negative, got {employee_count}"
            )
        self._lines[self._existing_key(report)] = employee_count

    def get_all_reports(self) -> list[Report]:
        return list(self._lines)

    def get_report_employee_count(self, report: Report) -> int:
        return self._lines.get(self._existing_key(report), 0)

    def lines(self) -> dict[Report, int]:
        """Snapshot of the lines (a copy; mutating it does not touch the order)."""
        return dict(self._lines)

    # -----------------------------------------------------------------
    # Lifecycle
    # -----------------------------------------------------------------

    def finalise(self) -> None:
        self._finalised = True

    def copy(self) -> Order:
        clone = Order(self._id, self._client_id, self._date, self._policy)
        clone._lines = dict(self._lines)
        clone._finalised = self._finalised
        return clone

    # -----------------------------------------------------------------
    # Pricing
    # -----------------------------------------------------------------

    def breakdown(self) -> CommissionBreakdown:
        return compute_commission(self._lines, self._policy)

    def get_total_commission(self) -> Decimal:
        return self.breakdown().total

    def get_recurring_cost(self) -> Decimal:
        """Per-quarter amount; equals the total for one-off orders."""
        return self.breakdown().recurring_cost

    @property
    def number_of_quarters(self) -> int:
        return self._policy.number_of_quarters

    # -----------------------------------------------------------------
    # Rendering
    # -----------------------------------------------------------------

    def short_desc(self) -> str:
        return invoice_text.short_desc(self._id, self._policy, self.breakdown())

    def long_desc(self) -> str:
        return invoice_text.long_desc(
            self._id, self._date, self._finalised, self._policy, self.breakdown()
        )

    def generate_invoice_data(
        self, firm_name: str = invoice_text.DEFAULT_FIRM_NAME
    ) -> str:
        return invoice_text.invoice_data(self._policy, self.breakdown(), firm_name)

    def __repr__(self) -> str:
        return (
            f"Order(id={self._id}, client_id={self._client_id}, "
            f"kind={self._policy.kind.value}, lines={len(self._lines)}, "
            f"finalised={self._finalised})"
        )


def build_order(
    order_id: int,
    client_id: int,
    order_date: datetime,
    *,
    order_type: int,
    is_critical: bool = False,
    is_scheduled: bool = False,
    critical_loading_raw: int = 0,
    max_counted_employees: int = 0,
    num_quarters: int = 1,
) -> Order:
    """
    Create an empty order from the legacy order-creation flags.

    Raises:
        UnknownOrderTypeError: ``order_type`` is not 1 (regular) or 2 (audit).
        InvalidCostPolicyError: negative cap or loading, quarters < 1.
    """
    policy = CostPolicy.from_flags(
        order_type=order_type,
        is_critical=is_critical,
        is_scheduled=is_scheduled,
        critical_loading_raw=critical_loading_raw,
        max_counted_employees=max_counted_employees,
        num_quarters=num_quarters,
    )
    return Order(order_id, client_id, order_date, policy)
