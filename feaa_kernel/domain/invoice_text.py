"""
Invoice text -- human-readable renderings of a priced order.

Pure functions over a ``CommissionBreakdown``.  Lines arrive already sorted
by (name, commission), so output is deterministic.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from feaa_kernel.domain.cost_policy import CommissionBreakdown, CostPolicy

DEFAULT_FIRM_NAME = "Crimson Permanent Assurance"

_INTERNAL_ACCOUNTING_FOOTER = (
    "\nPlease see your internal accounting department for itemised details."
)


def money(amount: Decimal) -> str:
    """Format an amount as ``$1,234.50``."""
    return f"${amount:,.2f}"


def short_desc(order_id: int, policy: CostPolicy, breakdown: CommissionBreakdown) -> str:
    if policy.is_scheduled:
        return (
            f"ID:{order_id} {money(breakdown.recurring_cost)} per quarter, "
            f"{money(breakdown.total)} total"
        )
    return f"ID:{order_id} {money(breakdown.total)}"


def long_desc(
    order_id: int,
    order_date: datetime,
    finalised: bool,
    policy: CostPolicy,
    breakdown: CommissionBreakdown,
) -> str:
    parts: list[str] = []
    if not finalised:
        parts.append("*NOT FINALISED*\n")
    parts.append(f"Order details (id #{order_id})\n")
    parts.append(f"Date: {order_date.date().isoformat()}\n")
    if policy.is_scheduled:
        parts.append(f"Number of quarters: {breakdown.quarters}\n")
    parts.append("Reports:\n")
    for line in breakdown.lines:
        parts.append(
            f"\tReport name: {line.report.name}"
            f"\tEmployee Count: {line.employee_count}"
            f"\tCommission per employee: {money(line.report.commission_per_employee)}"
            f"\tSubtotal: {money(line.subtotal)}"
        )
        parts.append(" *CAPPED*\n" if line.capped else "\n")
    if policy.is_critical:
        parts.append(f"Critical Loading: {money(breakdown.total_loading)}\n")
    if policy.is_scheduled:
        parts.append(f"Recurring cost: {money(breakdown.recurring_cost)}\n")
    parts.append(f"Total cost: {money(breakdown.total)}\n")
    return "".join(parts)


def invoice_data(
    policy: CostPolicy,
    breakdown: CommissionBreakdown,
    firm_name: str = DEFAULT_FIRM_NAME,
) -> str:
    """
    Text sent to the client through the dispatch chain.

    Critical work is billed to the client's priority account and points at
    internal accounting for the itemisation; other work is itemised inline.
    """
    if policy.is_critical:
        if policy.is_scheduled:
            return (
                "Your priority business account will be charged: "
                f"{money(breakdown.recurring_cost)} each quarter for "
                f"{breakdown.quarters} quarters, with a total overall cost of: "
                f"{money(breakdown.total)}" + _INTERNAL_ACCOUNTING_FOOTER
            )
        return (
            "Your priority business account has been charged: "
            f"{money(breakdown.total)}" + _INTERNAL_ACCOUNTING_FOOTER
        )

    parts = [f"Thank you for your {firm_name} accounting order!\n"]
    if policy.is_scheduled:
        parts.append(
            f"The cost to provide these services: {money(breakdown.recurring_cost)} "
            f"each quarter for {breakdown.quarters} quarters, with a total overall "
            f"cost of: {money(breakdown.total)}"
        )
    else:
        parts.append(f"The cost to provide these services: {money(breakdown.total)}")
    parts.append("\nPlease see below for details:\n")
    for line in breakdown.lines:
        parts.append(f"\tReport name: {line.report.name}")
        parts.append(f"\tEmployee Count: {line.employee_count}")
        parts.append(f"\tCost per employee: {money(line.report.commission_per_employee)}")
        if line.capped:
            parts.append("\tThis report cost has been capped.")
        parts.append(f"\tSubtotal: {money(line.subtotal)}\n")
    return "".join(parts)
