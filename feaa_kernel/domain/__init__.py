"""
Module: feaa_kernel.domain
Responsibility:
    Pure ordering domain: report value objects, payload interning, cost
    policies, orders and their renderings, memoized client records.

Architecture position:
    Kernel > Domain -- zero I/O.  MUST NOT import from feaa_kernel.db,
    feaa_kernel.services or any outer package.
"""

from feaa_kernel.domain.client import ClientField, ClientRecord, MemoizedField
from feaa_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from feaa_kernel.domain.contact import ContactMethod
from feaa_kernel.domain.cost_policy import (
    CommissionBreakdown,
    CostPolicy,
    HeadcountCap,
    LineCharge,
    OrderKind,
    Recurrence,
    UncappedHeadcount,
    compute_commission,
)
from feaa_kernel.domain.order import Order, build_order
from feaa_kernel.domain.value_cache import ValueCache
from feaa_kernel.domain.values import Report

__all__ = [
    "ClientField",
    "ClientRecord",
    "Clock",
    "CommissionBreakdown",
    "ContactMethod",
    "CostPolicy",
    "DeterministicClock",
    "HeadcountCap",
    "LineCharge",
    "MemoizedField",
    "Order",
    "OrderKind",
    "Recurrence",
    "Report",
    "SystemClock",
    "UncappedHeadcount",
    "ValueCache",
    "build_order",
    "compute_commission",
]
