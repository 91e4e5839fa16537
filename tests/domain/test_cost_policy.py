"""
Tests for cost policies and commission arithmetic.

Verifies:
- Capping per line, loading on the capped total, recurrence over quarters
- Mapping of the legacy order-creation flags
- Policy validation and dict round trip
"""

from decimal import Decimal

import pytest

from feaa_kernel.domain.cost_policy import (
    CostPolicy,
    HeadcountCap,
    OrderKind,
    Recurrence,
    UncappedHeadcount,
    compute_commission,
)
from feaa_kernel.exceptions import (
    InvalidArgumentError,
    InvalidCostPolicyError,
    UnknownOrderTypeError,
)


class TestCapping:
    """Tests for headcount capping."""

    def test_cap_limits_billable_employees(self, make_report):
        policy = CostPolicy(kind=OrderKind.REGULAR, capping=HeadcountCap(5))
        breakdown = compute_commission({make_report(commission="10"): 8}, policy)
        assert breakdown.total == Decimal("50")
        assert breakdown.lines[0].capped
        assert breakdown.lines[0].billable_count == 5

    def test_under_cap_is_not_flagged(self, make_report):
        policy = CostPolicy(kind=OrderKind.REGULAR, capping=HeadcountCap(5))
        breakdown = compute_commission({make_report(commission="10"): 5}, policy)
        assert breakdown.total == Decimal("50")
        assert not breakdown.lines[0].capped

    def test_cap_applies_per_line(self, make_report):
        policy = CostPolicy(kind=OrderKind.REGULAR, capping=HeadcountCap(5))
        lines = {make_report("A", "10"): 8, make_report("B", "2"): 3}
        assert compute_commission(lines, policy).total == Decimal("56")

    def test_uncapped_bills_everyone(self, make_report):
        breakdown = compute_commission({make_report(commission="10"): 8}, CostPolicy())
        assert breakdown.total == Decimal("80")
        assert not breakdown.lines[0].capped

    def test_negative_cap_rejected(self):
        with pytest.raises(InvalidCostPolicyError):
            HeadcountCap(-1)


class TestLoadingAndRecurrence:
    """Tests for critical loading and scheduled recurrence."""

    def test_loading_applies_to_total(self, make_report):
        policy = CostPolicy(critical_loading=Decimal("0.2"))
        breakdown = compute_commission({make_report(commission="10"): 10}, policy)
        assert breakdown.base_total == Decimal("100")
        assert breakdown.loading_amount == Decimal("20")
        assert breakdown.total == Decimal("120")

    def test_recurrence_multiplies_wrapped_total(self, make_report):
        policy = CostPolicy(recurrence=Recurrence(4))
        breakdown = compute_commission({make_report(commission="10"): 10}, policy)
        assert breakdown.recurring_cost == Decimal("100")
        assert breakdown.total == Decimal("400")
        assert breakdown.quarters == 4

    def test_loading_and_recurrence_compose(self, make_report):
        policy = CostPolicy(
            kind=OrderKind.REGULAR,
            capping=HeadcountCap(5),
            critical_loading=Decimal("0.5"),
            recurrence=Recurrence(2),
        )
        breakdown = compute_commission({make_report(commission="10"): 8}, policy)
        assert breakdown.recurring_cost == Decimal("75")
        assert breakdown.total == Decimal("150")
        assert breakdown.total_loading == Decimal("50")

    def test_one_off_recurring_cost_is_total(self, make_report):
        breakdown = compute_commission({make_report(): 3}, CostPolicy())
        assert breakdown.recurring_cost == breakdown.total
        assert breakdown.quarters == 1

    def test_zero_quarters_rejected(self):
        with pytest.raises(InvalidCostPolicyError):
            Recurrence(0)

    def test_negative_loading_rejected(self):
        with pytest.raises(InvalidCostPolicyError) as exc_info:
            CostPolicy(critical_loading=Decimal("-0.1"))
        assert exc_info.value.field == "critical_loading"

    def test_empty_order_costs_nothing(self):
        breakdown = compute_commission({}, CostPolicy(critical_loading=Decimal("1")))
        assert breakdown.total == Decimal("0")
        assert breakdown.lines == ()

    def test_lines_sorted_by_name_then_commission(self, make_report):
        lines = {
            make_report("Zeta", "1"): 1,
            make_report("Alpha", "9"): 1,
            make_report("Alpha", "2"): 1,
        }
        names = [
            (c.report.name, c.report.commission_per_employee)
            for c in compute_commission(lines, CostPolicy()).lines
        ]
        assert names == [("Alpha", Decimal("2")), ("Alpha", Decimal("9")), ("Zeta", Decimal("1"))]


class TestFromFlags:
    """Tests for mapping the order-creation flags onto a policy."""

    def test_regular_order_is_capped(self):
        policy = CostPolicy.from_flags(
            order_type=1, is_critical=False, is_scheduled=False, max_counted_employees=10
        )
        assert policy.kind is OrderKind.REGULAR
        assert policy.capping == HeadcountCap(10)
        assert policy.max_counted_employees == 10

    def test_audit_order_is_uncapped(self):
        policy = CostPolicy.from_flags(
            order_type=2, is_critical=False, is_scheduled=False, max_counted_employees=10
        )
        assert policy.kind is OrderKind.AUDIT
        assert isinstance(policy.capping, UncappedHeadcount)
        assert policy.max_counted_employees is None

    def test_critical_loading_is_whole_percent(self):
        policy = CostPolicy.from_flags(
            order_type=2, is_critical=True, is_scheduled=False, critical_loading_raw=15
        )
        assert policy.critical_loading == Decimal("0.15")
        assert policy.is_critical

    def test_loading_ignored_when_not_critical(self):
        policy = CostPolicy.from_flags(
            order_type=2, is_critical=False, is_scheduled=False, critical_loading_raw=15
        )
        assert policy.critical_loading == Decimal("0")
        assert not policy.is_critical

    def test_scheduled_sets_quarters(self):
        policy = CostPolicy.from_flags(
            order_type=1, is_critical=False, is_scheduled=True, num_quarters=3
        )
        assert policy.is_scheduled
        assert policy.number_of_quarters == 3

    def test_unscheduled_has_one_quarter(self):
        policy = CostPolicy.from_flags(
            order_type=1, is_critical=False, is_scheduled=False, num_quarters=3
        )
        assert not policy.is_scheduled
        assert policy.number_of_quarters == 1

    def test_unknown_order_type(self):
        with pytest.raises(UnknownOrderTypeError) as exc_info:
            CostPolicy.from_flags(order_type=3, is_critical=False, is_scheduled=False)
        assert isinstance(exc_info.value, InvalidArgumentError)
        assert exc_info.value.order_type == 3


class TestPolicySerialization:
    """Tests for CostPolicy.to_dict / from_dict."""

    @pytest.mark.parametrize(
        "policy",
        [
            CostPolicy(),
            CostPolicy(kind=OrderKind.REGULAR, capping=HeadcountCap(7)),
            CostPolicy(critical_loading=Decimal("0.25"), recurrence=Recurrence(4)),
        ],
    )
    def test_round_trip(self, policy):
        assert CostPolicy.from_dict(policy.to_dict()) == policy

    def test_loading_stored_as_string(self):
        data = CostPolicy(critical_loading=Decimal("0.25")).to_dict()
        assert data["critical_loading"] == "0.25"
