"""
Unit tests for the Report value object.

Verifies:
- Structural equality and hashing
- Payload sharing through the ValueCache
- Decimal commission handling
- Dict round trip re-interns payloads
"""

from decimal import Decimal

import pytest

from feaa_kernel.domain.value_cache import ValueCache
from feaa_kernel.domain.values import Report, to_decimal


class TestReportEquality:
    """Tests for value equality and hash agreement."""

    def test_reports_from_equal_payloads_are_equal(self, value_cache):
        a = Report.create(value_cache, "Audit", "10", legal_data=[1.0, 2.0])
        b = Report.create(value_cache, "Audit", "10", legal_data=(1.0, 2.0))
        assert a == b
        assert hash(a) == hash(b)
        assert a.legal_data is b.legal_data

    def test_identity_is_equal(self, make_report):
        report = make_report()
        assert report == report

    def test_other_type_is_not_equal(self, make_report):
        assert make_report() != "Audit"

    def test_name_differs(self, make_report):
        assert make_report("Audit") != make_report("Tax")

    def test_commission_differs(self, make_report):
        assert make_report(commission="10") != make_report(commission="11")

    def test_payload_differs(self, make_report):
        assert make_report(legal_data=[1.0]) != make_report(legal_data=[2.0])

    def test_missing_payload_differs_from_empty(self, make_report):
        assert make_report(legal_data=None) != make_report(legal_data=[])

    def test_equal_across_caches(self):
        a = Report.create(ValueCache(), "Audit", "10", merges_data=[3.0])
        b = Report.create(ValueCache(), "Audit", "10", merges_data=[3.0])
        assert a == b
        assert hash(a) == hash(b)

    def test_equivalent_decimals_hash_alike(self, make_report):
        a = make_report(commission=Decimal("10"))
        b = make_report(commission=Decimal("10.00"))
        assert a == b
        assert hash(a) == hash(b)

    def test_usable_as_dict_key(self, make_report):
        lines = {make_report(): 3}
        assert lines[make_report()] == 3


class TestReportConstruction:
    """Tests for commission conversion and validation."""

    def test_float_commission_goes_through_str(self, make_report):
        assert make_report(commission=0.1).commission_per_employee == Decimal("0.1")

    def test_negative_commission_rejected(self, value_cache):
        with pytest.raises(ValueError):
            Report.create(value_cache, "Audit", "-1")

    def test_garbage_commission_rejected(self):
        with pytest.raises(ValueError):
            to_decimal("ten dollars")

    @pytest.mark.parametrize("amount", ["nan", "NaN", "inf", "-Infinity", float("nan"), Decimal("sNaN")])
    def test_non_finite_commission_rejected(self, value_cache, amount):
        with pytest.raises(ValueError):
            Report.create(value_cache, "Audit", amount)

    def test_non_finite_commission_rejected_on_direct_construction(self):
        with pytest.raises(ValueError):
            Report("Audit", "nan")

    def test_immutable(self, make_report):
        report = make_report()
        with pytest.raises(AttributeError):
            report.name = "Other"

    def test_sort_key(self, make_report):
        assert make_report("Tax", "5").sort_key == ("Tax", Decimal("5"))

    def test_str_is_name(self, make_report):
        assert str(make_report("Payroll")) == "Payroll"


class TestReportSerialization:
    """Tests for to_dict / from_dict."""

    def test_to_dict_is_json_safe(self, make_report):
        data = make_report("Audit", "12.50", legal_data=[1.0]).to_dict()
        assert data["name"] == "Audit"
        assert data["commission_per_employee"] == "12.50"
        assert data["legal_data"] == [1.0]
        assert data["cash_flow_data"] is None

    def test_from_dict_rebuilds_equal_report(self, value_cache, make_report):
        original = make_report("Audit", "12.50", legal_data=[1.0], deductions_data=[0.5])
        rebuilt = Report.from_dict(value_cache, original.to_dict())
        assert rebuilt == original
        assert rebuilt.legal_data is original.legal_data
