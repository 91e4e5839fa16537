"""
ReportCatalog -- the reports a session can place on orders.

Builds interned ``Report`` values from the configured ``ReportDefinition``
entries once per session.  Payload blocks shared between definitions end up
as one canonical tuple in the session's ValueCache.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from feaa_config.schema import FeaaConfig, ReportDefinition
from feaa_kernel.domain.value_cache import ValueCache
from feaa_kernel.domain.values import Report
from feaa_kernel.logging_config import get_logger

logger = get_logger("services.report_catalog")


class ReportCatalog:
    def __init__(self, reports: Iterable[Report]):
        self._reports = sorted(reports, key=lambda r: r.sort_key)

    @classmethod
    def from_definitions(
        cls, definitions: Iterable[ReportDefinition], cache: ValueCache
    ) -> ReportCatalog:
        reports = [
            Report.create(
                cache,
                d.name,
                d.commission_per_employee,
                legal_data=d.legal_data,
                cash_flow_data=d.cash_flow_data,
                merges_data=d.merges_data,
                tallying_data=d.tallying_data,
                deductions_data=d.deductions_data,
            )
            for d in definitions
        ]
        logger.info(
            "report_catalog_built",
            extra={"report_count": len(reports), "distinct_payloads": len(cache)},
        )
        return cls(reports)

    @classmethod
    def from_config(cls, config: FeaaConfig, cache: ValueCache) -> ReportCatalog:
        return cls.from_definitions(config.reports, cache)

    def reports(self) -> list[Report]:
        """All reports, sorted by (name, commission)."""
        return list(self._reports)

    def get(self, name: str) -> Report | None:
        for report in self._reports:
            if report.name == name:
                return report
        return None

    def __iter__(self) -> Iterator[Report]:
        return iter(self._reports)

    def __len__(self) -> int:
        return len(self._reports)
