"""
FEAA configuration schema.

Frozen dataclasses the loader parses YAML into.  ``FeaaConfig`` is the only
configuration object the rest of the system ever receives.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class ReportDefinition:
    """A report offered in the catalog, with its raw payload blocks."""

    name: str
    commission_per_employee: Decimal
    legal_data: tuple[float, ...] | None = None
    cash_flow_data: tuple[float, ...] | None = None
    merges_data: tuple[float, ...] | None = None
    tallying_data: tuple[float, ...] | None = None
    deductions_data: tuple[float, ...] | None = None


@dataclass(frozen=True)
class FeaaConfig:
    """Validated runtime configuration."""

    firm_name: str
    database_url: str
    log_level: str
    default_contact_priority: tuple[str, ...]
    reports: tuple[ReportDefinition, ...]
    checksum: str
