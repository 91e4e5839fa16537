"""
Configuration Loader (``feaa_config.loader``).

Responsibility
--------------
Loads the YAML configuration file and parses it into the frozen
``feaa_config.schema`` dataclasses.  Runtime callers go through
``feaa_config.get_active_config()`` rather than calling this directly.

Invariants enforced
-------------------
* No silent defaults for report fields: a report without a name or a
  commission is rejected.
* Commissions are Decimal and non-negative.
* Every contact label in ``default_contact_priority`` is a known channel.
* ``compute_checksum`` produces a deterministic SHA-256 over the parsed
  content, independent of key order in the file.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid content  -> ``ConfigurationError`` naming the source and problem.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from feaa_config.schema import FeaaConfig, ReportDefinition
from feaa_kernel.domain.contact import ContactMethod
from feaa_kernel.domain.invoice_text import DEFAULT_FIRM_NAME
from feaa_kernel.exceptions import ConfigurationError

_PAYLOAD_KEYS = (
    "legal_data",
    "cash_flow_data",
    "merges_data",
    "tallying_data",
    "deductions_data",
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_report(data: dict[str, Any], source: str) -> ReportDefinition:
    """Parse one catalog entry."""
    name = data.get("name")
    if not name:
        raise ConfigurationError(source, f"report without a name: {data!r}")
    if "commission_per_employee" not in data:
        raise ConfigurationError(source, f"report {name!r} has no commission_per_employee")
    try:
        commission = Decimal(str(data["commission_per_employee"]))
    except InvalidOperation:
        raise ConfigurationError(
            source, f"report {name!r} commission is not a number"
        ) from None
    if not commission.is_finite():
        raise ConfigurationError(source, f"report {name!r} commission must be finite")
    if commission < 0:
        raise ConfigurationError(source, f"report {name!r} has a negative commission")

    payloads: dict[str, tuple[float, ...] | None] = {}
    for key in _PAYLOAD_KEYS:
        block = data.get(key)
        try:
            payloads[key] = tuple(float(v) for v in block) if block is not None else None
        except (TypeError, ValueError):
            raise ConfigurationError(
                source, f"report {name!r} {key} must be a list of numbers"
            ) from None

    return ReportDefinition(
        name=str(name),
        commission_per_employee=commission,
        **payloads,
    )


def parse_contact_labels(labels: Any, source: str) -> tuple[str, ...]:
    if labels is None:
        return ()
    if isinstance(labels, str) or not isinstance(labels, list):
        raise ConfigurationError(source, "default_contact_priority must be a list")
    parsed = []
    for label in labels:
        if ContactMethod.from_label(str(label)) is None:
            raise ConfigurationError(source, f"unknown contact method {label!r}")
        parsed.append(str(label).strip().lower())
    return tuple(parsed)


def parse_config(data: dict[str, Any], source: str) -> FeaaConfig:
    """Validate raw YAML data and build a FeaaConfig."""
    reports = data.get("reports") or []
    if not isinstance(reports, list):
        raise ConfigurationError(source, "reports must be a list")

    parsed_reports = tuple(parse_report(entry, source) for entry in reports)
    names = [r.name for r in parsed_reports]
    duplicates = sorted({n for n in names if names.count(n) > 1})
    if duplicates:
        raise ConfigurationError(source, f"duplicate report names: {duplicates}")

    return FeaaConfig(
        firm_name=str(data.get("firm_name") or DEFAULT_FIRM_NAME),
        database_url=str(data.get("database_url") or "sqlite://"),
        log_level=str(data.get("log_level") or "INFO").upper(),
        default_contact_priority=parse_contact_labels(
            data.get("default_contact_priority"), source
        ),
        reports=parsed_reports,
        checksum=compute_checksum(data),
    )
