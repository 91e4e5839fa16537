"""
feaa_config -- single public entrypoint for ordering configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration -- sits above ``feaa_kernel`` and below
    ``feaa_services``.  The kernel MUST NEVER import from ``feaa_config``.

Invariants enforced:
    - Single entrypoint: all runtime config flows through
      ``get_active_config()``.
    - The returned ``FeaaConfig`` has passed validation.
    - Same file content always produces the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- the configured path does not exist.
    - ``ConfigurationError`` -- the file failed validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``FEAA_CONFIG_TRACE`` log entry with the source path, checksum and
    catalog size, tying each session to the configuration it ran under.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from feaa_config.loader import load_yaml_file, parse_config
from feaa_config.schema import FeaaConfig, ReportDefinition

_logger = logging.getLogger("feaa.config")

CONFIG_ENV_VAR = "FEAA_CONFIG"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "FeaaConfig",
    "ReportDefinition",
    "get_active_config",
]


def get_active_config(path: Path | str | None = None) -> FeaaConfig:
    """The ONLY public configuration entrypoint.

    Resolution order for the file: ``path`` argument, then the
    ``FEAA_CONFIG`` environment variable, then the packaged defaults.

    Raises:
        FileNotFoundError: If the resolved file does not exist.
        ConfigurationError: If validation fails.
    """
    if path is None:
        path = os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH
    source = Path(path)

    config = parse_config(load_yaml_file(source), str(source))

    _logger.info(
        "FEAA_CONFIG_TRACE",
        extra={
            "trace_type": "FEAA_CONFIG_TRACE",
            "source": str(source),
            "checksum": config.checksum,
            "firm_name": config.firm_name,
            "report_count": len(config.reports),
        },
    )
    return config
