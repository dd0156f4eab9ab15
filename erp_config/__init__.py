"""
erp_config -- single public entrypoint for runtime settings.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_settings()``.  No other component reads configuration
    files or environment variables directly.

Architecture position:
    Configuration -- sits above ``erp_kernel`` and ``erp_modules``.  The
    kernel MUST NEVER import from ``erp_config``.

Failure modes:
    - ``FileNotFoundError`` -- the selected settings file does not exist.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``ValueError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful ``get_active_settings()`` call emits an
    ``ERP_CONFIG_TRACE`` log entry with the source path and the content
    checksum.
"""

from __future__ import annotations

import os
from pathlib import Path

from erp_config.loader import compute_checksum, load_yaml_file, parse_settings
from erp_config.schema import ErpSettings
from erp_kernel.logging_config import get_logger

_logger = get_logger("config")

CONFIG_ENV_VAR = "ERP_CONFIG_FILE"

# Packaged default settings
DEFAULT_SETTINGS_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_settings(path: Path | str | None = None) -> ErpSettings:
    """The ONLY public settings entrypoint.

    Resolution order: explicit ``path``, then the ``ERP_CONFIG_FILE``
    environment variable, then the packaged ``sets/default.yaml``.

    Raises:
        FileNotFoundError: If the selected file does not exist.
        ValueError: If the settings fail validation.
    """
    if path is not None:
        source = Path(path)
    elif os.environ.get(CONFIG_ENV_VAR):
        source = Path(os.environ[CONFIG_ENV_VAR])
    else:
        source = DEFAULT_SETTINGS_PATH

    data = load_yaml_file(source)
    settings = parse_settings(data)

    _logger.info(
        "ERP_CONFIG_TRACE",
        extra={
            "trace_type": "ERP_CONFIG_TRACE",
            "source": str(source),
            "checksum": compute_checksum(data),
            "entity_name": settings.reporting.entity_name,
            "currency": settings.reporting.default_currency,
            "gst_enabled": settings.reporting.gst.enabled,
        },
    )
    return settings


__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_SETTINGS_PATH",
    "ErpSettings",
    "get_active_settings",
]
