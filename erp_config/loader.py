"""
Configuration Loader (``erp_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into the frozen
``erp_config.schema.ErpSettings``.  The single public entry point for
runtime settings is ``erp_config.get_active_settings()``.

Invariants enforced
-------------------
* Unknown top-level or ``database`` keys raise ``ValueError``; nothing is
  silently ignored.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid values  -> ``ValueError`` from the schema dataclasses.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from erp_config.schema import ErpSettings
from erp_modules.reporting.config import ReportingConfig

_TOP_LEVEL_KEYS = frozenset({"database", "logging", "reporting"})
_DATABASE_KEYS = frozenset({"url", "echo"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a mapping at the top level")
    return data


def parse_settings(data: dict[str, Any]) -> ErpSettings:
    """Build ErpSettings from a parsed YAML mapping."""
    unknown = set(data) - _TOP_LEVEL_KEYS
    if unknown:
        raise ValueError(f"Unknown settings sections: {sorted(unknown)}")

    database = data.get("database") or {}
    unknown = set(database) - _DATABASE_KEYS
    if unknown:
        raise ValueError(f"Unknown database settings: {sorted(unknown)}")

    logging_section = data.get("logging") or {}
    reporting = data.get("reporting")

    return ErpSettings(
        database_url=database.get("url", ErpSettings.database_url),
        database_echo=bool(database.get("echo", False)),
        log_level=str(logging_section.get("level", ErpSettings.log_level)).upper(),
        reporting=ReportingConfig.from_dict(reporting) if reporting else ReportingConfig(),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
