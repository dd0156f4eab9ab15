"""
Settings schema (``erp_config.schema``).

Frozen runtime settings: where the record store lives, how loud logging
is, and the reporting configuration.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from erp_modules.reporting.config import ReportingConfig


@dataclass(frozen=True)
class ErpSettings:
    """The complete runtime configuration."""

    database_url: str = "sqlite:///erp.db"
    database_echo: bool = False
    log_level: str = "INFO"
    reporting: ReportingConfig = field(default_factory=ReportingConfig)

    def __post_init__(self):
        if not self.database_url:
            raise ValueError("database_url is required")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Unknown log level: {self.log_level}")
