"""
Reporting Configuration Schema.

Defines the chart-of-accounts knobs the projector needs (which expense
category is interest), tolerances, exception-report thresholds, the
credit-risk aging cut-offs and the GST switch used when recording sales.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Self

from erp_engines.aging import AgeBucket
from erp_engines.tax import DEFAULT_GST_RATE, DEFAULT_SELLER_STATE, GST_RATES
from erp_kernel.logging_config import get_logger

logger = get_logger("modules.reporting.config")


def _as_decimal(value: Any) -> Decimal:
    # YAML hands floats over for values like 0.01
    return value if isinstance(value, Decimal) else Decimal(str(value))


@dataclass
class ExceptionThresholds:
    """
    Month-over-month triggers for the exception report.

    An expense category is flagged when current > previous * expense_increase_ratio;
    sales are flagged when current < previous * sales_drop_ratio; a receivable
    is flagged when it has been pending for more than overdue_receivable_days.
    """

    expense_increase_ratio: Decimal = Decimal("1.3")
    sales_drop_ratio: Decimal = Decimal("0.8")
    overdue_receivable_days: int = 60

    def __post_init__(self):
        self.expense_increase_ratio = _as_decimal(self.expense_increase_ratio)
        self.sales_drop_ratio = _as_decimal(self.sales_drop_ratio)
        if self.overdue_receivable_days < 0:
            raise ValueError("overdue_receivable_days cannot be negative")


@dataclass
class AgingThresholds:
    """Upper day bounds of the Current and Overdue buckets."""

    current_max_days: int = 30
    overdue_max_days: int = 60

    def __post_init__(self):
        if not 0 <= self.current_max_days < self.overdue_max_days:
            raise ValueError("aging thresholds must satisfy 0 <= current < overdue")

    def buckets(self) -> tuple[AgeBucket, ...]:
        c, o = self.current_max_days, self.overdue_max_days
        return (
            AgeBucket(f"0-{c} days", 0, c, "Current"),
            AgeBucket(f"{c + 1}-{o} days", c + 1, o, "Overdue"),
            AgeBucket(f"{o}+ days", o + 1, None, "Critical"),
        )


@dataclass
class GstSettings:
    """GST applied by InvoicingService.record_sale.  Off by default."""

    enabled: bool = False
    seller_state: str = DEFAULT_SELLER_STATE
    default_rate: int = DEFAULT_GST_RATE

    def __post_init__(self):
        if self.default_rate not in GST_RATES:
            raise ValueError(f"default_rate must be one of {GST_RATES}")


@dataclass
class ReportingConfig:
    """
    Configuration schema for the reporting module.

    Controls labels, tolerances, thresholds and the GST switch.
    """

    # Entity name shown on reports
    entity_name: str = "Company"

    # Single reporting currency
    default_currency: str = "INR"

    # Rounding precision for rendered output
    display_precision: int = 2

    # Trial balance / reconciliation tolerance
    balance_tolerance: Decimal = Decimal("0.01")

    # Expense category reported as Interest Expense / financing outflow
    interest_category: str = "Interest on Loans"

    exceptions: ExceptionThresholds = field(default_factory=ExceptionThresholds)

    aging: AgingThresholds = field(default_factory=AgingThresholds)

    gst: GstSettings = field(default_factory=GstSettings)

    def __post_init__(self):
        self.balance_tolerance = _as_decimal(self.balance_tolerance)
        if self.display_precision < 0:
            raise ValueError("display_precision cannot be negative")
        if len(self.default_currency) != 3:
            raise ValueError("default_currency must be a 3-letter ISO 4217 code")
        if self.balance_tolerance < 0:
            raise ValueError("balance_tolerance cannot be negative")

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with standard defaults."""
        logger.info("reporting_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g. the reporting section of a YAML file)."""
        data = dict(data)
        if isinstance(data.get("exceptions"), dict):
            data["exceptions"] = ExceptionThresholds(**data["exceptions"])
        if isinstance(data.get("aging"), dict):
            data["aging"] = AgingThresholds(**data["aging"])
        if isinstance(data.get("gst"), dict):
            data["gst"] = GstSettings(**data["gst"])
        logger.info(
            "reporting_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        return cls(**data)
