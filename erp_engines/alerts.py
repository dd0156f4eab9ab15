"""
Module: erp_engines.alerts
Responsibility:
    Compute expiry and low-stock alerts from live batch/product state at
    request time.  There are no scheduled jobs and no stored alert records;
    every call recomputes from the snapshot it is given.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  ``now`` is always supplied
    by the caller (the reporting service passes its injected Clock).

Invariants enforced:
    - remaining_days = ceil((expiry_date - now) / 1 day), computed in integer
      microseconds so no float rounding is involved.
    - A batch is flagged when remaining_days <= product.expiry_alert_days,
      which includes already-expired batches (negative remaining_days).
    - status is EXPIRED when remaining_days < 0, else EXPIRING_SOON.
    - A product is low on stock when sum(batch.quantity) <= low_stock_alert_qty.
    - Expiring batches are sorted by remaining_days, low-stock products by
      total_stock (both stable).

Failure modes:
    - Batches without an expiry date are never flagged for expiry.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable

from erp_engines.tracer import traced_engine
from erp_kernel.domain.period import as_utc
from erp_kernel.domain.snapshots import ProductStock
from erp_kernel.logging_config import get_logger

logger = get_logger("engines.alerts")

_DAY_US = 86_400_000_000


class ExpiryStatus(str, Enum):
    EXPIRING_SOON = "EXPIRING_SOON"
    EXPIRED = "EXPIRED"


@dataclass(frozen=True, slots=True)
class ExpiryAlert:
    batch_id: str
    batch_number: str
    product_id: str
    product_name: str
    expiry_date: datetime
    quantity: int
    remaining_days: int
    status: ExpiryStatus


@dataclass(frozen=True, slots=True)
class LowStockAlert:
    product_id: str
    product_name: str
    total_stock: int
    alert_threshold: int
    batch_count: int


@dataclass(frozen=True, slots=True)
class AlertSet:
    expiring_batches: tuple[ExpiryAlert, ...] = ()
    low_stock_products: tuple[LowStockAlert, ...] = ()

    @property
    def total_alerts(self) -> int:
        return len(self.expiring_batches) + len(self.low_stock_products)


def remaining_days(expiry_date: datetime, now: datetime) -> int:
    """Whole days until expiry, rounded up; negative once expired."""
    delta_us = (as_utc(expiry_date) - as_utc(now)) // timedelta(microseconds=1)
    return -((-delta_us) // _DAY_US)


@traced_engine("alert_evaluator", "1.0", fingerprint_fields=("now",))
def evaluate_alerts(stock: Iterable[ProductStock], now: datetime) -> AlertSet:
    """
    Evaluate expiry and low-stock alerts.

    Args:
        stock: Every product with its batches.
        now: The instant alerts are evaluated at.

    Returns:
        AlertSet with sorted expiring batches and low-stock products.
    """
    expiring: list[ExpiryAlert] = []
    low_stock: list[LowStockAlert] = []

    for item in stock:
        product = item.product
        for batch in item.batches:
            if batch.expiry_date is None:
                continue
            days = remaining_days(batch.expiry_date, now)
            if days <= product.expiry_alert_days:
                expiring.append(ExpiryAlert(
                    batch_id=batch.batch_id,
                    batch_number=batch.batch_number,
                    product_id=product.product_id,
                    product_name=product.name,
                    expiry_date=batch.expiry_date,
                    quantity=batch.quantity,
                    remaining_days=days,
                    status=ExpiryStatus.EXPIRED if days < 0 else ExpiryStatus.EXPIRING_SOON,
                ))

        total = item.total_stock
        if total <= product.low_stock_alert_qty:
            low_stock.append(LowStockAlert(
                product_id=product.product_id,
                product_name=product.name,
                total_stock=total,
                alert_threshold=product.low_stock_alert_qty,
                batch_count=len(item.batches),
            ))

    expiring.sort(key=lambda a: a.remaining_days)
    low_stock.sort(key=lambda a: a.total_stock)

    logger.info("alerts_evaluated", extra={
        "expiring_count": len(expiring),
        "low_stock_count": len(low_stock),
        "evaluated_at": as_utc(now).isoformat(),
    })
    return AlertSet(expiring_batches=tuple(expiring), low_stock_products=tuple(low_stock))
