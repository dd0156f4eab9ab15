"""
Module: erp_engines.aging
Responsibility:
    Age open receivables and payables and classify them into credit-risk
    buckets (Current / Overdue / Critical).

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - age_days = floor((as_of - document_date) / 1 day).
    - Buckets are contiguous: 0-30 Current, 31-60 Overdue, 61+ Critical.
      Negative ages (documents dated after as_of) classify as the first
      bucket.
    - The aged amount is what was outstanding at as_of.

Failure modes:
    - ValueError when an age does not fall into any configured bucket.

Usage:
    from erp_engines.aging import AgingCalculator

    calculator = AgingCalculator()
    items = calculator.age_records(outstanding.receivables, as_of)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Sequence

from erp_engines.tracer import traced_engine
from erp_kernel.domain.period import as_utc
from erp_kernel.domain.snapshots import SettlementRecord
from erp_kernel.domain.values import ZERO
from erp_kernel.logging_config import get_logger

logger = get_logger("engines.aging")


@dataclass(frozen=True)
class AgeBucket:
    """
    Definition of an aging bucket.

    Guarantees:
        - min_days >= 0.
        - max_days >= min_days (when bounded).
    """

    name: str
    min_days: int
    max_days: int | None  # None = unbounded
    status: str

    def __post_init__(self) -> None:
        if self.min_days < 0:
            raise ValueError("min_days cannot be negative")
        if self.max_days is not None and self.max_days < self.min_days:
            raise ValueError("max_days cannot be less than min_days")

    def contains(self, age_days: int) -> bool:
        if age_days < self.min_days:
            return False
        if self.max_days is None:
            return True
        return age_days <= self.max_days


CREDIT_RISK_BUCKETS: tuple[AgeBucket, ...] = (
    AgeBucket("0-30 days", 0, 30, "Current"),
    AgeBucket("31-60 days", 31, 60, "Overdue"),
    AgeBucket("60+ days", 61, None, "Critical"),
)


@dataclass(frozen=True)
class AgedItem:
    """An open receivable or payable with its age classification."""

    record_id: str
    reference: str
    counterparty_name: str
    document_date: datetime
    amount: Decimal
    age_days: int
    bucket: AgeBucket

    @property
    def status(self) -> str:
        return self.bucket.status


class AgingCalculator:
    """
    Calculate aging for dated settlement records.

    Contract:
        Pure functions; all dates and data passed as parameters.
    """

    DEFAULT_BUCKETS = CREDIT_RISK_BUCKETS

    def __init__(self, buckets: Sequence[AgeBucket] | None = None):
        self.buckets = tuple(buckets) if buckets else self.DEFAULT_BUCKETS

    def calculate_age(self, document_date: datetime, as_of: datetime) -> int:
        """Whole days elapsed, rounded down."""
        elapsed = as_utc(as_of) - as_utc(document_date)
        return elapsed // timedelta(days=1)

    def classify(self, age_days: int) -> AgeBucket:
        """
        Map an age to exactly one bucket.

        Raises:
            ValueError: If age doesn't fit any bucket.
        """
        if age_days < 0:
            return self.buckets[0]

        for bucket in self.buckets:
            if bucket.contains(age_days):
                return bucket

        logger.warning("age_classification_no_bucket", extra={
            "age_days": age_days,
            "bucket_count": len(self.buckets),
        })
        raise ValueError(f"Age {age_days} does not fit any bucket")

    @traced_engine("aging", "1.0", fingerprint_fields=("as_of",))
    def age_records(
        self,
        records: Iterable[SettlementRecord],
        as_of: datetime,
    ) -> tuple[AgedItem, ...]:
        """Age every record with a positive amount outstanding at ``as_of``."""
        items: list[AgedItem] = []
        for record in records:
            amount = record.outstanding_as_of(as_of)
            if amount <= ZERO:
                continue
            age = self.calculate_age(record.created_at, as_of)
            items.append(AgedItem(
                record_id=record.record_id,
                reference=record.reference,
                counterparty_name=record.party_name,
                document_date=record.created_at,
                amount=amount,
                age_days=age,
                bucket=self.classify(age),
            ))
        return tuple(items)


def total_by_bucket(
    items: Iterable[AgedItem],
    buckets: Sequence[AgeBucket] = CREDIT_RISK_BUCKETS,
) -> dict[str, Decimal]:
    """Amount per bucket name; every bucket is present, possibly zero."""
    totals = {b.name: ZERO for b in buckets}
    for item in items:
        totals[item.bucket.name] = totals.get(item.bucket.name, ZERO) + item.amount
    return totals


def exposure_by_counterparty(items: Iterable[AgedItem]) -> dict[str, Decimal]:
    """Outstanding amount per counterparty, zero exposures dropped."""
    exposure: dict[str, Decimal] = {}
    for item in items:
        exposure[item.counterparty_name] = exposure.get(item.counterparty_name, ZERO) + item.amount
    return {name: amount for name, amount in exposure.items() if amount > ZERO}
