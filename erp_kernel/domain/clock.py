"""
Clock -- injectable time source.

Responsibility:
    The write path stamps invoices, batches and settlements with
    ``clock.now()`` when the caller gives no explicit date, and the
    reporting service evaluates alerts, aging and exception reports
    against it. Nothing in the engine calls ``datetime.now()`` directly.

Architecture position:
    Kernel > Domain -- pure, zero I/O except SystemClock.

Invariants enforced:
    - ``now()`` is always timezone-aware UTC.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone

from erp_kernel.domain.period import as_utc


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current instant, aware UTC."""


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Tests pin it to a business date, record a sale, move it forward with
    ``set_time`` or ``advance`` and then settle, so settlement timestamps
    (and therefore cash-flow timing) are exact.
    """

    DEFAULT_START = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __init__(self, start: datetime | None = None):
        self._current = as_utc(start) if start is not None else self.DEFAULT_START

    def now(self) -> datetime:
        return self._current

    def set_time(self, instant: datetime) -> None:
        self._current = as_utc(instant)

    def advance(self, seconds: int = 0, *, days: int = 0) -> datetime:
        """Move forward and return the new instant."""
        self._current += timedelta(days=days, seconds=seconds)
        return self._current

    def advance_days(self, days: int) -> datetime:
        return self.advance(days=days)
