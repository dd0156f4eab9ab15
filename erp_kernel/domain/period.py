"""
Period -- reporting windows and as-of cutoffs.

Responsibility:
    Builds the half-open ``[start, end)`` windows that window-based reports
    (general ledger, cash flow, P&L, reconciliation) run over, and the
    end-of-month cutoff instants used by point-in-time reports.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - All instants are timezone-aware UTC.
    - ``start < end``; a window never covers a negative span.
    - Months are 1..12 and years 1900..2100.

Failure modes:
    - InvalidPeriodError for out-of-range months/years or inverted windows.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from erp_kernel.exceptions import InvalidPeriodError

MIN_YEAR = 1900
MAX_YEAR = 2100


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _validate_month(year: int, month: int) -> None:
    if isinstance(year, bool) or not isinstance(year, int):
        raise InvalidPeriodError(f"Year must be an integer, got {year!r}")
    if isinstance(month, bool) or not isinstance(month, int):
        raise InvalidPeriodError(f"Month must be an integer, got {month!r}")
    if not 1 <= month <= 12:
        raise InvalidPeriodError(
            f"Month must be between 1 and 12, got {month}", year=year, month=month
        )
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise InvalidPeriodError(
            f"Year must be between {MIN_YEAR} and {MAX_YEAR}, got {year}",
            year=year,
            month=month,
        )


def _first_instant(year: int, month: int) -> datetime:
    return datetime(year, month, 1, tzinfo=timezone.utc)


def _next_month(year: int, month: int) -> tuple[int, int]:
    if month == 12:
        return year + 1, 1
    return year, month + 1


def month_end_cutoff(year: int, month: int) -> datetime:
    """Last representable instant of the month (23:59:59.999999 UTC)."""
    _validate_month(year, month)
    ny, nm = _next_month(year, month)
    return _first_instant(ny, nm) - timedelta(microseconds=1)


@dataclass(frozen=True, slots=True)
class ReportingWindow:
    """
    Half-open UTC time window ``[start, end)``.

    Contract:
        ``contains(t)`` is true iff ``start <= t < end``.
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_utc(self.start))
        object.__setattr__(self, "end", as_utc(self.end))
        if self.end <= self.start:
            raise InvalidPeriodError(
                f"Window end {self.end.isoformat()} must be after start "
                f"{self.start.isoformat()}"
            )

    @classmethod
    def for_month(cls, year: int, month: int) -> ReportingWindow:
        """Window covering one calendar month (month is 1..12)."""
        _validate_month(year, month)
        ny, nm = _next_month(year, month)
        return cls(start=_first_instant(year, month), end=_first_instant(ny, nm))

    def contains(self, instant: datetime) -> bool:
        return self.start <= as_utc(instant) < self.end

    def previous_month(self) -> ReportingWindow:
        """The calendar month immediately before this window's start month."""
        year, month = self.start.year, self.start.month
        if month == 1:
            return ReportingWindow.for_month(year - 1, 12)
        return ReportingWindow.for_month(year, month - 1)

    @property
    def label(self) -> str:
        return f"{self.start.date().isoformat()}..{self.end.date().isoformat()}"
