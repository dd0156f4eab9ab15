"""
SequenceService -- numbering for batches and invoices.

Responsibility:
    Hands out the FIFO ``sequence`` of each received batch and the
    document numbers printed on invoices (``INV-000001``), purchase
    invoices (``PUR-000001``) and batches (``B-000001``). Each series is
    one row in ``document_series`` that is locked while it is incremented.

Architecture position:
    Kernel > Services. Used by InvoicingService inside the sale or
    purchase transaction.

Invariants enforced:
    - Values within a series are strictly increasing and start at 1.
      Batch FIFO order depends on this; ``max(sequence) + 1`` is never used.
    - The increment belongs to the caller's transaction: a rolled-back sale
      or purchase gives its number back.

Failure modes:
    - IntegrityError when two transactions create the same series row on
      first use; the losing transaction rolls back as a whole.
"""

from dataclasses import dataclass

from sqlalchemy import BigInteger, String, select
from sqlalchemy.orm import Mapped, Session, mapped_column

from erp_kernel.db.base import Base
from erp_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """Last value issued for one document series."""

    __tablename__ = "document_series"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    last_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)


@dataclass(frozen=True)
class Series:
    name: str
    prefix: str
    width: int = 6

    def format(self, value: int) -> str:
        return f"{self.prefix}-{value:0{self.width}d}"


class SequenceService:
    """
    Issues batch sequences and document numbers. Never commits.
    """

    BATCH = Series("batch", "B")
    SALES_INVOICE = Series("sales_invoice", "INV")
    PURCHASE_INVOICE = Series("purchase_invoice", "PUR")

    def __init__(self, session: Session):
        self._session = session

    def _locked(self, name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, series: Series) -> int:
        """Increment ``series`` and return the new value."""
        counter = self._locked(series.name)
        if counter is None:
            counter = SequenceCounter(name=series.name, last_value=0)
            self._session.add(counter)

        counter.last_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"series": series.name, "value": counter.last_value},
        )
        return counter.last_value

    def next_number(self, series: Series) -> tuple[int, str]:
        """The next value and its printed form, e.g. ``(7, "INV-000007")``."""
        value = self.next_value(series)
        return value, series.format(value)

    def last_value(self, series: Series) -> int:
        """Last value issued, 0 if the series was never used."""
        value = self._session.execute(
            select(SequenceCounter.last_value).where(SequenceCounter.name == series.name)
        ).scalar_one_or_none()
        return value or 0
