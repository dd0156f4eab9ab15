"""
Module: erp_kernel.models.inventory
Responsibility: ORM persistence for stock batches (lots) and the stock
    transaction journal (IN/OUT movements).
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/values.py only.

Invariants enforced:
    - Batch quantity is a non-negative integer (CHECK constraint); it is only
      ever decremented after creation.
    - Batch cost_per_item is non-negative (CHECK constraint).
    - Batch sequence is unique and allocated from the "batch" SequenceCounter
      at insert time.  FIFO order is sequence ascending, never id order.
    - For every product, sum(batch.quantity) == sum(IN) - sum(OUT) as long
      as no sale was oversold.

Failure modes:
    - IntegrityError on duplicate sequence or a negative quantity write.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from erp_kernel.db.base import Base, UUIDString
from erp_kernel.domain.values import StockDirection


class BatchModel(Base):
    """
    One inward stock lot.

    Contract:
        Created by InvoicingService.record_purchase_batch, decremented only
        by InventoryValuationService.apply_consumption.  Never deleted.
    """

    __tablename__ = "batches"

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_batch_quantity_non_negative"),
        CheckConstraint("cost_per_item >= 0", name="ck_batch_cost_non_negative"),
        Index("idx_batch_product_sequence", "product_id", "sequence"),
        Index("idx_batch_received_at", "received_at"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    supplier_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("parties.id"),
        nullable=True,
    )

    batch_number: Mapped[str] = mapped_column(String(100), nullable=False)

    # Remaining quantity
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    cost_per_item: Mapped[Decimal] = mapped_column(nullable=False)

    expiry_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # FIFO total order
    sequence: Mapped[int] = mapped_column(nullable=False, unique=True)

    received_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    product: Mapped["ProductModel"] = relationship(  # noqa: F821
        back_populates="batches",
    )

    def __repr__(self) -> str:
        return (
            f"<Batch {self.batch_number} seq={self.sequence} "
            f"qty={self.quantity} @ {self.cost_per_item}>"
        )


class StockTransactionModel(Base):
    """
    An IN or OUT stock movement.

    Purchases write one IN per batch; every sales line writes one OUT for
    the full quantity sold (oversold units included).
    """

    __tablename__ = "stock_transactions"

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_stock_txn_quantity_non_negative"),
        Index("idx_stock_txn_product", "product_id"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    batch_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("batches.id"),
        nullable=True,
    )

    direction: Mapped[StockDirection] = mapped_column(
        SAEnum(StockDirection, native_enum=False, length=10),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<StockTransaction {self.direction.value} {self.quantity}>"
