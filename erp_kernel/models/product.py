"""
Module: erp_kernel.models.product
Responsibility: ORM persistence for sellable products and their alert
    thresholds.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - sku is unique.
    - expiry_alert_days and low_stock_alert_qty are non-negative integers
      (enforced by the invoicing service at creation time).

Audit relevance:
    Products are read-only from the FIFO allocator's perspective; the
    price/cost columns are catalogue defaults, never used for COGS.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from erp_kernel.db.base import TimestampedBase


class ProductModel(TimestampedBase):
    """
    A catalogue product.

    Guarantees:
        - batches are loaded in FIFO order (sequence ascending).
    """

    __tablename__ = "products"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    sku: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)

    # Catalogue selling price and standard cost
    price: Mapped[Decimal] = mapped_column(nullable=False)
    cost: Mapped[Decimal] = mapped_column(nullable=False)

    expiry_alert_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    low_stock_alert_qty: Mapped[int] = mapped_column(Integer, nullable=False, default=10)

    batches: Mapped[list["BatchModel"]] = relationship(  # noqa: F821
        back_populates="product",
        order_by="BatchModel.sequence",
    )

    def __repr__(self) -> str:
        return f"<Product {self.sku}: {self.name}>"
