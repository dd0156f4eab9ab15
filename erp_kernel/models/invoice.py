"""
Module: erp_kernel.models.invoice
Responsibility: ORM persistence for invoices and invoice lines, including the
    GST split and the FIFO cost recorded on each sales line.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/values.py only.

Invariants enforced:
    - invoice_number is unique.
    - total_amount == taxable_amount + cgst + sgst + igst.
    - cogs_per_item / cogs_total on a line are written once, at creation, from
      the allocator output.  Historical cost is never recomputed.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from erp_kernel.db.base import Base, TimestampedBase, UUIDString
from erp_kernel.domain.values import ZERO, InvoiceType


class InvoiceModel(TimestampedBase):
    """A sales or purchase invoice."""

    __tablename__ = "invoices"

    __table_args__ = (
        Index("idx_invoice_type_date", "invoice_type", "invoice_date"),
    )

    invoice_number: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    invoice_type: Mapped[InvoiceType] = mapped_column(
        SAEnum(InvoiceType, native_enum=False, length=20),
        nullable=False,
    )

    party_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("parties.id"),
        nullable=False,
    )

    invoice_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    taxable_amount: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    cgst: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    sgst: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    igst: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    lines: Mapped[list["InvoiceLineModel"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    party: Mapped["PartyModel"] = relationship()  # noqa: F821

    def __repr__(self) -> str:
        return f"<Invoice {self.invoice_number} {self.invoice_type.value} {self.total_amount}>"


class InvoiceLineModel(Base):
    """One product line on an invoice."""

    __tablename__ = "invoice_lines"

    invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("invoices.id"),
        nullable=False,
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    price_per_item: Mapped[Decimal] = mapped_column(nullable=False)

    subtotal: Mapped[Decimal] = mapped_column(nullable=False)

    gst_rate: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)

    # Set once from the FIFO allocation
    cogs_per_item: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)
    cogs_total: Mapped[Decimal] = mapped_column(nullable=False, default=ZERO)

    invoice: Mapped[InvoiceModel] = relationship(back_populates="lines")

    def __repr__(self) -> str:
        return f"<InvoiceLine qty={self.quantity} cogs={self.cogs_total}>"
