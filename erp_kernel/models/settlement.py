"""
Module: erp_kernel.models.settlement
Responsibility: ORM persistence for accounts receivable (one per sales
    invoice) and accounts payable (one per purchased batch).
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/values.py only.

Invariants enforced:
    - 0 <= outstanding_amount <= total_amount (CHECK constraint plus service
      validation).
    - status is NEVER stored.  It is derived from outstanding_amount:
      PENDING iff outstanding_amount > 0, else COMPLETED.
    - updated_at is the settlement instant once the record is COMPLETED.

Failure modes:
    - IntegrityError when an outstanding amount outside [0, total] is flushed.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index
from sqlalchemy.ext.hybrid import hybrid_property
from sqlalchemy.orm import Mapped, mapped_column, relationship

from erp_kernel.db.base import Base, UUIDString
from erp_kernel.domain.values import ZERO, PaymentStatus, derive_status


class _SettlementColumns:
    """Amount and timestamp columns shared by receivables and payables."""

    total_amount: Mapped[Decimal] = mapped_column(nullable=False)

    outstanding_amount: Mapped[Decimal] = mapped_column(nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    # Settlement instant once outstanding_amount reaches zero
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    @hybrid_property
    def is_settled(self) -> bool:
        return self.outstanding_amount <= ZERO

    @property
    def status(self) -> PaymentStatus:
        return derive_status(self.outstanding_amount)


class ReceivableModel(_SettlementColumns, Base):
    """Money a customer owes for one sales invoice."""

    __tablename__ = "accounts_receivable"

    __table_args__ = (
        CheckConstraint("outstanding_amount >= 0", name="ck_ar_outstanding_non_negative"),
        CheckConstraint("outstanding_amount <= total_amount", name="ck_ar_outstanding_le_total"),
        Index("idx_ar_updated_at", "updated_at"),
    )

    invoice_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("invoices.id"),
        nullable=False,
        unique=True,
    )

    party_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("parties.id"),
        nullable=False,
    )

    invoice: Mapped["InvoiceModel"] = relationship()  # noqa: F821
    party: Mapped["PartyModel"] = relationship()  # noqa: F821

    def __repr__(self) -> str:
        return f"<Receivable {self.outstanding_amount}/{self.total_amount} {self.status.value}>"


class PayableModel(_SettlementColumns, Base):
    """Money owed to a supplier for one purchased batch."""

    __tablename__ = "accounts_payable"

    __table_args__ = (
        CheckConstraint("outstanding_amount >= 0", name="ck_ap_outstanding_non_negative"),
        CheckConstraint("outstanding_amount <= total_amount", name="ck_ap_outstanding_le_total"),
        Index("idx_ap_updated_at", "updated_at"),
    )

    batch_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("batches.id"),
        nullable=False,
        unique=True,
    )

    party_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("parties.id"),
        nullable=False,
    )

    batch: Mapped["BatchModel"] = relationship()  # noqa: F821
    party: Mapped["PartyModel"] = relationship()  # noqa: F821

    def __repr__(self) -> str:
        return f"<Payable {self.outstanding_amount}/{self.total_amount} {self.status.value}>"
