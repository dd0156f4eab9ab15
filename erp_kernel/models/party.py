"""
Module: erp_kernel.models.party
Responsibility: ORM persistence for customers and suppliers and their party
    ledger transactions (the per-party DEBIT/CREDIT trail).
Architecture position: Kernel > Models.  May import from db/base.py and
    domain/values.py only.

Invariants enforced:
    - party_type is fixed at creation.
    - Party ledger amounts are non-negative; direction is carried by side.
    - A sale debits the customer, a purchase credits the supplier.

Audit relevance:
    The trial balance is built from these rows, grouped per party.
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
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from erp_kernel.db.base import Base, TimestampedBase, UUIDString
from erp_kernel.domain.values import EntrySide, PartyType


class PartyModel(TimestampedBase):
    """A customer or supplier."""

    __tablename__ = "parties"

    __table_args__ = (Index("idx_party_type", "party_type"),)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    party_type: Mapped[PartyType] = mapped_column(
        SAEnum(PartyType, native_enum=False, length=20),
        nullable=False,
    )

    # Used for the intra/inter-state GST split
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)

    transactions: Mapped[list["PartyLedgerTransactionModel"]] = relationship(
        back_populates="party",
        order_by="PartyLedgerTransactionModel.transaction_date",
    )

    def __repr__(self) -> str:
        return f"<Party {self.name} ({self.party_type.value})>"


class PartyLedgerTransactionModel(Base):
    """One DEBIT or CREDIT against a party."""

    __tablename__ = "party_ledger_transactions"

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_party_txn_amount_non_negative"),
        Index("idx_party_txn_party_date", "party_id", "transaction_date"),
    )

    party_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("parties.id"),
        nullable=False,
    )

    side: Mapped[EntrySide] = mapped_column(
        SAEnum(EntrySide, native_enum=False, length=10),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    transaction_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    party: Mapped[PartyModel] = relationship(back_populates="transactions")

    def __repr__(self) -> str:
        return f"<PartyTransaction {self.side.value} {self.amount}>"
