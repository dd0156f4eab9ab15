"""
Module: erp_kernel.models.expense
Responsibility: ORM persistence for operating expenses.  Every expense is an
    immediate cash outflow on expense_date.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - amount >= 0 (CHECK constraint).
    - The category "Interest on Loans" (configurable) is reported as
      Interest Expense and as a financing outflow.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from erp_kernel.db.base import TimestampedBase


class ExpenseModel(TimestampedBase):
    __tablename__ = "expenses"

    __table_args__ = (
        CheckConstraint("amount >= 0", name="ck_expense_amount_non_negative"),
        Index("idx_expense_date", "expense_date"),
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    category: Mapped[str] = mapped_column(String(100), nullable=False)

    amount: Mapped[Decimal] = mapped_column(nullable=False)

    expense_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    payment_mode: Mapped[str] = mapped_column(String(50), nullable=False, default="CASH")

    def __repr__(self) -> str:
        return f"<Expense {self.category}: {self.amount}>"
