"""
erp_services.settlement_service -- receivable/payable settlement and expenses.

Responsibility:
    Update the outstanding amount on receivables and payables and record
    cash expenses.  These are the only writes that move cash timing: a
    record reaching zero outstanding is settled at ``updated_at``.

Architecture position:
    Services -- thin write path over kernel models.

Invariants enforced:
    - 0 <= outstanding_amount <= total_amount, validated before the write.
    - updated_at is set from the injected clock on every update, so the
      settlement instant is the moment the outstanding amount last changed.
    - Status is never written; it follows from outstanding_amount.

Failure modes:
    - ReceivableNotFoundError / PayableNotFoundError for unknown ids.
    - InvalidAmountError for negative amounts or amounts above the total.
    - StoreUnavailableError when the database is unreachable.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from erp_kernel.domain.clock import Clock, SystemClock
from erp_kernel.domain.period import as_utc
from erp_kernel.domain.values import validate_amount
from erp_kernel.exceptions import (
    InvalidAmountError,
    InvalidInputError,
    PayableNotFoundError,
    ReceivableNotFoundError,
)
from erp_kernel.logging_config import get_logger
from erp_kernel.models.expense import ExpenseModel
from erp_kernel.models.settlement import PayableModel, ReceivableModel
from erp_kernel.selectors.base import store_guard

logger = get_logger("services.settlement")


def _as_uuid(value: str | UUID) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


class SettlementService:
    """
    Settlement updates and expense recording.

    Contract:
        Runs inside the caller's transaction; flushes, never commits.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self._clock = clock or SystemClock()

    # =========================================================================
    # Receivables and payables
    # =========================================================================

    def update_receivable(self, receivable_id: str | UUID, outstanding_amount) -> ReceivableModel:
        """Set what the customer still owes.  Zero settles the receivable."""
        record = self._lock(ReceivableModel, receivable_id)
        if record is None:
            raise ReceivableNotFoundError(str(receivable_id))
        self._apply(record, outstanding_amount, "receivable")
        return record

    def update_payable(self, payable_id: str | UUID, outstanding_amount) -> PayableModel:
        """Set what is still owed to the supplier.  Zero settles the payable."""
        record = self._lock(PayableModel, payable_id)
        if record is None:
            raise PayableNotFoundError(str(payable_id))
        self._apply(record, outstanding_amount, "payable")
        return record

    def _lock(self, model, record_id: str | UUID):
        rid = _as_uuid(record_id)
        if rid is None:
            return None
        with store_guard(f"lock_{model.__tablename__}"):
            return self.session.execute(
                select(model)
                .where(model.id == rid)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()

    def _apply(self, record, outstanding_amount, kind: str) -> None:
        amount = validate_amount(outstanding_amount, "outstanding_amount")
        if amount > record.total_amount:
            raise InvalidAmountError(
                "outstanding_amount",
                outstanding_amount,
                f"exceeds total {record.total_amount}",
            )

        previous = record.outstanding_amount
        record.outstanding_amount = amount
        record.updated_at = as_utc(self._clock.now())
        with store_guard(f"update_{kind}"):
            self.session.flush()

        logger.info(f"{kind}_updated", extra={
            f"{kind}_id": str(record.id),
            "previous_outstanding": str(previous),
            "outstanding": str(amount),
            "status": record.status.value,
        })

    # =========================================================================
    # Expenses
    # =========================================================================

    def record_expense(
        self,
        title: str,
        category: str,
        amount: Decimal | int | str,
        expense_date: datetime | None = None,
        payment_mode: str = "CASH",
    ) -> ExpenseModel:
        """Record a cash expense paid on ``expense_date`` (defaults to the clock)."""
        if not title or not category:
            raise InvalidInputError("Expense title and category are required")
        value = validate_amount(amount, "amount")
        when = self._clock.now() if expense_date is None else expense_date
        if not isinstance(when, datetime):
            raise InvalidInputError(
                f"expense_date must be a datetime, got {type(when).__name__}"
            )

        expense = ExpenseModel(
            title=title,
            category=category,
            amount=value,
            expense_date=as_utc(when),
            payment_mode=payment_mode,
        )
        self.session.add(expense)
        with store_guard("record_expense"):
            self.session.flush()

        logger.info("expense_recorded", extra={
            "expense_id": str(expense.id),
            "category": category,
            "amount": str(value),
        })
        return expense
