"""
erp_engines.ledger -- Ledger projector.

Responsibility:
    Reconstruct a double-entry general ledger from flat single-entry
    business events.  Every event maps to one balanced debit/credit pair
    against a fixed chart of accounts.  The ledger is never stored; it is
    recomputed from an EventWindow snapshot on every call.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Each event emits exactly one debit row and one credit row of the same
      amount, so sum(debit) == sum(credit) over the unfiltered projection.
    - Rows are ordered by date. Rows sharing an instant keep build order
      (stable sort): sales invoices with their COGS rows, then receivable
      settlements, purchases, payable settlements and finally expenses.
      Within one kind they follow the selector order (date, then invoice
      number, batch sequence or creation order).
    - The account filter is applied after projection and never alters the
      unfiltered totals.

    Event                           Debit                 Credit
    ------------------------------  --------------------  -------------------
    Sales invoice                   Accounts Receivable   Sales
    Sales line with cogs_total > 0  Cost of Goods Sold    Inventory
    Receivable settled in window    Cash / Bank           Accounts Receivable
    Payable created in window       Inventory             Accounts Payable
    Payable settled in window       Accounts Payable      Cash / Bank
    Expense in window               Expense: {category}   Cash / Bank
                                    (Interest Expense for the interest
                                    category)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from erp_engines.tracer import traced_engine
from erp_kernel.domain.snapshots import EventWindow
from erp_kernel.domain.values import ZERO
from erp_kernel.logging_config import get_logger

logger = get_logger("engines.ledger")

DEFAULT_INTEREST_CATEGORY = "Interest on Loans"
EXPENSE_ACCOUNT_PREFIX = "Expense: "


class LedgerAccount(str, Enum):
    """Fixed chart of accounts used by the projector."""

    ACCOUNTS_RECEIVABLE = "Accounts Receivable"
    SALES = "Sales"
    COST_OF_GOODS_SOLD = "Cost of Goods Sold"
    INVENTORY = "Inventory"
    CASH_BANK = "Cash / Bank"
    ACCOUNTS_PAYABLE = "Accounts Payable"
    INTEREST_EXPENSE = "Interest Expense"


@dataclass(frozen=True, slots=True)
class LedgerRow:
    """One derived ledger line.  Exactly one of debit/credit is non-zero."""

    date: datetime
    account: str
    debit: Decimal
    credit: Decimal
    reference: str


@dataclass(frozen=True, slots=True)
class AccountSummary:
    account: str
    debit_total: Decimal
    credit_total: Decimal

    @property
    def balance(self) -> Decimal:
        """Debit-positive net."""
        return self.debit_total - self.credit_total


def expense_account(category: str, interest_category: str = DEFAULT_INTEREST_CATEGORY) -> str:
    """Ledger account an expense category posts to."""
    if category == interest_category:
        return LedgerAccount.INTEREST_EXPENSE.value
    return f"{EXPENSE_ACCOUNT_PREFIX}{category}"


def _pair(
    when: datetime,
    debit_account: str,
    credit_account: str,
    amount: Decimal,
    reference: str,
) -> tuple[LedgerRow, LedgerRow]:
    return (
        LedgerRow(date=when, account=debit_account, debit=amount, credit=ZERO, reference=reference),
        LedgerRow(date=when, account=credit_account, debit=ZERO, credit=amount, reference=reference),
    )


@traced_engine("ledger_projector", "1.0", fingerprint_fields=("account",))
def project_ledger(
    events: EventWindow,
    account: str | None = None,
    interest_category: str = DEFAULT_INTEREST_CATEGORY,
) -> tuple[LedgerRow, ...]:
    """
    Project an event window into ledger rows.

    Args:
        events: Snapshot of every event in the window.
        account: Optional account name; only rows for it are returned.
        interest_category: Expense category reported as Interest Expense.

    Returns:
        Rows sorted by date; same-instant rows grouped by event kind in the
        order given in the module docstring.
    """
    rows: list[LedgerRow] = []

    for invoice in events.sales_invoices:
        rows.extend(_pair(
            invoice.invoice_date,
            LedgerAccount.ACCOUNTS_RECEIVABLE.value,
            LedgerAccount.SALES.value,
            invoice.total_amount,
            f"Invoice: {invoice.invoice_number}",
        ))
        for line in invoice.lines:
            if line.cogs_total > ZERO:
                rows.extend(_pair(
                    invoice.invoice_date,
                    LedgerAccount.COST_OF_GOODS_SOLD.value,
                    LedgerAccount.INVENTORY.value,
                    line.cogs_total,
                    f"COGS for {invoice.invoice_number}",
                ))

    for receivable in events.receivables_settled:
        rows.extend(_pair(
            receivable.updated_at,
            LedgerAccount.CASH_BANK.value,
            LedgerAccount.ACCOUNTS_RECEIVABLE.value,
            receivable.total_amount,
            f"Payment for {receivable.reference}",
        ))

    for purchase in events.purchases:
        rows.extend(_pair(
            purchase.created_at,
            LedgerAccount.INVENTORY.value,
            LedgerAccount.ACCOUNTS_PAYABLE.value,
            purchase.total_amount,
            f"Purchase Batch: {purchase.reference}",
        ))

    for payable in events.payables_settled:
        rows.extend(_pair(
            payable.updated_at,
            LedgerAccount.ACCOUNTS_PAYABLE.value,
            LedgerAccount.CASH_BANK.value,
            payable.total_amount,
            f"Payment to Supplier for {payable.reference}",
        ))

    for expense in events.expenses:
        rows.extend(_pair(
            expense.expense_date,
            expense_account(expense.category, interest_category),
            LedgerAccount.CASH_BANK.value,
            expense.amount,
            f"Expense: {expense.title}",
        ))

    rows.sort(key=lambda r: r.date)

    if account is not None:
        filtered = tuple(r for r in rows if r.account == account)
        logger.debug("ledger_filtered", extra={
            "account": account,
            "total_rows": len(rows),
            "filtered_rows": len(filtered),
        })
        return filtered

    return tuple(rows)


def ledger_totals(rows: tuple[LedgerRow, ...] | list[LedgerRow]) -> tuple[Decimal, Decimal]:
    """(sum of debits, sum of credits)."""
    debit = sum((r.debit for r in rows), ZERO)
    credit = sum((r.credit for r in rows), ZERO)
    return debit, credit


def summarize_accounts(rows: tuple[LedgerRow, ...] | list[LedgerRow]) -> tuple[AccountSummary, ...]:
    """Per-account debit and credit totals, accounts in first-seen order."""
    totals: dict[str, list[Decimal]] = {}
    for row in rows:
        pair = totals.setdefault(row.account, [ZERO, ZERO])
        pair[0] += row.debit
        pair[1] += row.credit
    return tuple(
        AccountSummary(account=name, debit_total=d, credit_total=c)
        for name, (d, c) in totals.items()
    )
