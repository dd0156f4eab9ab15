"""
Financial Reporting Domain Models (``erp_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects for every report the engine produces:
general ledger, trial balance, balance sheet, cash flow, profit & loss,
reconciliation, alerts, aging, exception report, stock summary, party
performance and financial health.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Built by the
pure functions in ``statements.py`` and returned by ``ReportingService``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields are ``Decimal`` at full precision; rounding happens
  only in ``render_to_dict``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from erp_engines.aging import AgedItem
from erp_engines.alerts import ExpiryAlert, LowStockAlert
from erp_engines.ledger import AccountSummary, LedgerRow
from erp_kernel.domain.values import ZERO, PartyType


# =========================================================================
# Enums
# =========================================================================


class ReportType(str, Enum):
    GENERAL_LEDGER = "general_ledger"
    TRIAL_BALANCE = "trial_balance"
    BALANCE_SHEET = "balance_sheet"
    CASH_FLOW = "cash_flow"
    PROFIT_AND_LOSS = "profit_and_loss"
    RECONCILIATION = "reconciliation"
    ALERTS = "alerts"
    AGING = "aging"
    EXCEPTIONS = "exceptions"
    STOCK_SUMMARY = "stock_summary"
    PARTY_PERFORMANCE = "party_performance"
    FINANCIAL_HEALTH = "financial_health"


class TrialBalanceStatus(str, Enum):
    BALANCED = "Balanced"
    MISMATCH = "Mismatch"


class BalanceSide(str, Enum):
    DR = "Dr"
    CR = "Cr"


class ExceptionKind(str, Enum):
    EXPENSE_SPIKE = "EXPENSE_SPIKE"
    SALES_DROP = "SALES_DROP"
    OVERDUE_RECEIVABLE = "OVERDUE_RECEIVABLE"


# =========================================================================
# Report Metadata (common to all reports)
# =========================================================================


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every report."""

    report_type: ReportType
    entity_name: str
    currency: str
    generated_at: str  # ISO format timestamp from injected clock
    as_of: datetime | None = None
    period_start: datetime | None = None
    period_end: datetime | None = None


# =========================================================================
# General Ledger
# =========================================================================


@dataclass(frozen=True)
class GeneralLedgerReport:
    """
    Projected ledger rows for a window.

    ``total_debit`` / ``total_credit`` are over the unfiltered projection
    even when ``account_filter`` restricts ``rows``.
    """

    metadata: ReportMetadata
    rows: tuple[LedgerRow, ...]
    account_filter: str | None
    total_debit: Decimal
    total_credit: Decimal
    accounts: tuple[AccountSummary, ...] = ()

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit


# =========================================================================
# Trial Balance
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceLine:
    """One party or expense-category account."""

    account_name: str
    account_kind: str  # "CUSTOMER", "SUPPLIER" or "EXPENSE"
    debit: Decimal
    credit: Decimal
    closing_balance: Decimal
    side: BalanceSide


@dataclass(frozen=True)
class TrialBalanceReport:
    metadata: ReportMetadata
    lines: tuple[TrialBalanceLine, ...]
    total_debit: Decimal
    total_credit: Decimal
    difference: Decimal
    is_balanced: bool
    status: TrialBalanceStatus


# =========================================================================
# Balance Sheet
# =========================================================================


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Point-in-time position.  Equity is the plug: assets - liabilities.
    """

    metadata: ReportMetadata
    cash_bank: Decimal
    accounts_receivable: Decimal
    inventory_value: Decimal
    total_assets: Decimal
    accounts_payable: Decimal
    loans: Decimal
    total_liabilities: Decimal
    retained_earnings: Decimal
    total_equity: Decimal
    total_liabilities_and_equity: Decimal

    @property
    def is_balanced(self) -> bool:
        return self.total_assets == self.total_liabilities_and_equity


# =========================================================================
# Cash Flow
# =========================================================================


@dataclass(frozen=True)
class CashFlowLine:
    label: str
    amount: Decimal


@dataclass(frozen=True)
class CashFlowReport:
    """Cash-basis movements in a window, by activity."""

    metadata: ReportMetadata
    cash_received_from_customers: Decimal
    cash_paid_to_suppliers: Decimal
    cash_paid_for_expenses: Decimal
    interest_paid: Decimal
    operating_lines: tuple[CashFlowLine, ...]
    financing_lines: tuple[CashFlowLine, ...]
    investing_lines: tuple[CashFlowLine, ...]
    net_operating: Decimal
    net_financing: Decimal
    net_investing: Decimal
    net_cash_flow: Decimal


# =========================================================================
# Profit & Loss
# =========================================================================


@dataclass(frozen=True)
class ExpenseCategoryLine:
    category: str
    account: str
    amount: Decimal


@dataclass(frozen=True)
class ProfitAndLossReport:
    """Accrual-basis results for a window."""

    metadata: ReportMetadata
    revenue: Decimal
    cogs: Decimal
    gross_profit: Decimal
    expenses: Decimal
    expense_breakdown: tuple[ExpenseCategoryLine, ...]
    net_profit: Decimal
    invoice_count: int = 0


# =========================================================================
# Reconciliation
# =========================================================================


@dataclass(frozen=True)
class ReconciliationAdjustment:
    label: str
    amount: Decimal
    description: str = ""


@dataclass(frozen=True)
class ReconciliationReport:
    """
    Explains the gap between accrual net profit and cash net flow.

    net_profit + sum(adjustments incl. residual) == net_cash_flow exactly.
    """

    metadata: ReportMetadata
    net_profit: Decimal
    net_cash_flow: Decimal
    adjustments: tuple[ReconciliationAdjustment, ...]
    unexplained_residual: Decimal
    is_fully_explained: bool

    @property
    def total_adjustments(self) -> Decimal:
        return sum((a.amount for a in self.adjustments), Decimal("0"))


# =========================================================================
# Alerts
# =========================================================================


@dataclass(frozen=True)
class AlertReport:
    metadata: ReportMetadata
    evaluated_at: datetime
    expiring_batches: tuple[ExpiryAlert, ...]
    low_stock_products: tuple[LowStockAlert, ...]

    @property
    def total_alerts(self) -> int:
        return len(self.expiring_batches) + len(self.low_stock_products)


# =========================================================================
# Aging
# =========================================================================


@dataclass(frozen=True)
class AgingReport:
    metadata: ReportMetadata
    receivables: tuple[AgedItem, ...]
    payables: tuple[AgedItem, ...]
    receivables_by_bucket: tuple[tuple[str, Decimal], ...]
    payables_by_bucket: tuple[tuple[str, Decimal], ...]
    customer_exposure: tuple[tuple[str, Decimal], ...]


# =========================================================================
# Exceptions
# =========================================================================


@dataclass(frozen=True)
class ExceptionItem:
    kind: ExceptionKind
    subject: str
    current_amount: Decimal
    previous_amount: Decimal | None
    message: str


@dataclass(frozen=True)
class ExceptionReport:
    metadata: ReportMetadata
    items: tuple[ExceptionItem, ...]

    def of_kind(self, kind: ExceptionKind) -> tuple[ExceptionItem, ...]:
        return tuple(i for i in self.items if i.kind is kind)


# =========================================================================
# Stock Summary
# =========================================================================


@dataclass(frozen=True)
class StockSummaryLine:
    product_id: str
    product_name: str
    stock_in: int
    stock_out: int
    transaction_stock: int
    batch_stock: int
    drift: int  # batch_stock - transaction_stock; non-zero after an oversell


@dataclass(frozen=True)
class StockSummaryReport:
    metadata: ReportMetadata
    lines: tuple[StockSummaryLine, ...]

    @property
    def has_drift(self) -> bool:
        return any(line.drift != 0 for line in self.lines)


# =========================================================================
# Party Performance
# =========================================================================


@dataclass(frozen=True)
class PartyPerformanceLine:
    party_id: str
    party_name: str
    total_invoiced: Decimal
    outstanding: Decimal
    average_delay_days: int
    document_count: int


@dataclass(frozen=True)
class PartyPerformanceReport:
    metadata: ReportMetadata
    party_type: PartyType
    lines: tuple[PartyPerformanceLine, ...]

    @property
    def total_outstanding(self) -> Decimal:
        return sum((line.outstanding for line in self.lines), ZERO)


# =========================================================================
# Financial Health
# =========================================================================


@dataclass(frozen=True)
class FinancialHealthReport:
    """Month KPIs: sales against expenses, and what is owed either way."""

    metadata: ReportMetadata
    total_sales: Decimal
    total_expenses: Decimal
    net_profit_loss: Decimal
    total_receivable: Decimal
    total_payable: Decimal
    net_outstanding: Decimal
