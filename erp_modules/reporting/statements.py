"""
Pure statement aggregation functions.

These functions turn selector snapshots into the report dataclasses in
``models.py``. ZERO I/O. ZERO side effects.

All monetary values are Decimal at full precision; the only rounding in
this module happens in ``render_to_dict``.

Functions in this module follow the erp_engines purity convention:
- No database access
- No clock access (``as_of`` / metadata timestamps are parameters)
- Deterministic: same inputs always produce same outputs
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from uuid import UUID

from erp_engines.aging import (
    CREDIT_RISK_BUCKETS,
    AgeBucket,
    AgingCalculator,
    exposure_by_counterparty,
    total_by_bucket,
)
from erp_engines.alerts import AlertSet
from erp_engines.ledger import (
    DEFAULT_INTEREST_CATEGORY,
    expense_account,
    ledger_totals,
    project_ledger,
    summarize_accounts,
)
from erp_kernel.domain.period import as_utc
from erp_kernel.domain.snapshots import (
    CashPosition,
    EventWindow,
    ExpenseRecord,
    InventoryPosition,
    OutstandingBalances,
    PartyActivity,
    PartyDocumentRecord,
    PartyTransactionRecord,
    StockMovementRecord,
)
from erp_kernel.domain.values import ZERO, EntrySide, PartyType, round_money
from erp_modules.reporting.config import ExceptionThresholds
from erp_modules.reporting.models import (
    AgingReport,
    AlertReport,
    BalanceSheetReport,
    BalanceSide,
    CashFlowLine,
    CashFlowReport,
    ExceptionItem,
    ExceptionKind,
    ExceptionReport,
    ExpenseCategoryLine,
    FinancialHealthReport,
    GeneralLedgerReport,
    PartyPerformanceLine,
    PartyPerformanceReport,
    ProfitAndLossReport,
    ReconciliationAdjustment,
    ReconciliationReport,
    ReportMetadata,
    StockSummaryLine,
    StockSummaryReport,
    TrialBalanceLine,
    TrialBalanceReport,
    TrialBalanceStatus,
)

DEFAULT_TOLERANCE = Decimal("0.01")
_HUNDRED = Decimal("100")
_DAY = timedelta(days=1)

CREDIT_SALES_IMPACT = "Credit Sales Impact (Receivables)"
INVENTORY_PAYABLES_TIMING = "Inventory & Payables Timing"
LOAN_PRINCIPAL_MOVEMENTS = "Loan Principal Movements"
UNEXPLAINED_RESIDUAL = "Unexplained Residual"


# =========================================================================
# 1. GENERAL LEDGER
# =========================================================================


def build_general_ledger(
    metadata: ReportMetadata,
    events: EventWindow,
    account: str | None = None,
    interest_category: str = DEFAULT_INTEREST_CATEGORY,
) -> GeneralLedgerReport:
    """
    Project the window and optionally restrict the rows to one account.

    Totals and per-account summaries always cover the unfiltered
    projection, so a filtered report still shows whether the ledger
    balances.
    """
    all_rows = project_ledger(events, interest_category=interest_category)
    total_debit, total_credit = ledger_totals(all_rows)

    rows = all_rows
    if account is not None:
        rows = tuple(r for r in all_rows if r.account == account)

    return GeneralLedgerReport(
        metadata=metadata,
        rows=rows,
        account_filter=account,
        total_debit=total_debit,
        total_credit=total_credit,
        accounts=summarize_accounts(all_rows),
    )


# =========================================================================
# 2. TRIAL BALANCE
# =========================================================================


def _party_lines(
    transactions: Iterable[PartyTransactionRecord],
) -> list[TrialBalanceLine]:
    grouped: dict[str, list] = {}
    for txn in transactions:
        entry = grouped.setdefault(txn.party_id, [txn.party_name, txn.party_type, ZERO, ZERO])
        if txn.side is EntrySide.DEBIT:
            entry[2] += txn.amount
        else:
            entry[3] += txn.amount

    lines = []
    for name, party_type, debit, credit in grouped.values():
        net = debit - credit
        lines.append(TrialBalanceLine(
            account_name=name,
            account_kind=party_type.value,
            debit=debit,
            credit=credit,
            closing_balance=abs(net),
            side=BalanceSide.DR if net >= ZERO else BalanceSide.CR,
        ))
    return lines


def _expense_lines(
    expenses: Iterable[ExpenseRecord],
    interest_category: str,
) -> list[TrialBalanceLine]:
    by_category: dict[str, Decimal] = {}
    for expense in expenses:
        by_category[expense.category] = by_category.get(expense.category, ZERO) + expense.amount

    return [
        TrialBalanceLine(
            account_name=expense_account(category, interest_category),
            account_kind="EXPENSE",
            debit=amount,
            credit=ZERO,
            closing_balance=amount,
            side=BalanceSide.DR,
        )
        for category, amount in sorted(by_category.items())
    ]


def build_trial_balance(
    metadata: ReportMetadata,
    party_transactions: Sequence[PartyTransactionRecord],
    expenses: Sequence[ExpenseRecord],
    tolerance: Decimal = DEFAULT_TOLERANCE,
    interest_category: str = DEFAULT_INTEREST_CATEGORY,
) -> TrialBalanceReport:
    """
    Per-party debit/credit totals plus one debit line per expense category.

    Expense lines use the ledger account names, so the interest category
    appears as Interest Expense. Totals are the raw sums of the line debits
    and credits. A mismatch is reported through ``status``; nothing is
    adjusted to force a balance.
    """
    lines = _party_lines(party_transactions) + _expense_lines(expenses, interest_category)

    total_debit = sum((line.debit for line in lines), ZERO)
    total_credit = sum((line.credit for line in lines), ZERO)
    difference = total_debit - total_credit
    is_balanced = abs(difference) < tolerance

    return TrialBalanceReport(
        metadata=metadata,
        lines=tuple(lines),
        total_debit=total_debit,
        total_credit=total_credit,
        difference=difference,
        is_balanced=is_balanced,
        status=TrialBalanceStatus.BALANCED if is_balanced else TrialBalanceStatus.MISMATCH,
    )


# =========================================================================
# 3. BALANCE SHEET
# =========================================================================


def build_balance_sheet(
    metadata: ReportMetadata,
    cash_position: CashPosition,
    outstanding: OutstandingBalances,
    inventory: InventoryPosition,
) -> BalanceSheetReport:
    """
    Assets, liabilities and plug equity at a cutoff.

    Cash is a proxy built from cumulative collections, supplier payments
    and expenses. Loans are not tracked and always report zero.
    """
    cash = cash_position.cash
    receivables = outstanding.receivables_total
    inventory_value = inventory.value
    total_assets = cash + receivables + inventory_value

    payables = outstanding.payables_total
    loans = ZERO
    total_liabilities = payables + loans

    equity = total_assets - total_liabilities

    return BalanceSheetReport(
        metadata=metadata,
        cash_bank=cash,
        accounts_receivable=receivables,
        inventory_value=inventory_value,
        total_assets=total_assets,
        accounts_payable=payables,
        loans=loans,
        total_liabilities=total_liabilities,
        retained_earnings=equity,
        total_equity=equity,
        total_liabilities_and_equity=total_liabilities + equity,
    )


# =========================================================================
# 4. CASH FLOW
# =========================================================================


def _split_expenses(
    expenses: Iterable[ExpenseRecord],
    interest_category: str,
) -> tuple[Decimal, Decimal]:
    """(operating expenses, interest expenses)."""
    operating = ZERO
    interest = ZERO
    for expense in expenses:
        if expense.category == interest_category:
            interest += expense.amount
        else:
            operating += expense.amount
    return operating, interest


def build_cash_flow(
    metadata: ReportMetadata,
    events: EventWindow,
    interest_category: str = DEFAULT_INTEREST_CATEGORY,
) -> CashFlowReport:
    """
    Cash-basis movements for the window.

    Receipts and supplier payments are timed by settlement, never by the
    invoice or purchase date. Interest is a financing outflow and is kept
    out of operating activities.
    """
    received = sum((r.total_amount for r in events.receivables_settled), ZERO)
    paid = sum((p.total_amount for p in events.payables_settled), ZERO)
    operating_expenses, interest = _split_expenses(events.expenses, interest_category)

    operating_lines = (
        CashFlowLine("Cash received from customers", received),
        CashFlowLine("Cash paid to suppliers", -paid),
        CashFlowLine("Cash paid for operating expenses", -operating_expenses),
    )
    financing_lines = (
        CashFlowLine("Interest paid", -interest),
        CashFlowLine(LOAN_PRINCIPAL_MOVEMENTS, ZERO),
    )
    investing_lines: tuple[CashFlowLine, ...] = ()

    net_operating = sum((line.amount for line in operating_lines), ZERO)
    net_financing = sum((line.amount for line in financing_lines), ZERO)
    net_investing = sum((line.amount for line in investing_lines), ZERO)

    return CashFlowReport(
        metadata=metadata,
        cash_received_from_customers=received,
        cash_paid_to_suppliers=paid,
        cash_paid_for_expenses=operating_expenses,
        interest_paid=interest,
        operating_lines=operating_lines,
        financing_lines=financing_lines,
        investing_lines=investing_lines,
        net_operating=net_operating,
        net_financing=net_financing,
        net_investing=net_investing,
        net_cash_flow=net_operating + net_financing + net_investing,
    )


# =========================================================================
# 5. PROFIT & LOSS
# =========================================================================


def build_profit_and_loss(
    metadata: ReportMetadata,
    events: EventWindow,
    interest_category: str = DEFAULT_INTEREST_CATEGORY,
) -> ProfitAndLossReport:
    """Accrual-basis revenue, COGS and expenses for the window."""
    revenue = sum((inv.total_amount for inv in events.sales_invoices), ZERO)
    cogs = sum((inv.cogs_total for inv in events.sales_invoices), ZERO)

    by_category: dict[str, Decimal] = {}
    for expense in events.expenses:
        by_category[expense.category] = by_category.get(expense.category, ZERO) + expense.amount

    breakdown = tuple(
        ExpenseCategoryLine(
            category=category,
            account=expense_account(category, interest_category),
            amount=amount,
        )
        for category, amount in sorted(by_category.items())
    )
    expenses = sum(by_category.values(), ZERO)
    gross_profit = revenue - cogs

    return ProfitAndLossReport(
        metadata=metadata,
        revenue=revenue,
        cogs=cogs,
        gross_profit=gross_profit,
        expenses=expenses,
        expense_breakdown=breakdown,
        net_profit=gross_profit - expenses,
        invoice_count=len(events.sales_invoices),
    )


# =========================================================================
# 6. RECONCILIATION
# =========================================================================


def build_reconciliation(
    metadata: ReportMetadata,
    pnl: ProfitAndLossReport,
    cash_flow: CashFlowReport,
    tolerance: Decimal = DEFAULT_TOLERANCE,
) -> ReconciliationReport:
    """
    Bridge accrual net profit to cash net flow.

    Named adjustments explain the timing gaps; whatever they do not explain
    is shown as its own line rather than being absorbed.
    """
    credit_sales = cash_flow.cash_received_from_customers - pnl.revenue
    inventory_timing = pnl.cogs - cash_flow.cash_paid_to_suppliers
    loan_principal = ZERO

    named = (
        ReconciliationAdjustment(
            CREDIT_SALES_IMPACT,
            credit_sales,
            "Cash collected from customers minus revenue invoiced",
        ),
        ReconciliationAdjustment(
            INVENTORY_PAYABLES_TIMING,
            inventory_timing,
            "Cost of goods sold minus cash paid to suppliers",
        ),
        ReconciliationAdjustment(
            LOAN_PRINCIPAL_MOVEMENTS,
            loan_principal,
            "Loan principal is not tracked",
        ),
    )
    explained = sum((a.amount for a in named), ZERO)
    residual = (cash_flow.net_cash_flow - pnl.net_profit) - explained

    adjustments = named + (
        ReconciliationAdjustment(UNEXPLAINED_RESIDUAL, residual, "Difference not covered above"),
    )

    return ReconciliationReport(
        metadata=metadata,
        net_profit=pnl.net_profit,
        net_cash_flow=cash_flow.net_cash_flow,
        adjustments=adjustments,
        unexplained_residual=residual,
        is_fully_explained=abs(residual) <= tolerance,
    )


# =========================================================================
# 7. ALERTS AND AGING
# =========================================================================


def build_alert_report(
    metadata: ReportMetadata,
    alerts: AlertSet,
    evaluated_at: datetime,
) -> AlertReport:
    return AlertReport(
        metadata=metadata,
        evaluated_at=as_utc(evaluated_at),
        expiring_batches=alerts.expiring_batches,
        low_stock_products=alerts.low_stock_products,
    )


def build_aging(
    metadata: ReportMetadata,
    outstanding: OutstandingBalances,
    buckets: Sequence[AgeBucket] = CREDIT_RISK_BUCKETS,
) -> AgingReport:
    """Bucket every receivable and payable still open at ``outstanding.as_of``."""
    calculator = AgingCalculator(buckets)
    receivables = calculator.age_records(outstanding.receivables, outstanding.as_of)
    payables = calculator.age_records(outstanding.payables, outstanding.as_of)

    exposure = sorted(
        exposure_by_counterparty(receivables).items(),
        key=lambda kv: (-kv[1], kv[0]),
    )

    return AgingReport(
        metadata=metadata,
        receivables=receivables,
        payables=payables,
        receivables_by_bucket=tuple(total_by_bucket(receivables, calculator.buckets).items()),
        payables_by_bucket=tuple(total_by_bucket(payables, calculator.buckets).items()),
        customer_exposure=tuple(exposure),
    )


# =========================================================================
# 8. EXCEPTION REPORT
# =========================================================================


def _totals_by_category(expenses: Iterable[ExpenseRecord]) -> dict[str, Decimal]:
    totals: dict[str, Decimal] = {}
    for expense in expenses:
        totals[expense.category] = totals.get(expense.category, ZERO) + expense.amount
    return totals


def _percent_change(current: Decimal, previous: Decimal) -> Decimal:
    return round_money((current - previous) / previous * _HUNDRED)


def build_exception_report(
    metadata: ReportMetadata,
    current_expenses: Sequence[ExpenseRecord],
    previous_expenses: Sequence[ExpenseRecord],
    current_sales: Decimal,
    previous_sales: Decimal,
    outstanding: OutstandingBalances,
    thresholds: ExceptionThresholds | None = None,
) -> ExceptionReport:
    """
    Month-over-month anomalies plus long-pending receivables.

    A previous value of zero never triggers a comparison. Receivables are
    judged against ``outstanding.as_of``.
    """
    thresholds = thresholds or ExceptionThresholds()
    items: list[ExceptionItem] = []

    current = _totals_by_category(current_expenses)
    previous = _totals_by_category(previous_expenses)
    for category in sorted(current):
        curr, prev = current[category], previous.get(category, ZERO)
        if prev > ZERO and curr > prev * thresholds.expense_increase_ratio:
            change = _percent_change(curr, prev)
            items.append(ExceptionItem(
                kind=ExceptionKind.EXPENSE_SPIKE,
                subject=category,
                current_amount=curr,
                previous_amount=prev,
                message=f"{category} expenses up {change}% vs previous month",
            ))

    if previous_sales > ZERO and current_sales < previous_sales * thresholds.sales_drop_ratio:
        change = _percent_change(current_sales, previous_sales)
        items.append(ExceptionItem(
            kind=ExceptionKind.SALES_DROP,
            subject="Sales",
            current_amount=current_sales,
            previous_amount=previous_sales,
            message=f"Sales down {-change}% vs previous month",
        ))

    limit = timedelta(days=thresholds.overdue_receivable_days)
    for receivable in outstanding.receivables:
        amount = receivable.outstanding_as_of(outstanding.as_of)
        if amount <= ZERO:
            continue
        elapsed = outstanding.as_of - receivable.created_at
        if elapsed > limit:
            days = elapsed // timedelta(days=1)
            items.append(ExceptionItem(
                kind=ExceptionKind.OVERDUE_RECEIVABLE,
                subject=receivable.reference,
                current_amount=amount,
                previous_amount=None,
                message=f"{receivable.party_name} owes {round_money(amount)} for {days} days",
            ))

    return ExceptionReport(metadata=metadata, items=tuple(items))


# =========================================================================
# 9. STOCK SUMMARY
# =========================================================================


def build_stock_summary(
    metadata: ReportMetadata,
    movements: Sequence[StockMovementRecord],
) -> StockSummaryReport:
    lines = tuple(
        StockSummaryLine(
            product_id=m.product_id,
            product_name=m.product_name,
            stock_in=m.stock_in,
            stock_out=m.stock_out,
            transaction_stock=m.transaction_stock,
            batch_stock=m.batch_quantity,
            drift=m.batch_quantity - m.transaction_stock,
        )
        for m in movements
    )
    return StockSummaryReport(metadata=metadata, lines=lines)


# =========================================================================
# 10. PARTY PERFORMANCE
# =========================================================================


def _delay_days(document: PartyDocumentRecord, as_of: datetime) -> int:
    """Whole days from the document date to settlement, or to ``as_of`` while open."""
    settled_at = document.settlement.settled_at
    end = settled_at if settled_at is not None else as_of
    return max(0, (end - document.document_date) // _DAY)


def _average_days(total: int, count: int) -> int:
    if count == 0:
        return 0
    return int((Decimal(total) / count).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def build_party_performance(
    metadata: ReportMetadata,
    party_type: PartyType,
    activity: Sequence[PartyActivity],
    as_of: datetime,
) -> PartyPerformanceReport:
    """
    Invoiced total, current outstanding and average payment delay per party.

    Only documents with a settlement row count towards the delay average.
    A party with no documents in the window reports zeros.
    """
    as_of = as_utc(as_of)
    lines = []
    for party in activity:
        total = ZERO
        outstanding = ZERO
        delays: list[int] = []
        for document in party.documents:
            total += document.total_amount
            if document.settlement is None:
                continue
            outstanding += document.settlement.outstanding_amount
            delays.append(_delay_days(document, as_of))

        lines.append(PartyPerformanceLine(
            party_id=party.party_id,
            party_name=party.party_name,
            total_invoiced=total,
            outstanding=outstanding,
            average_delay_days=_average_days(sum(delays), len(delays)),
            document_count=len(party.documents),
        ))

    return PartyPerformanceReport(metadata=metadata, party_type=party_type, lines=tuple(lines))


# =========================================================================
# 11. FINANCIAL HEALTH
# =========================================================================


def build_financial_health(
    metadata: ReportMetadata,
    sales_total: Decimal,
    expenses: Sequence[ExpenseRecord],
    outstanding: OutstandingBalances,
) -> FinancialHealthReport:
    """
    Month KPIs. Net profit/loss is sales minus expenses, without COGS;
    receivable and payable totals are as of ``outstanding.as_of``.
    """
    total_expenses = sum((e.amount for e in expenses), ZERO)
    receivable = outstanding.receivables_total
    payable = outstanding.payables_total

    return FinancialHealthReport(
        metadata=metadata,
        total_sales=sales_total,
        total_expenses=total_expenses,
        net_profit_loss=sales_total - total_expenses,
        total_receivable=receivable,
        total_payable=payable,
        net_outstanding=receivable - payable,
    )


# =========================================================================
# 12. RENDERER (dict/JSON output)
# =========================================================================


def render_to_dict(
    obj: object,
    precision: int = 2,
) -> dict | list | str | int | float | bool | None:
    """
    Convert any report dataclass to a plain dict for JSON serialization.

    Handles:
    - Decimal -> str, rounded half-up to ``precision`` places
    - UUID -> str
    - datetime/date -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, Decimal):
        return str(round_money(obj, precision))
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item, precision) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v, precision) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.name: render_to_dict(getattr(obj, f.name), precision)
            for f in dataclasses.fields(obj)
        }
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
