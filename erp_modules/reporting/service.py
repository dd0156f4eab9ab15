"""
Reporting Module Service (``erp_modules.reporting.service``).

Responsibility
--------------
Orchestrates report generation -- general ledger, trial balance, balance
sheet, cash flow, profit & loss, reconciliation, alerts, aging, exception
report, stock summary, party performance and financial health -- by
bridging the kernel selectors (``EventSelector``, ``InventorySelector``) to
the pure functions in ``statements.py`` and the engines.  This is a **read-only** service.

Architecture position
---------------------
**Modules layer** -- thin glue.  Constructor: ``session`` + ``clock`` +
``config``.

Invariants enforced
-------------------
* Read-only -- nothing is written, cached or materialized; every call
  recomputes from the record store.
* All monetary amounts use ``Decimal`` -- NEVER ``float``.
* Report metadata carries the generation timestamp from the injected clock.

Failure modes
-------------
* Invalid cutoff or window  -> ``InvalidPeriodError`` before any query.
* Record store unreachable  -> ``StoreUnavailableError`` from the selector.
* No data in range  -> zero-valued report.
"""

from __future__ import annotations

from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from erp_engines.alerts import evaluate_alerts
from erp_kernel.domain.clock import Clock, SystemClock
from erp_kernel.domain.period import ReportingWindow, as_utc
from erp_kernel.domain.values import ZERO, PartyType
from erp_kernel.exceptions import InvalidInputError, InvalidPeriodError
from erp_kernel.logging_config import get_logger
from erp_kernel.selectors.event_selector import EventSelector
from erp_kernel.selectors.inventory_selector import InventorySelector
from erp_modules.reporting.config import ReportingConfig
from erp_modules.reporting.models import (
    AgingReport,
    AlertReport,
    BalanceSheetReport,
    CashFlowReport,
    ExceptionReport,
    FinancialHealthReport,
    GeneralLedgerReport,
    PartyPerformanceReport,
    ProfitAndLossReport,
    ReconciliationReport,
    ReportMetadata,
    ReportType,
    StockSummaryReport,
    TrialBalanceReport,
)
from erp_modules.reporting.statements import (
    build_aging,
    build_alert_report,
    build_balance_sheet,
    build_cash_flow,
    build_exception_report,
    build_financial_health,
    build_general_ledger,
    build_party_performance,
    build_profit_and_loss,
    build_reconciliation,
    build_stock_summary,
    build_trial_balance,
    render_to_dict,
)

logger = get_logger("modules.reporting.service")


def _require_instant(value: object, name: str = "as_of") -> datetime:
    if not isinstance(value, datetime):
        raise InvalidPeriodError(f"{name} must be a datetime, got {type(value).__name__}")
    return as_utc(value)


def _require_window(window: object) -> ReportingWindow:
    if not isinstance(window, ReportingWindow):
        raise InvalidPeriodError(
            f"window must be a ReportingWindow, got {type(window).__name__}"
        )
    return window


class ReportingService:
    """
    Report generation service.

    Contract
    --------
    * Every public method returns a typed report DTO.
    * All methods are **read-only**.

    Guarantees
    ----------
    * Report arithmetic lives in ``statements.py`` and the engines; this
      class only loads snapshots and stamps metadata.
    * Clock is injectable for deterministic testing.
    * Two calls over an unchanged store return equal reports apart from
      ``metadata.generated_at``.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._events = EventSelector(session)
        self._inventory = InventorySelector(session)

        logger.info(
            "reporting_service_initialized",
            extra={
                "entity_name": self._config.entity_name,
                "default_currency": self._config.default_currency,
            },
        )

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _build_metadata(
        self,
        report_type: ReportType,
        as_of: datetime | None = None,
        window: ReportingWindow | None = None,
    ) -> ReportMetadata:
        """Build report metadata with injected clock timestamp."""
        return ReportMetadata(
            report_type=report_type,
            entity_name=self._config.entity_name,
            currency=self._config.default_currency,
            generated_at=self._clock.now().isoformat(),
            as_of=as_of,
            period_start=window.start if window else None,
            period_end=window.end if window else None,
        )

    # =========================================================================
    # Ledger and statements
    # =========================================================================

    def general_ledger(
        self,
        window: ReportingWindow,
        account: str | None = None,
    ) -> GeneralLedgerReport:
        """
        Project the double-entry ledger for a window.

        Args:
            window: Half-open reporting window.
            account: Optional account name to filter rows by.
        """
        window = _require_window(window)
        events = self._events.list_events_in_window(window)
        report = build_general_ledger(
            self._build_metadata(ReportType.GENERAL_LEDGER, window=window),
            events,
            account=account,
            interest_category=self._config.interest_category,
        )

        if not report.is_balanced:
            logger.warning("general_ledger_unbalanced", extra={
                "period": window.label,
                "total_debit": str(report.total_debit),
                "total_credit": str(report.total_credit),
            })
        logger.info("general_ledger_generated", extra={
            "period": window.label,
            "account": account,
            "row_count": len(report.rows),
        })
        return report

    def trial_balance(self, as_of: datetime) -> TrialBalanceReport:
        """Party and expense-category balances up to ``as_of`` inclusive."""
        cutoff = _require_instant(as_of)
        report = build_trial_balance(
            self._build_metadata(ReportType.TRIAL_BALANCE, as_of=cutoff),
            self._events.party_transactions(cutoff),
            self._events.expenses_through(cutoff),
            tolerance=self._config.balance_tolerance,
            interest_category=self._config.interest_category,
        )

        if not report.is_balanced:
            logger.warning("trial_balance_mismatch", extra={
                "as_of": cutoff.isoformat(),
                "difference": str(report.difference),
            })
        logger.info("trial_balance_generated", extra={
            "as_of": cutoff.isoformat(),
            "line_count": len(report.lines),
            "is_balanced": report.is_balanced,
        })
        return report

    def balance_sheet(self, as_of: datetime) -> BalanceSheetReport:
        """Assets, liabilities and equity at ``as_of`` inclusive."""
        cutoff = _require_instant(as_of)
        report = build_balance_sheet(
            self._build_metadata(ReportType.BALANCE_SHEET, as_of=cutoff),
            self._events.cash_position(cutoff),
            self._events.list_outstanding(cutoff),
            self._inventory.inventory_as_of(cutoff),
        )

        logger.info("balance_sheet_generated", extra={
            "as_of": cutoff.isoformat(),
            "total_assets": str(report.total_assets),
            "total_liabilities": str(report.total_liabilities),
        })
        return report

    def cash_flow(self, window: ReportingWindow) -> CashFlowReport:
        window = _require_window(window)
        report = build_cash_flow(
            self._build_metadata(ReportType.CASH_FLOW, window=window),
            self._events.list_events_in_window(window),
            interest_category=self._config.interest_category,
        )

        logger.info("cash_flow_generated", extra={
            "period": window.label,
            "net_cash_flow": str(report.net_cash_flow),
        })
        return report

    def profit_and_loss(self, window: ReportingWindow) -> ProfitAndLossReport:
        window = _require_window(window)
        report = build_profit_and_loss(
            self._build_metadata(ReportType.PROFIT_AND_LOSS, window=window),
            self._events.list_events_in_window(window),
            interest_category=self._config.interest_category,
        )

        logger.info("profit_and_loss_generated", extra={
            "period": window.label,
            "net_profit": str(report.net_profit),
        })
        return report

    def reconciliation(self, window: ReportingWindow) -> ReconciliationReport:
        """
        Explain the gap between accrual profit and cash flow for a window.

        Both statements are built from one event snapshot so they cannot
        disagree about what happened in the window.
        """
        window = _require_window(window)
        events = self._events.list_events_in_window(window)
        pnl = build_profit_and_loss(
            self._build_metadata(ReportType.PROFIT_AND_LOSS, window=window),
            events,
            interest_category=self._config.interest_category,
        )
        cash = build_cash_flow(
            self._build_metadata(ReportType.CASH_FLOW, window=window),
            events,
            interest_category=self._config.interest_category,
        )
        report = build_reconciliation(
            self._build_metadata(ReportType.RECONCILIATION, window=window),
            pnl,
            cash,
            tolerance=self._config.balance_tolerance,
        )

        if not report.is_fully_explained:
            logger.warning("reconciliation_residual", extra={
                "period": window.label,
                "residual": str(report.unexplained_residual),
            })
        logger.info("reconciliation_generated", extra={
            "period": window.label,
            "net_profit": str(report.net_profit),
            "net_cash_flow": str(report.net_cash_flow),
        })
        return report

    # =========================================================================
    # Operational reports
    # =========================================================================

    def alerts(self, now: datetime | None = None) -> AlertReport:
        """Expiry and low-stock alerts at ``now`` (defaults to the clock)."""
        instant = self._clock.now() if now is None else _require_instant(now, "now")
        result = evaluate_alerts(self._inventory.list_stock(), instant)
        report = build_alert_report(
            self._build_metadata(ReportType.ALERTS, as_of=as_utc(instant)),
            result,
            instant,
        )

        logger.info("alerts_generated", extra={
            "evaluated_at": as_utc(instant).isoformat(),
            "total_alerts": report.total_alerts,
        })
        return report

    def aging(self, as_of: datetime | None = None) -> AgingReport:
        """Credit-risk aging of receivables and payables open at ``as_of``."""
        cutoff = as_utc(self._clock.now()) if as_of is None else _require_instant(as_of)
        report = build_aging(
            self._build_metadata(ReportType.AGING, as_of=cutoff),
            self._events.list_outstanding(cutoff),
            buckets=self._config.aging.buckets(),
        )

        logger.info("aging_generated", extra={
            "as_of": cutoff.isoformat(),
            "receivable_count": len(report.receivables),
            "payable_count": len(report.payables),
        })
        return report

    def exception_report(self, window: ReportingWindow) -> ExceptionReport:
        """
        Compare ``window`` with the calendar month before it and list
        long-pending receivables.

        Receivables are judged at the earlier of the clock and the last
        instant of the window. A window in the first supported month has no
        previous month; its previous totals are zero, so no comparison fires.
        """
        window = _require_window(window)
        as_of = min(as_utc(self._clock.now()), window.end - timedelta(microseconds=1))

        try:
            previous = window.previous_month()
        except InvalidPeriodError:
            previous = None
        previous_expenses = self._events.expenses_in(previous) if previous is not None else ()
        previous_sales = self._events.sales_total_in(previous) if previous is not None else ZERO

        report = build_exception_report(
            self._build_metadata(ReportType.EXCEPTIONS, as_of=as_of, window=window),
            current_expenses=self._events.expenses_in(window),
            previous_expenses=previous_expenses,
            current_sales=self._events.sales_total_in(window),
            previous_sales=previous_sales,
            outstanding=self._events.list_outstanding(as_of),
            thresholds=self._config.exceptions,
        )

        logger.info("exception_report_generated", extra={
            "period": window.label,
            "exception_count": len(report.items),
        })
        return report

    def party_performance(
        self,
        window: ReportingWindow,
        party_type: PartyType | str = PartyType.CUSTOMER,
    ) -> PartyPerformanceReport:
        """
        Per-party totals and average payment delay for documents in ``window``.

        Open documents are aged to the clock.
        """
        window = _require_window(window)
        try:
            party_type = PartyType(party_type)
        except ValueError as exc:
            raise InvalidInputError(f"Unknown party type: {party_type!r}") from exc
        now = as_utc(self._clock.now())

        report = build_party_performance(
            self._build_metadata(ReportType.PARTY_PERFORMANCE, as_of=now, window=window),
            party_type,
            self._events.party_activity(window, party_type),
            now,
        )

        logger.info("party_performance_generated", extra={
            "period": window.label,
            "party_type": party_type.value,
            "party_count": len(report.lines),
        })
        return report

    def financial_health(self, window: ReportingWindow) -> FinancialHealthReport:
        """Sales, expenses and open balances for a window; balances at its last instant."""
        window = _require_window(window)
        cutoff = window.end - timedelta(microseconds=1)

        report = build_financial_health(
            self._build_metadata(ReportType.FINANCIAL_HEALTH, as_of=cutoff, window=window),
            self._events.sales_total_in(window),
            self._events.expenses_in(window),
            self._events.list_outstanding(cutoff),
        )

        logger.info("financial_health_generated", extra={
            "period": window.label,
            "net_profit_loss": str(report.net_profit_loss),
            "net_outstanding": str(report.net_outstanding),
        })
        return report

    def stock_summary(self) -> StockSummaryReport:
        """Stock from stock transactions next to the batch quantity sum."""
        report = build_stock_summary(
            self._build_metadata(ReportType.STOCK_SUMMARY, as_of=as_utc(self._clock.now())),
            self._inventory.stock_movements(),
        )

        if report.has_drift:
            logger.warning("stock_drift_detected", extra={
                "products": [line.product_name for line in report.lines if line.drift],
            })
        logger.info("stock_summary_generated", extra={"product_count": len(report.lines)})
        return report

    # =========================================================================
    # Rendering
    # =========================================================================

    def to_dict(self, report: object) -> dict:
        """Render any report to a JSON-friendly dict at the configured precision."""
        return render_to_dict(report, self._config.display_precision)
