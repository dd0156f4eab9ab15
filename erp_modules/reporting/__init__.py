"""
Reporting Module (``erp_modules.reporting``).

Responsibility
--------------
Read-only module that derives every accounting view from the flat
single-entry records: general ledger, trial balance, balance sheet,
cash flow, profit & loss, accrual-vs-cash reconciliation, plus the
operational alert, aging, exception and stock summary reports.

Architecture position
---------------------
**Modules layer** -- pure builders in ``statements.py``; the
``ReportingService`` loads snapshots through the kernel selectors.

Invariants enforced
-------------------
* No ledger is stored; every report is recomputed on request.
* Rounding happens only when a report is rendered.
"""

from erp_modules.reporting.config import (
    AgingThresholds,
    ExceptionThresholds,
    GstSettings,
    ReportingConfig,
)
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
    GeneralLedgerReport,
    ProfitAndLossReport,
    ReconciliationAdjustment,
    ReconciliationReport,
    ReportMetadata,
    ReportType,
    StockSummaryLine,
    StockSummaryReport,
    TrialBalanceLine,
    TrialBalanceReport,
    TrialBalanceStatus,
)
from erp_modules.reporting.service import ReportingService
from erp_modules.reporting.statements import render_to_dict

__all__ = [
    # Service
    "ReportingService",
    # Config
    "AgingThresholds",
    "ExceptionThresholds",
    "GstSettings",
    "ReportingConfig",
    # Models
    "AgingReport",
    "AlertReport",
    "BalanceSheetReport",
    "BalanceSide",
    "CashFlowLine",
    "CashFlowReport",
    "ExceptionItem",
    "ExceptionKind",
    "ExceptionReport",
    "ExpenseCategoryLine",
    "GeneralLedgerReport",
    "ProfitAndLossReport",
    "ReconciliationAdjustment",
    "ReconciliationReport",
    "ReportMetadata",
    "ReportType",
    "StockSummaryLine",
    "StockSummaryReport",
    "TrialBalanceLine",
    "TrialBalanceReport",
    "TrialBalanceStatus",
    # Rendering
    "render_to_dict",
]
