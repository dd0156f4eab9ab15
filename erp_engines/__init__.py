"""
ERP Engines - pure calculation layer.

Every function here is deterministic and free of I/O: it receives frozen
snapshots from ``erp_kernel.domain.snapshots`` and returns frozen results.

- valuation: FIFO cost allocator
- ledger: derived double-entry ledger projector
- alerts: expiry and low-stock evaluation
- aging: receivable/payable credit-risk buckets
- tax: GST intra/inter-state split
- tracer: ERP_ENGINE_TRACE decorator
"""

from erp_engines.aging import AgeBucket, AgedItem, AgingCalculator, CREDIT_RISK_BUCKETS
from erp_engines.alerts import (
    AlertSet,
    ExpiryAlert,
    ExpiryStatus,
    LowStockAlert,
    evaluate_alerts,
    remaining_days,
)
from erp_engines.ledger import (
    AccountSummary,
    LedgerAccount,
    LedgerRow,
    expense_account,
    ledger_totals,
    project_ledger,
    summarize_accounts,
)
from erp_engines.tax import GST_RATES, GstBreakdown, calculate_gst
from erp_engines.tracer import traced_engine
from erp_engines.valuation import CogsResult, ConsumptionLine, allocate_fifo

__all__ = [
    "AgeBucket",
    "AgedItem",
    "AgingCalculator",
    "CREDIT_RISK_BUCKETS",
    "AlertSet",
    "ExpiryAlert",
    "ExpiryStatus",
    "LowStockAlert",
    "evaluate_alerts",
    "remaining_days",
    "AccountSummary",
    "LedgerAccount",
    "LedgerRow",
    "expense_account",
    "ledger_totals",
    "project_ledger",
    "summarize_accounts",
    "GST_RATES",
    "GstBreakdown",
    "calculate_gst",
    "traced_engine",
    "CogsResult",
    "ConsumptionLine",
    "allocate_fifo",
]
