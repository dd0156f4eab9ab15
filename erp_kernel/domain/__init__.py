"""
Pure domain layer.

Value rules, reporting windows, the clock abstraction and the frozen
snapshots consumed by the engines. Nothing here touches SQLAlchemy or I/O.
"""

from erp_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from erp_kernel.domain.period import ReportingWindow, as_utc, month_end_cutoff
from erp_kernel.domain.snapshots import (
    BatchRecord,
    CashPosition,
    EventWindow,
    ExpenseRecord,
    InventoryPosition,
    OutstandingBalances,
    PartyTransactionRecord,
    ProductRecord,
    ProductStock,
    SalesInvoiceRecord,
    SalesLineRecord,
    SettlementRecord,
    StockMovementRecord,
)
from erp_kernel.domain.values import (
    DEFAULT_CURRENCY,
    ZERO,
    EntrySide,
    InvoiceType,
    PartyType,
    PaymentStatus,
    StockDirection,
    derive_status,
    round_money,
    to_decimal,
    validate_amount,
    validate_quantity,
)

__all__ = [
    "Clock",
    "SystemClock",
    "DeterministicClock",
    "ReportingWindow",
    "as_utc",
    "month_end_cutoff",
    "BatchRecord",
    "CashPosition",
    "EventWindow",
    "ExpenseRecord",
    "InventoryPosition",
    "OutstandingBalances",
    "PartyTransactionRecord",
    "ProductRecord",
    "ProductStock",
    "SalesInvoiceRecord",
    "SalesLineRecord",
    "SettlementRecord",
    "StockMovementRecord",
    "DEFAULT_CURRENCY",
    "ZERO",
    "EntrySide",
    "InvoiceType",
    "PartyType",
    "PaymentStatus",
    "StockDirection",
    "derive_status",
    "round_money",
    "to_decimal",
    "validate_amount",
    "validate_quantity",
]
