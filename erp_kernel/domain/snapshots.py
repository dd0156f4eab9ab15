"""
Snapshots -- frozen read models handed from selectors to the pure engines.

Responsibility:
    Immutable DTOs describing the record store at a point in time: batches,
    products, sales invoices, settlements, expenses and party ledger
    transactions. Engines and statement builders only ever see these, never
    ORM instances.

Architecture position:
    Kernel > Domain -- pure data, zero I/O. Produced by
    ``erp_kernel.selectors``; consumed by ``erp_engines`` and
    ``erp_modules.reporting.statements``.

Invariants enforced:
    - Every datetime is aware UTC (selectors normalize before constructing).
    - Collections are tuples so a snapshot is hashable and cannot be
      mutated after a report started reading it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from erp_kernel.domain.period import ReportingWindow
from erp_kernel.domain.values import (
    ZERO,
    EntrySide,
    PartyType,
    PaymentStatus,
    derive_status,
)


# =============================================================================
# Inventory
# =============================================================================


@dataclass(frozen=True, slots=True)
class BatchRecord:
    """One stock lot with its remaining quantity and unit cost."""

    batch_id: str
    product_id: str
    batch_number: str
    quantity: int
    cost_per_item: Decimal
    sequence: int
    received_at: datetime
    expiry_date: datetime | None = None

    @property
    def value(self) -> Decimal:
        return self.cost_per_item * self.quantity


@dataclass(frozen=True, slots=True)
class ProductRecord:
    product_id: str
    name: str
    sku: str
    price: Decimal
    cost: Decimal
    expiry_alert_days: int
    low_stock_alert_qty: int


@dataclass(frozen=True, slots=True)
class ProductStock:
    """A product together with all of its batches, in FIFO order."""

    product: ProductRecord
    batches: tuple[BatchRecord, ...] = ()

    @property
    def total_stock(self) -> int:
        return sum(b.quantity for b in self.batches)


@dataclass(frozen=True, slots=True)
class StockMovementRecord:
    """Per-product stock-transaction totals next to the batch quantity sum."""

    product_id: str
    product_name: str
    stock_in: int
    stock_out: int
    batch_quantity: int

    @property
    def transaction_stock(self) -> int:
        return self.stock_in - self.stock_out


# =============================================================================
# Business events
# =============================================================================


@dataclass(frozen=True, slots=True)
class SalesLineRecord:
    product_id: str
    quantity: int
    price_per_item: Decimal
    subtotal: Decimal
    cogs_total: Decimal = ZERO


@dataclass(frozen=True, slots=True)
class SalesInvoiceRecord:
    invoice_id: str
    invoice_number: str
    invoice_date: datetime
    total_amount: Decimal
    party_name: str = ""
    lines: tuple[SalesLineRecord, ...] = ()

    @property
    def cogs_total(self) -> Decimal:
        return sum((line.cogs_total for line in self.lines), ZERO)


@dataclass(frozen=True, slots=True)
class SettlementRecord:
    """
    A receivable or payable as seen by reports.

    ``reference`` is the invoice number for receivables and the batch
    number for payables. ``updated_at`` doubles as the settlement instant
    once the record is completed.
    """

    record_id: str
    reference: str
    total_amount: Decimal
    outstanding_amount: Decimal
    created_at: datetime
    updated_at: datetime
    party_name: str = ""

    @property
    def status(self) -> PaymentStatus:
        return derive_status(self.outstanding_amount)

    @property
    def is_settled(self) -> bool:
        return self.status is PaymentStatus.COMPLETED

    @property
    def settled_at(self) -> datetime | None:
        return self.updated_at if self.is_settled else None

    def outstanding_as_of(self, cutoff: datetime) -> Decimal:
        """Amount still owed at ``cutoff``; settlements after it are ignored."""
        if self.created_at > cutoff:
            return ZERO
        if self.is_settled and self.updated_at > cutoff:
            return self.total_amount
        return self.outstanding_amount


@dataclass(frozen=True, slots=True)
class ExpenseRecord:
    expense_id: str
    title: str
    category: str
    amount: Decimal
    expense_date: datetime
    payment_mode: str = "CASH"


@dataclass(frozen=True, slots=True)
class PartyTransactionRecord:
    party_id: str
    party_name: str
    party_type: PartyType
    side: EntrySide
    amount: Decimal
    transaction_date: datetime


@dataclass(frozen=True, slots=True)
class PartyDocumentRecord:
    """
    A sales invoice or purchase seen from its party.

    ``settlement`` is the receivable or payable behind the document, or
    None when no settlement row exists for it.
    """

    reference: str
    document_date: datetime
    total_amount: Decimal
    settlement: SettlementRecord | None = None


@dataclass(frozen=True, slots=True)
class PartyActivity:
    """One party with the documents dated in a reporting window."""

    party_id: str
    party_name: str
    party_type: PartyType
    documents: tuple[PartyDocumentRecord, ...] = ()


# =============================================================================
# Aggregated snapshots
# =============================================================================


@dataclass(frozen=True, slots=True)
class EventWindow:
    """
    Everything that happened inside one reporting window.

    Attributes:
        sales_invoices: Sales invoices dated in the window, with lines.
        receivables_settled: Receivables completed (``updated_at``) in window.
        purchases: Payables created in the window (one per purchased batch).
        payables_settled: Payables completed (``updated_at``) in window.
        expenses: Expenses dated in the window.
    """

    window: ReportingWindow
    sales_invoices: tuple[SalesInvoiceRecord, ...] = ()
    receivables_settled: tuple[SettlementRecord, ...] = ()
    purchases: tuple[SettlementRecord, ...] = ()
    payables_settled: tuple[SettlementRecord, ...] = ()
    expenses: tuple[ExpenseRecord, ...] = ()


@dataclass(frozen=True, slots=True)
class OutstandingBalances:
    """Receivables and payables that were open at ``as_of``."""

    as_of: datetime
    receivables: tuple[SettlementRecord, ...] = ()
    payables: tuple[SettlementRecord, ...] = ()

    @property
    def receivables_total(self) -> Decimal:
        return sum((r.outstanding_as_of(self.as_of) for r in self.receivables), ZERO)

    @property
    def payables_total(self) -> Decimal:
        return sum((p.outstanding_as_of(self.as_of) for p in self.payables), ZERO)


@dataclass(frozen=True, slots=True)
class CashPosition:
    """Cumulative cash movements up to ``as_of`` (the cash proxy inputs)."""

    as_of: datetime
    receivables_collected: Decimal = ZERO
    payables_paid: Decimal = ZERO
    expenses_paid: Decimal = ZERO

    @property
    def cash(self) -> Decimal:
        return self.receivables_collected - self.payables_paid - self.expenses_paid


@dataclass(frozen=True, slots=True)
class InventoryPosition:
    """Batches received on or before ``as_of`` with their remaining stock."""

    as_of: datetime
    batches: tuple[BatchRecord, ...] = field(default_factory=tuple)

    @property
    def value(self) -> Decimal:
        return sum((b.value for b in self.batches if b.quantity > 0), ZERO)
