"""
erp_services.invoicing_service -- sale and purchase recording.

Responsibility:
    The two write paths that create the flat single-entry records every
    report is derived from:

    * record_sale: FIFO-cost each line, create the sales invoice and its
      lines with COGS, open the receivable, write OUT stock transactions
      and the customer DEBIT, and decrement the consumed batches.
    * record_purchase_batch: allocate the batch sequence, create the batch,
      its purchase invoice and payable, write the IN stock transaction and
      the supplier CREDIT.

Architecture position:
    Services -- stateful orchestration over engines + kernel.  Composes
    InventoryValuationService (FIFO + mutation), SequenceService (batch
    order and document numbers) and erp_engines.tax (GST split).

Invariants enforced:
    - All input is validated before anything is read or written.
    - cogs_total / cogs_per_item on a sales line come from the allocator
      and are never recomputed.
    - Each consumption plan is applied exactly once, immediately after its
      allocation, so two lines for the same product see each other's
      decrements.
    - Every timestamp written is UTC.
    - Nothing is committed; callers wrap the call in session_scope().

Failure modes:
    - InvalidInputError subclasses for bad quantities, prices, dates, GST
      rates or an empty line list.
    - PartyNotFoundError / ProductNotFoundError for unknown references.
    - NegativeStockError if a batch changed underneath the allocation.
    - Oversell is recorded, not rejected: the invoice is written with the
      cost of what was available and a warning is logged.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from erp_engines.tax import GstBreakdown, calculate_gst, no_gst
from erp_engines.valuation import CogsResult
from erp_kernel.domain.clock import Clock, SystemClock
from erp_kernel.domain.period import as_utc
from erp_kernel.domain.values import (
    ZERO,
    EntrySide,
    InvoiceType,
    PartyType,
    StockDirection,
    validate_amount,
    validate_quantity,
)
from erp_kernel.exceptions import InvalidInputError
from erp_kernel.logging_config import LogContext, get_logger
from erp_kernel.models.inventory import BatchModel, StockTransactionModel
from erp_kernel.models.invoice import InvoiceLineModel, InvoiceModel
from erp_kernel.models.party import PartyLedgerTransactionModel
from erp_kernel.models.product import ProductModel
from erp_kernel.models.settlement import PayableModel, ReceivableModel
from erp_kernel.selectors.base import store_guard
from erp_kernel.services.sequence_service import SequenceService
from erp_modules.reporting.config import GstSettings
from erp_services.catalog_service import CatalogService
from erp_services.valuation_service import InventoryValuationService

logger = get_logger("services.invoicing")


def _require_datetime(value: object, field: str) -> datetime:
    if not isinstance(value, datetime):
        raise InvalidInputError(f"{field} must be a datetime, got {type(value).__name__}")
    return as_utc(value)


@dataclass(frozen=True)
class SaleLine:
    """
    One product line of a sale.

    ``price_per_item`` defaults to the product's catalogue price and
    ``gst_rate`` to the configured default rate.
    """

    product_id: str | UUID
    quantity: int
    price_per_item: Decimal | int | str | None = None
    gst_rate: int | None = None


@dataclass(frozen=True)
class SaleResult:
    invoice_id: str
    invoice_number: str
    receivable_id: str
    invoice_date: datetime
    taxable_amount: Decimal
    tax: GstBreakdown
    total_amount: Decimal
    allocations: tuple[CogsResult, ...]

    @property
    def cogs_total(self) -> Decimal:
        return sum((a.cogs_total for a in self.allocations), ZERO)

    @property
    def is_oversold(self) -> bool:
        return any(a.is_oversold for a in self.allocations)


@dataclass(frozen=True)
class PurchaseResult:
    batch_id: str
    batch_number: str
    sequence: int
    payable_id: str
    invoice_number: str
    total_amount: Decimal
    received_at: datetime


class InvoicingService:
    """
    Record sales and purchases.

    Contract:
        Every method runs inside the caller's transaction and flushes so
        generated ids are available on return.  Callers commit or roll back.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        gst: GstSettings | None = None,
    ):
        self.session = session
        self._clock = clock or SystemClock()
        self._gst = gst or GstSettings()
        self._catalog = CatalogService(session)
        self._valuation = InventoryValuationService(session)
        self._sequences = SequenceService(session)

    # =========================================================================
    # Sales
    # =========================================================================

    def record_sale(
        self,
        party_id: str | UUID,
        lines: Sequence[SaleLine],
        invoice_date: datetime | None = None,
        customer_state: str | None = None,
    ) -> SaleResult:
        """
        Record a sales invoice and its COGS.

        Args:
            party_id: The customer.
            lines: At least one SaleLine.
            invoice_date: Defaults to the clock.
            customer_state: Overrides the party's state for the GST split.
        """
        if not lines:
            raise InvalidInputError("A sale needs at least one line")

        when = self._clock.now() if invoice_date is None else invoice_date
        when = _require_datetime(when, "invoice_date")

        checked: list[tuple[SaleLine, int]] = []
        for line in lines:
            checked.append((line, validate_quantity(line.quantity, allow_zero=False)))

        party = self._catalog.get_party(party_id)
        if party.party_type is not PartyType.CUSTOMER:
            raise InvalidInputError(f"Party {party.name} is not a customer")
        state = customer_state if customer_state is not None else party.state

        priced: list[tuple[ProductModel, int, Decimal, GstBreakdown]] = []
        for line, qty in checked:
            product = self._catalog.get_product(line.product_id)
            if line.price_per_item is None:
                price = product.price
            else:
                price = validate_amount(line.price_per_item, "price_per_item")
            priced.append((product, qty, price, self._tax(qty, price, state, line.gst_rate)))

        _, number = self._sequences.next_number(SequenceService.SALES_INVOICE)
        tax = priced[0][3]
        for breakdown in (p[3] for p in priced[1:]):
            tax = tax + breakdown

        invoice = InvoiceModel(
            invoice_number=number,
            invoice_type=InvoiceType.SALES,
            party_id=party.id,
            invoice_date=when,
            taxable_amount=tax.taxable_value,
            cgst=tax.cgst,
            sgst=tax.sgst,
            igst=tax.igst,
            total_amount=tax.total,
        )
        self.session.add(invoice)

        with LogContext.bind(invoice_id=number):
            allocations: list[CogsResult] = []
            for product, qty, price, breakdown in priced:
                result = self._valuation.allocate_cogs(product.id, qty)
                self._valuation.apply_consumption(result.consumption_plan)
                allocations.append(result)

                invoice.lines.append(InvoiceLineModel(
                    product_id=product.id,
                    quantity=qty,
                    price_per_item=price,
                    subtotal=breakdown.taxable_value,
                    gst_rate=breakdown.gst_rate,
                    cogs_per_item=result.cogs_per_item,
                    cogs_total=result.cogs_total,
                ))
                self.session.add(StockTransactionModel(
                    product_id=product.id,
                    direction=StockDirection.OUT,
                    quantity=qty,
                    notes=f"Sale {number}",
                    created_at=when,
                ))

            with store_guard("record_sale"):
                self.session.flush()

            receivable = ReceivableModel(
                invoice_id=invoice.id,
                party_id=party.id,
                total_amount=invoice.total_amount,
                outstanding_amount=invoice.total_amount,
                created_at=when,
                updated_at=when,
            )
            self.session.add(receivable)
            self.session.add(PartyLedgerTransactionModel(
                party_id=party.id,
                side=EntrySide.DEBIT,
                amount=invoice.total_amount,
                description=f"Sales Invoice {number}",
                transaction_date=when,
            ))
            with store_guard("record_sale"):
                self.session.flush()

            sale = SaleResult(
                invoice_id=str(invoice.id),
                invoice_number=number,
                receivable_id=str(receivable.id),
                invoice_date=when,
                taxable_amount=tax.taxable_value,
                tax=tax,
                total_amount=invoice.total_amount,
                allocations=tuple(allocations),
            )

            if sale.is_oversold:
                logger.warning("sale_recorded_with_oversell", extra={
                    "invoice_number": number,
                    "shortfall": {
                        a.product_id: a.shortfall_quantity
                        for a in allocations if a.is_oversold
                    },
                })
            logger.info("sale_recorded", extra={
                "invoice_number": number,
                "party_id": str(party.id),
                "line_count": len(priced),
                "total_amount": str(sale.total_amount),
                "cogs_total": str(sale.cogs_total),
            })
        return sale

    def _tax(
        self,
        quantity: int,
        price: Decimal,
        customer_state: str | None,
        gst_rate: int | None,
    ) -> GstBreakdown:
        if not self._gst.enabled:
            return no_gst(quantity, price)
        return calculate_gst(
            quantity,
            price,
            seller_state=self._gst.seller_state,
            customer_state=customer_state,
            gst_rate=self._gst.default_rate if gst_rate is None else gst_rate,
        )

    # =========================================================================
    # Purchases
    # =========================================================================

    def record_purchase_batch(
        self,
        product_id: str | UUID,
        supplier_id: str | UUID,
        quantity: int,
        cost_per_item: Decimal | int | str,
        batch_number: str | None = None,
        expiry_date: datetime | None = None,
        received_at: datetime | None = None,
    ) -> PurchaseResult:
        """
        Receive a new stock lot from a supplier.

        The batch's FIFO position is the next value of the batch sequence,
        so it is always consumed after every batch received before it.
        """
        qty = validate_quantity(quantity, allow_zero=False)
        cost = validate_amount(cost_per_item, "cost_per_item")
        when = self._clock.now() if received_at is None else received_at
        when = _require_datetime(when, "received_at")
        expiry = None if expiry_date is None else _require_datetime(expiry_date, "expiry_date")

        product = self._catalog.get_product(product_id)
        supplier = self._catalog.get_party(supplier_id)
        if supplier.party_type is not PartyType.SUPPLIER:
            raise InvalidInputError(f"Party {supplier.name} is not a supplier")

        sequence = self._sequences.next_value(SequenceService.BATCH)
        number = batch_number or SequenceService.BATCH.format(sequence)
        _, invoice_number = self._sequences.next_number(SequenceService.PURCHASE_INVOICE)
        total = cost * qty

        batch = BatchModel(
            product_id=product.id,
            supplier_id=supplier.id,
            batch_number=number,
            quantity=qty,
            cost_per_item=cost,
            expiry_date=expiry,
            sequence=sequence,
            received_at=when,
        )
        self.session.add(batch)

        invoice = InvoiceModel(
            invoice_number=invoice_number,
            invoice_type=InvoiceType.PURCHASE,
            party_id=supplier.id,
            invoice_date=when,
            taxable_amount=total,
            total_amount=total,
        )
        invoice.lines.append(InvoiceLineModel(
            product_id=product.id,
            quantity=qty,
            price_per_item=cost,
            subtotal=total,
        ))
        self.session.add(invoice)

        with store_guard("record_purchase_batch"):
            self.session.flush()

        payable = PayableModel(
            batch_id=batch.id,
            party_id=supplier.id,
            total_amount=total,
            outstanding_amount=total,
            created_at=when,
            updated_at=when,
        )
        self.session.add(payable)
        self.session.add(StockTransactionModel(
            product_id=product.id,
            batch_id=batch.id,
            direction=StockDirection.IN,
            quantity=qty,
            notes=f"Purchase {number}",
            created_at=when,
        ))
        self.session.add(PartyLedgerTransactionModel(
            party_id=supplier.id,
            side=EntrySide.CREDIT,
            amount=total,
            description=f"Purchase Batch {number}",
            transaction_date=when,
        ))
        with store_guard("record_purchase_batch"):
            self.session.flush()

        logger.info("purchase_batch_recorded", extra={
            "batch_id": str(batch.id),
            "batch_number": number,
            "sequence": sequence,
            "quantity": qty,
            "total_amount": str(total),
        })
        return PurchaseResult(
            batch_id=str(batch.id),
            batch_number=number,
            sequence=sequence,
            payable_id=str(payable.id),
            invoice_number=invoice_number,
            total_amount=total,
            received_at=when,
        )
