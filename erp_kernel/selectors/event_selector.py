"""
Module: erp_kernel.selectors.event_selector
Responsibility: Read-only access to the raw business events the ledger
    projector and statement aggregators are built from: sales invoices with
    their FIFO cost, receivable and payable settlements, purchases, expenses
    and party ledger transactions.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Window queries are half-open: start <= t < end.
    - As-of queries are inclusive: t <= as_of.
    - Settlement timing follows updated_at on COMPLETED records; the
      invoice date never drives cash timing.
    - Results within a kind are ordered by date and then by creation order,
      so repeated calls over an unchanged store return identical snapshots.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from erp_kernel.domain.period import ReportingWindow, as_utc
from erp_kernel.domain.snapshots import (
    CashPosition,
    EventWindow,
    ExpenseRecord,
    OutstandingBalances,
    PartyActivity,
    PartyDocumentRecord,
    PartyTransactionRecord,
    SalesInvoiceRecord,
    SalesLineRecord,
    SettlementRecord,
)
from erp_kernel.domain.values import InvoiceType, PartyType
from erp_kernel.models.expense import ExpenseModel
from erp_kernel.models.inventory import BatchModel
from erp_kernel.models.invoice import InvoiceModel
from erp_kernel.models.party import PartyLedgerTransactionModel, PartyModel
from erp_kernel.models.settlement import PayableModel, ReceivableModel
from erp_kernel.selectors.base import (
    BaseSelector,
    store_guard,
    to_decimal_or_zero,
)


def _expense_record(expense: ExpenseModel) -> ExpenseRecord:
    return ExpenseRecord(
        expense_id=str(expense.id),
        title=expense.title,
        category=expense.category,
        amount=expense.amount,
        expense_date=as_utc(expense.expense_date),
        payment_mode=expense.payment_mode,
    )


def _settlement_record(model, reference: str, party_name: str) -> SettlementRecord:
    return SettlementRecord(
        record_id=str(model.id),
        reference=reference,
        total_amount=model.total_amount,
        outstanding_amount=model.outstanding_amount,
        created_at=as_utc(model.created_at),
        updated_at=as_utc(model.updated_at),
        party_name=party_name,
    )


class EventSelector(BaseSelector):
    """Read-only queries over invoices, settlements, expenses and party ledgers."""

    def __init__(self, session: Session):
        super().__init__(session)

    # ------------------------------------------------------------------
    # Window queries
    # ------------------------------------------------------------------

    def list_events_in_window(self, window: ReportingWindow) -> EventWindow:
        """Every event that falls in ``[window.start, window.end)``."""
        with store_guard("list_events_in_window"):
            return EventWindow(
                window=window,
                sales_invoices=self._sales_invoices(window),
                receivables_settled=self._receivables_settled(window),
                purchases=self._purchases(window),
                payables_settled=self._payables_settled(window),
                expenses=self._expenses_in(window),
            )

    def _sales_invoices(self, window: ReportingWindow) -> tuple[SalesInvoiceRecord, ...]:
        rows = self.session.execute(
            select(InvoiceModel, PartyModel.name)
            .join(PartyModel, InvoiceModel.party_id == PartyModel.id)
            .where(
                InvoiceModel.invoice_type == InvoiceType.SALES,
                InvoiceModel.invoice_date >= window.start,
                InvoiceModel.invoice_date < window.end,
            )
            .order_by(InvoiceModel.invoice_date, InvoiceModel.invoice_number)
        ).all()

        return tuple(
            SalesInvoiceRecord(
                invoice_id=str(invoice.id),
                invoice_number=invoice.invoice_number,
                invoice_date=as_utc(invoice.invoice_date),
                total_amount=invoice.total_amount,
                party_name=party_name,
                lines=tuple(
                    SalesLineRecord(
                        product_id=str(line.product_id),
                        quantity=line.quantity,
                        price_per_item=line.price_per_item,
                        subtotal=line.subtotal,
                        cogs_total=line.cogs_total,
                    )
                    for line in invoice.lines
                ),
            )
            for invoice, party_name in rows
        )

    def _receivables_settled(self, window: ReportingWindow) -> tuple[SettlementRecord, ...]:
        rows = self.session.execute(
            select(ReceivableModel, InvoiceModel.invoice_number, PartyModel.name)
            .join(InvoiceModel, ReceivableModel.invoice_id == InvoiceModel.id)
            .join(PartyModel, ReceivableModel.party_id == PartyModel.id)
            .where(
                ReceivableModel.is_settled,
                ReceivableModel.updated_at >= window.start,
                ReceivableModel.updated_at < window.end,
            )
            .order_by(ReceivableModel.updated_at, InvoiceModel.invoice_number)
        ).all()
        return tuple(_settlement_record(r, number, name) for r, number, name in rows)

    def _purchases(self, window: ReportingWindow) -> tuple[SettlementRecord, ...]:
        rows = self.session.execute(
            select(PayableModel, BatchModel.batch_number, PartyModel.name)
            .join(BatchModel, PayableModel.batch_id == BatchModel.id)
            .join(PartyModel, PayableModel.party_id == PartyModel.id)
            .where(
                PayableModel.created_at >= window.start,
                PayableModel.created_at < window.end,
            )
            .order_by(PayableModel.created_at, BatchModel.sequence)
        ).all()
        return tuple(_settlement_record(p, number, name) for p, number, name in rows)

    def _payables_settled(self, window: ReportingWindow) -> tuple[SettlementRecord, ...]:
        rows = self.session.execute(
            select(PayableModel, BatchModel.batch_number, PartyModel.name)
            .join(BatchModel, PayableModel.batch_id == BatchModel.id)
            .join(PartyModel, PayableModel.party_id == PartyModel.id)
            .where(
                PayableModel.is_settled,
                PayableModel.updated_at >= window.start,
                PayableModel.updated_at < window.end,
            )
            .order_by(PayableModel.updated_at, BatchModel.sequence)
        ).all()
        return tuple(_settlement_record(p, number, name) for p, number, name in rows)

    def _expenses_in(self, window: ReportingWindow) -> tuple[ExpenseRecord, ...]:
        rows = self.session.execute(
            select(ExpenseModel)
            .where(
                ExpenseModel.expense_date >= window.start,
                ExpenseModel.expense_date < window.end,
            )
            .order_by(ExpenseModel.expense_date, ExpenseModel.created_at)
        ).scalars().all()
        return tuple(_expense_record(e) for e in rows)

    # ------------------------------------------------------------------
    # As-of queries
    # ------------------------------------------------------------------

    def list_outstanding(self, as_of: datetime) -> OutstandingBalances:
        """
        Receivables and payables open at ``as_of``.

        A record counts when it was created on or before the cutoff and is
        either still pending or was settled after the cutoff.
        """
        cutoff = as_utc(as_of)
        with store_guard("list_outstanding"):
            receivables = self.session.execute(
                select(ReceivableModel, InvoiceModel.invoice_number, PartyModel.name)
                .join(InvoiceModel, ReceivableModel.invoice_id == InvoiceModel.id)
                .join(PartyModel, ReceivableModel.party_id == PartyModel.id)
                .where(
                    ReceivableModel.created_at <= cutoff,
                    or_(
                        ReceivableModel.outstanding_amount > 0,
                        ReceivableModel.updated_at > cutoff,
                    ),
                )
                .order_by(ReceivableModel.created_at, InvoiceModel.invoice_number)
            ).all()
            payables = self.session.execute(
                select(PayableModel, BatchModel.batch_number, PartyModel.name)
                .join(BatchModel, PayableModel.batch_id == BatchModel.id)
                .join(PartyModel, PayableModel.party_id == PartyModel.id)
                .where(
                    PayableModel.created_at <= cutoff,
                    or_(
                        PayableModel.outstanding_amount > 0,
                        PayableModel.updated_at > cutoff,
                    ),
                )
                .order_by(PayableModel.created_at, BatchModel.sequence)
            ).all()

        return OutstandingBalances(
            as_of=cutoff,
            receivables=tuple(_settlement_record(r, n, p) for r, n, p in receivables),
            payables=tuple(_settlement_record(r, n, p) for r, n, p in payables),
        )

    def cash_position(self, as_of: datetime) -> CashPosition:
        """Cumulative collections, supplier payments and expenses up to ``as_of``."""
        cutoff = as_utc(as_of)
        with store_guard("cash_position"):
            collected = self.session.execute(
                select(func.sum(ReceivableModel.total_amount)).where(
                    ReceivableModel.is_settled,
                    ReceivableModel.updated_at <= cutoff,
                )
            ).scalar()
            paid = self.session.execute(
                select(func.sum(PayableModel.total_amount)).where(
                    PayableModel.is_settled,
                    PayableModel.updated_at <= cutoff,
                )
            ).scalar()
            spent = self.session.execute(
                select(func.sum(ExpenseModel.amount)).where(
                    ExpenseModel.expense_date <= cutoff,
                )
            ).scalar()

        return CashPosition(
            as_of=cutoff,
            receivables_collected=to_decimal_or_zero(collected),
            payables_paid=to_decimal_or_zero(paid),
            expenses_paid=to_decimal_or_zero(spent),
        )

    def party_transactions(self, as_of: datetime) -> tuple[PartyTransactionRecord, ...]:
        """Every party ledger transaction dated on or before ``as_of``."""
        cutoff = as_utc(as_of)
        with store_guard("party_transactions"):
            rows = self.session.execute(
                select(PartyLedgerTransactionModel, PartyModel)
                .join(PartyModel, PartyLedgerTransactionModel.party_id == PartyModel.id)
                .where(PartyLedgerTransactionModel.transaction_date <= cutoff)
                .order_by(PartyModel.name, PartyLedgerTransactionModel.transaction_date)
            ).all()

        return tuple(
            PartyTransactionRecord(
                party_id=str(party.id),
                party_name=party.name,
                party_type=party.party_type,
                side=txn.side,
                amount=txn.amount,
                transaction_date=as_utc(txn.transaction_date),
            )
            for txn, party in rows
        )

    def expenses_through(self, as_of: datetime) -> tuple[ExpenseRecord, ...]:
        """Every expense dated on or before ``as_of``."""
        cutoff = as_utc(as_of)
        with store_guard("expenses_through"):
            rows = self.session.execute(
                select(ExpenseModel)
                .where(ExpenseModel.expense_date <= cutoff)
                .order_by(ExpenseModel.expense_date, ExpenseModel.created_at)
            ).scalars().all()
        return tuple(_expense_record(e) for e in rows)

    def expenses_in(self, window: ReportingWindow) -> tuple[ExpenseRecord, ...]:
        with store_guard("expenses_in"):
            return self._expenses_in(window)

    def sales_total_in(self, window: ReportingWindow) -> Decimal:
        """Sum of sales invoice totals dated in the window."""
        with store_guard("sales_total_in"):
            total = self.session.execute(
                select(func.sum(InvoiceModel.total_amount)).where(
                    InvoiceModel.invoice_type == InvoiceType.SALES,
                    InvoiceModel.invoice_date >= window.start,
                    InvoiceModel.invoice_date < window.end,
                )
            ).scalar()
        return to_decimal_or_zero(total)

    # ------------------------------------------------------------------
    # Per-party activity
    # ------------------------------------------------------------------

    def party_activity(
        self,
        window: ReportingWindow,
        party_type: PartyType,
    ) -> tuple[PartyActivity, ...]:
        """
        Every party of ``party_type`` with its documents dated in the window.

        Customers carry their sales invoices and the receivable behind each;
        suppliers carry the payables created for their purchased batches.
        Parties without documents in the window are included with none.
        """
        with store_guard("party_activity"):
            parties = self.session.execute(
                select(PartyModel)
                .where(PartyModel.party_type == party_type)
                .order_by(PartyModel.name, PartyModel.created_at)
            ).scalars().all()

            if party_type is PartyType.CUSTOMER:
                documents = self._customer_documents(window)
            else:
                documents = self._supplier_documents(window)

        return tuple(
            PartyActivity(
                party_id=str(party.id),
                party_name=party.name,
                party_type=party.party_type,
                documents=tuple(documents.get(str(party.id), ())),
            )
            for party in parties
        )

    def _customer_documents(
        self, window: ReportingWindow
    ) -> dict[str, list[PartyDocumentRecord]]:
        rows = self.session.execute(
            select(InvoiceModel, ReceivableModel, PartyModel.name)
            .join(PartyModel, InvoiceModel.party_id == PartyModel.id)
            .outerjoin(ReceivableModel, ReceivableModel.invoice_id == InvoiceModel.id)
            .where(
                InvoiceModel.invoice_type == InvoiceType.SALES,
                InvoiceModel.invoice_date >= window.start,
                InvoiceModel.invoice_date < window.end,
            )
            .order_by(InvoiceModel.invoice_date, InvoiceModel.invoice_number)
        ).all()

        grouped: dict[str, list[PartyDocumentRecord]] = {}
        for invoice, receivable, party_name in rows:
            settlement = None
            if receivable is not None:
                settlement = _settlement_record(receivable, invoice.invoice_number, party_name)
            grouped.setdefault(str(invoice.party_id), []).append(PartyDocumentRecord(
                reference=invoice.invoice_number,
                document_date=as_utc(invoice.invoice_date),
                total_amount=invoice.total_amount,
                settlement=settlement,
            ))
        return grouped

    def _supplier_documents(
        self, window: ReportingWindow
    ) -> dict[str, list[PartyDocumentRecord]]:
        rows = self.session.execute(
            select(PayableModel, BatchModel.batch_number, PartyModel.name)
            .join(BatchModel, PayableModel.batch_id == BatchModel.id)
            .join(PartyModel, PayableModel.party_id == PartyModel.id)
            .where(
                PayableModel.created_at >= window.start,
                PayableModel.created_at < window.end,
            )
            .order_by(PayableModel.created_at, BatchModel.sequence)
        ).all()

        grouped: dict[str, list[PartyDocumentRecord]] = {}
        for payable, batch_number, party_name in rows:
            settlement = _settlement_record(payable, batch_number, party_name)
            grouped.setdefault(str(payable.party_id), []).append(PartyDocumentRecord(
                reference=batch_number,
                document_date=settlement.created_at,
                total_amount=payable.total_amount,
                settlement=settlement,
            ))
        return grouped
