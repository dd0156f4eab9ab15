"""Record-store models for the ERP kernel."""

from erp_kernel.models.expense import ExpenseModel
from erp_kernel.models.inventory import BatchModel, StockTransactionModel
from erp_kernel.models.invoice import InvoiceLineModel, InvoiceModel
from erp_kernel.models.party import PartyLedgerTransactionModel, PartyModel
from erp_kernel.models.product import ProductModel
from erp_kernel.models.settlement import PayableModel, ReceivableModel

__all__ = [
    "ProductModel",
    "BatchModel",
    "StockTransactionModel",
    "PartyModel",
    "PartyLedgerTransactionModel",
    "InvoiceModel",
    "InvoiceLineModel",
    "ReceivableModel",
    "PayableModel",
    "ExpenseModel",
]
