"""
erp_services -- Package init and public API.

Responsibility:
    Stateful write paths that compose the pure engines (erp_engines/) with
    database sessions: FIFO allocation and batch mutation, sale and purchase
    recording, settlements and expenses, catalogue records.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

        erp_services/ -> erp_engines/  (allowed)
        erp_services/ -> erp_kernel/   (allowed)
        erp_engines/  -> erp_services/ (FORBIDDEN)
        erp_kernel/   -> erp_services/ (FORBIDDEN)

Invariants enforced:
    - No service commits; the caller's session_scope() owns the transaction.
"""

from erp_services.catalog_service import CatalogService
from erp_services.invoicing_service import (
    InvoicingService,
    PurchaseResult,
    SaleLine,
    SaleResult,
)
from erp_services.settlement_service import SettlementService
from erp_services.valuation_service import InventoryValuationService

__all__ = [
    "CatalogService",
    "InventoryValuationService",
    "InvoicingService",
    "PurchaseResult",
    "SaleLine",
    "SaleResult",
    "SettlementService",
]
