"""
Valuation engine -- FIFO cost allocation.

Pure functions over batch snapshots.  The stateful counterpart that reads
batches and applies consumption plans is
``erp_services.valuation_service.InventoryValuationService``.
"""

from erp_engines.valuation.fifo import (
    CogsResult,
    ConsumptionLine,
    allocate_fifo,
    fifo_order,
)

__all__ = [
    "CogsResult",
    "ConsumptionLine",
    "allocate_fifo",
    "fifo_order",
]
