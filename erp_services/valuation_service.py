"""
erp_services.valuation_service -- FIFO COGS allocation and batch mutation.

Responsibility:
    Read a product's batches, run the pure FIFO allocator over them, and
    apply the resulting consumption plan to the batch rows.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    Composes InventorySelector (reads) and erp_engines.valuation.allocate_fifo
    (pure costing).  Pure types (CogsResult, ConsumptionLine) live in
    erp_engines.valuation.fifo.

Invariants enforced:
    - Quantity is validated before any batch is read.
    - apply_consumption locks every batch row it touches
      (SELECT ... FOR UPDATE) and never drives a quantity below zero.
    - Nothing is committed here; the caller's session_scope() owns the
      transaction, so allocation, invoice insert and decrement are atomic.

Failure modes:
    - InvalidQuantityError from allocate_cogs for a bad quantity.
    - BatchNotFoundError when a plan line names a batch that does not exist.
    - NegativeStockError when a batch holds fewer units than the plan uses
      (stale plan or concurrent sale).  The caller rolls back.
    - StoreUnavailableError when the database is unreachable.

Usage:
    from erp_kernel.db import session_scope
    from erp_services.valuation_service import InventoryValuationService

    with session_scope() as session:
        valuation = InventoryValuationService(session)
        result = valuation.allocate_cogs(product_id, 5)
        valuation.apply_consumption(result.consumption_plan)
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from erp_engines.valuation import CogsResult, ConsumptionLine, allocate_fifo
from erp_kernel.domain.values import validate_quantity
from erp_kernel.exceptions import BatchNotFoundError, NegativeStockError
from erp_kernel.logging_config import LogContext, get_logger
from erp_kernel.models.inventory import BatchModel
from erp_kernel.selectors.base import store_guard
from erp_kernel.selectors.inventory_selector import InventorySelector

logger = get_logger("services.valuation")


class InventoryValuationService:
    """
    FIFO costing over persisted batches.

    Contract:
        allocate_cogs is read-only; apply_consumption mutates batch
        quantities inside the caller's transaction.  Applying the same plan
        twice decrements twice; callers apply each plan exactly once.
    """

    def __init__(self, session: Session):
        self.session = session
        self._inventory = InventorySelector(session)

    # =========================================================================
    # Allocation
    # =========================================================================

    def allocate_cogs(self, product_id: str | UUID, quantity: int) -> CogsResult:
        """
        Cost ``quantity`` units of ``product_id`` FIFO against its batches.

        An unknown product has no batches and costs zero.
        """
        qty = validate_quantity(quantity)
        if qty == 0:
            return CogsResult.zero(str(product_id))

        with LogContext.bind(product_id=str(product_id)):
            batches = self._inventory.list_batches(product_id)
            logger.debug("cogs_allocation_started", extra={
                "product_id": str(product_id),
                "quantity": qty,
                "batch_count": len(batches),
            })
            return allocate_fifo(str(product_id), qty, batches)

    # =========================================================================
    # Mutation
    # =========================================================================

    def apply_consumption(self, plan: Sequence[ConsumptionLine]) -> None:
        """
        Decrement each batch by its ``quantity_used``.

        Raises:
            BatchNotFoundError: A batch in the plan does not exist.
            NegativeStockError: A batch holds fewer units than requested.
        """
        for line in plan:
            used = validate_quantity(line.quantity_used)
            if used == 0:
                continue

            batch = self._lock_batch(line.batch_id)
            if batch is None:
                logger.error("batch_not_found", extra={"batch_id": str(line.batch_id)})
                raise BatchNotFoundError(str(line.batch_id))

            if batch.quantity < used:
                logger.error("batch_negative_stock_rejected", extra={
                    "batch_id": str(batch.id),
                    "available": batch.quantity,
                    "requested": used,
                })
                raise NegativeStockError(str(batch.id), batch.quantity, used)

            batch.quantity -= used
            logger.debug("batch_decremented", extra={
                "batch_id": str(batch.id),
                "quantity_used": used,
                "remaining": batch.quantity,
            })

        with store_guard("apply_consumption"):
            self.session.flush()

        logger.info("consumption_applied", extra={
            "line_count": len(plan),
            "units": sum(line.quantity_used for line in plan),
        })

    def _lock_batch(self, batch_id: str | UUID) -> BatchModel | None:
        try:
            bid = batch_id if isinstance(batch_id, UUID) else UUID(str(batch_id))
        except ValueError:
            return None
        with store_guard("lock_batch"):
            return self.session.execute(
                select(BatchModel)
                .where(BatchModel.id == bid)
                .with_for_update()
                .execution_options(populate_existing=True)
            ).scalar_one_or_none()
