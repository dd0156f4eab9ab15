"""
erp_engines.valuation.fifo -- FIFO cost allocator.

Responsibility:
    Given a product's batches and a quantity to sell, walk the batches
    oldest-first, cost the units taken from each, and emit the consumption
    plan the batch mutator later applies.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Reads BatchRecord
    snapshots only; the stateful InventoryValuationService in erp_services
    fetches batches and applies the plan.

Invariants enforced:
    - FIFO total order is BatchRecord.sequence ascending.  Expiry dates and
      identifiers never influence the order.
    - For each batch: quantity_used = min(batch.quantity, remaining); empty
      batches are skipped; quantity_used <= batch.quantity always.
    - cogs_total == round2(sum(quantity_used * cost_per_item)).
    - cogs_per_item == round2(exact_total / quantity_to_sell).  Both
      roundings are applied independently to the full-precision total, so
      cogs_per_item * quantity may drift from cogs_total by a few paise.
    - quantity_to_sell == 0 returns a zero result without dividing.

Failure modes:
    - InvalidQuantityError for negative, fractional, boolean or non-integer
      quantities, raised before any batch is looked at.
    - Oversell is NOT an error.  Only available units are costed; the
      unsatisfied units contribute zero cost and ``is_oversold`` is set.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from erp_engines.tracer import traced_engine
from erp_kernel.domain.snapshots import BatchRecord
from erp_kernel.domain.values import ZERO, round_money, validate_quantity
from erp_kernel.logging_config import get_logger

logger = get_logger("engines.valuation.fifo")


@dataclass(frozen=True, slots=True)
class ConsumptionLine:
    """Units taken from one batch at that batch's unit cost."""

    batch_id: str
    quantity_used: int
    cost_per_item: Decimal

    @property
    def cost(self) -> Decimal:
        return self.cost_per_item * self.quantity_used


@dataclass(frozen=True, slots=True)
class CogsResult:
    """
    Output of one FIFO allocation.

    Contract:
        ``cogs_total`` and ``cogs_per_item`` are rounded to 2 places.
        ``exact_total`` keeps the full-precision sum for callers that need
        to aggregate many allocations without compounding rounding.

    Guarantees:
        - allocated_quantity + shortfall_quantity == requested_quantity
        - is_oversold iff shortfall_quantity > 0
    """

    product_id: str
    requested_quantity: int
    cogs_per_item: Decimal
    cogs_total: Decimal
    consumption_plan: tuple[ConsumptionLine, ...] = ()
    exact_total: Decimal = ZERO

    @property
    def allocated_quantity(self) -> int:
        return sum(line.quantity_used for line in self.consumption_plan)

    @property
    def shortfall_quantity(self) -> int:
        return self.requested_quantity - self.allocated_quantity

    @property
    def is_oversold(self) -> bool:
        return self.shortfall_quantity > 0

    @classmethod
    def zero(cls, product_id: str, requested_quantity: int = 0) -> CogsResult:
        return cls(
            product_id=product_id,
            requested_quantity=requested_quantity,
            cogs_per_item=round_money(ZERO),
            cogs_total=round_money(ZERO),
        )


def fifo_order(batches: Iterable[BatchRecord]) -> list[BatchRecord]:
    """Oldest first.  sorted() is stable, so equal sequences keep input order."""
    return sorted(batches, key=lambda b: b.sequence)


@traced_engine(
    "fifo_allocator",
    "1.0",
    fingerprint_fields=("product_id", "quantity_to_sell", "batches"),
)
def allocate_fifo(
    product_id: str,
    quantity_to_sell: int,
    batches: Iterable[BatchRecord],
) -> CogsResult:
    """
    Cost ``quantity_to_sell`` units of a product against its batches.

    Args:
        product_id: Product being sold (carried into the result and logs).
        quantity_to_sell: Non-negative integer quantity.
        batches: The product's batches.  An empty iterable (unknown product,
            nothing in stock) yields a zero-cost result.

    Returns:
        CogsResult with the rounded totals and the consumption plan.

    Raises:
        InvalidQuantityError: quantity_to_sell is not a non-negative int.
    """
    quantity = validate_quantity(quantity_to_sell)

    if quantity == 0:
        return CogsResult.zero(str(product_id))

    t0 = time.monotonic()
    ordered = fifo_order(batches)

    if not ordered:
        logger.warning("fifo_no_batches", extra={
            "product_id": str(product_id),
            "requested_quantity": quantity,
        })

    plan: list[ConsumptionLine] = []
    total_cost = ZERO
    remaining = quantity

    for batch in ordered:
        if remaining <= 0:
            break

        take = min(batch.quantity, remaining)
        if take <= 0:
            continue

        line = ConsumptionLine(
            batch_id=batch.batch_id,
            quantity_used=take,
            cost_per_item=batch.cost_per_item,
        )
        plan.append(line)
        total_cost += line.cost
        remaining -= take

        logger.debug("batch_consumed", extra={
            "batch_id": batch.batch_id,
            "sequence": batch.sequence,
            "quantity_used": take,
            "cost_per_item": str(batch.cost_per_item),
        })

    result = CogsResult(
        product_id=str(product_id),
        requested_quantity=quantity,
        cogs_per_item=round_money(total_cost / quantity),
        cogs_total=round_money(total_cost),
        consumption_plan=tuple(plan),
        exact_total=total_cost,
    )

    if result.is_oversold:
        logger.warning("fifo_oversell_detected", extra={
            "product_id": str(product_id),
            "requested_quantity": quantity,
            "allocated_quantity": result.allocated_quantity,
            "shortfall_quantity": result.shortfall_quantity,
        })

    duration_ms = round((time.monotonic() - t0) * 1000, 2)
    logger.info("fifo_allocation_completed", extra={
        "product_id": str(product_id),
        "requested_quantity": quantity,
        "batches_consumed": len(plan),
        "cogs_total": str(result.cogs_total),
        "duration_ms": duration_ms,
    })
    return result
