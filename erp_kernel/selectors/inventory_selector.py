"""
Module: erp_kernel.selectors.inventory_selector
Responsibility: Read-only access to products, batches and stock transactions,
    returned as frozen snapshots for the FIFO allocator, the alert evaluator,
    the balance sheet and the stock summary.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - list_batches returns batches in FIFO order: sequence ascending.
    - An unknown product yields an empty batch list, never an error.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from erp_kernel.domain.period import as_utc
from erp_kernel.domain.snapshots import (
    BatchRecord,
    InventoryPosition,
    ProductRecord,
    ProductStock,
    StockMovementRecord,
)
from erp_kernel.domain.values import StockDirection
from erp_kernel.models.inventory import BatchModel, StockTransactionModel
from erp_kernel.models.product import ProductModel
from erp_kernel.selectors.base import BaseSelector, store_guard, utc_or_none


def _batch_record(batch: BatchModel) -> BatchRecord:
    return BatchRecord(
        batch_id=str(batch.id),
        product_id=str(batch.product_id),
        batch_number=batch.batch_number,
        quantity=batch.quantity,
        cost_per_item=batch.cost_per_item,
        sequence=batch.sequence,
        received_at=as_utc(batch.received_at),
        expiry_date=utc_or_none(batch.expiry_date),
    )


def _product_record(product: ProductModel) -> ProductRecord:
    return ProductRecord(
        product_id=str(product.id),
        name=product.name,
        sku=product.sku,
        price=product.price,
        cost=product.cost,
        expiry_alert_days=product.expiry_alert_days,
        low_stock_alert_qty=product.low_stock_alert_qty,
    )


def _as_uuid(product_id: str | UUID) -> UUID | None:
    if isinstance(product_id, UUID):
        return product_id
    try:
        return UUID(str(product_id))
    except ValueError:
        return None


class InventorySelector(BaseSelector):
    """Read-only queries over products and stock lots."""

    def __init__(self, session: Session):
        super().__init__(session)

    def get_product(self, product_id: str | UUID) -> ProductRecord | None:
        pid = _as_uuid(product_id)
        if pid is None:
            return None
        with store_guard("get_product"):
            product = self.session.get(ProductModel, pid)
        return _product_record(product) if product is not None else None

    def list_batches(self, product_id: str | UUID) -> tuple[BatchRecord, ...]:
        """
        All batches of a product, oldest first (sequence ascending).

        Empty batches are included; the allocator skips them.
        """
        pid = _as_uuid(product_id)
        if pid is None:
            return ()
        with store_guard("list_batches"):
            rows = self.session.execute(
                select(BatchModel)
                .where(BatchModel.product_id == pid)
                .order_by(BatchModel.sequence)
            ).scalars().all()
        return tuple(_batch_record(b) for b in rows)

    def list_stock(self) -> tuple[ProductStock, ...]:
        """Every product with its batches, products ordered by name."""
        with store_guard("list_stock"):
            products = self.session.execute(
                select(ProductModel).order_by(ProductModel.name, ProductModel.sku)
            ).scalars().all()
            batches = self.session.execute(
                select(BatchModel).order_by(BatchModel.sequence)
            ).scalars().all()

        by_product: dict[str, list[BatchRecord]] = {}
        for batch in batches:
            record = _batch_record(batch)
            by_product.setdefault(record.product_id, []).append(record)

        return tuple(
            ProductStock(
                product=_product_record(p),
                batches=tuple(by_product.get(str(p.id), ())),
            )
            for p in products
        )

    def inventory_as_of(self, as_of: datetime) -> InventoryPosition:
        """Batches received on or before ``as_of`` with their current quantity."""
        cutoff = as_utc(as_of)
        with store_guard("inventory_as_of"):
            rows = self.session.execute(
                select(BatchModel)
                .where(BatchModel.received_at <= cutoff)
                .order_by(BatchModel.sequence)
            ).scalars().all()
        return InventoryPosition(
            as_of=cutoff,
            batches=tuple(_batch_record(b) for b in rows),
        )

    def stock_movements(self) -> tuple[StockMovementRecord, ...]:
        """Per product: IN total, OUT total and the batch quantity sum."""
        stock_in = func.coalesce(
            func.sum(
                case(
                    (StockTransactionModel.direction == StockDirection.IN,
                     StockTransactionModel.quantity),
                    else_=0,
                )
            ),
            0,
        ).label("stock_in")
        stock_out = func.coalesce(
            func.sum(
                case(
                    (StockTransactionModel.direction == StockDirection.OUT,
                     StockTransactionModel.quantity),
                    else_=0,
                )
            ),
            0,
        ).label("stock_out")

        with store_guard("stock_movements"):
            movement_rows = self.session.execute(
                select(StockTransactionModel.product_id, stock_in, stock_out)
                .group_by(StockTransactionModel.product_id)
            ).all()
            batch_rows = self.session.execute(
                select(
                    BatchModel.product_id,
                    func.coalesce(func.sum(BatchModel.quantity), 0).label("quantity"),
                ).group_by(BatchModel.product_id)
            ).all()
            products = self.session.execute(
                select(ProductModel).order_by(ProductModel.name, ProductModel.sku)
            ).scalars().all()

        movements = {row.product_id: (int(row.stock_in), int(row.stock_out)) for row in movement_rows}
        batch_totals = {row.product_id: int(row.quantity) for row in batch_rows}

        return tuple(
            StockMovementRecord(
                product_id=str(p.id),
                product_name=p.name,
                stock_in=movements.get(p.id, (0, 0))[0],
                stock_out=movements.get(p.id, (0, 0))[1],
                batch_quantity=batch_totals.get(p.id, 0),
            )
            for p in products
        )
