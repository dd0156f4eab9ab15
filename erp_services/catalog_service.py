"""
erp_services.catalog_service -- products and parties.

Responsibility:
    Create and look up the catalogue records the write paths depend on:
    products (with their alert thresholds) and customer/supplier parties.

Architecture position:
    Services -- thin CRUD over kernel models.  Nothing is committed here.

Failure modes:
    - InvalidAmountError / InvalidQuantityError for bad prices or
      thresholds.
    - ProductNotFoundError / PartyNotFoundError from the get_* helpers.
    - IntegrityError on a duplicate SKU (surfaces at flush).
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from erp_kernel.domain.values import PartyType, validate_amount, validate_quantity
from erp_kernel.exceptions import (
    InvalidInputError,
    PartyNotFoundError,
    ProductNotFoundError,
)
from erp_kernel.logging_config import get_logger
from erp_kernel.models.party import PartyModel
from erp_kernel.models.product import ProductModel
from erp_kernel.selectors.base import store_guard

logger = get_logger("services.catalog")


def _as_uuid(value: str | UUID) -> UUID | None:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError:
        return None


class CatalogService:
    """Create products and parties inside the caller's transaction."""

    def __init__(self, session: Session):
        self.session = session

    def create_product(
        self,
        name: str,
        sku: str,
        price,
        cost,
        expiry_alert_days: int = 30,
        low_stock_alert_qty: int = 10,
    ) -> ProductModel:
        if not name or not sku:
            raise InvalidInputError("Product name and SKU are required")

        product = ProductModel(
            name=name,
            sku=sku,
            price=validate_amount(price, "price"),
            cost=validate_amount(cost, "cost"),
            expiry_alert_days=validate_quantity(expiry_alert_days),
            low_stock_alert_qty=validate_quantity(low_stock_alert_qty),
        )
        self.session.add(product)
        with store_guard("create_product"):
            self.session.flush()

        logger.info("product_created", extra={"product_id": str(product.id), "sku": sku})
        return product

    def create_party(
        self,
        name: str,
        party_type: PartyType | str,
        state: str | None = None,
    ) -> PartyModel:
        if not name:
            raise InvalidInputError("Party name is required")
        try:
            kind = PartyType(party_type)
        except ValueError as exc:
            raise InvalidInputError(f"Unknown party type: {party_type!r}") from exc

        party = PartyModel(name=name, party_type=kind, state=state)
        self.session.add(party)
        with store_guard("create_party"):
            self.session.flush()

        logger.info("party_created", extra={
            "party_id": str(party.id),
            "party_type": kind.value,
        })
        return party

    def get_product(self, product_id: str | UUID) -> ProductModel:
        pid = _as_uuid(product_id)
        product = None
        if pid is not None:
            with store_guard("get_product"):
                product = self.session.get(ProductModel, pid)
        if product is None:
            raise ProductNotFoundError(str(product_id))
        return product

    def get_party(self, party_id: str | UUID) -> PartyModel:
        pid = _as_uuid(party_id)
        party = None
        if pid is not None:
            with store_guard("get_party"):
                party = self.session.get(PartyModel, pid)
        if party is None:
            raise PartyNotFoundError(str(party_id))
        return party
