"""
Pytest fixtures for the ERP accounting engine test suite.

Provides:
- Structured logging for the whole session and a ``captured_logs`` helper
- A fresh in-memory SQLite record store per test (``sqlite://``, static pool)
- A deterministic clock
- Service fixtures and factories for products, parties and batches

Pure engine and statement tests build snapshot DTOs directly and need none
of the database fixtures.
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO
from typing import Generator

import pytest
from sqlalchemy.orm import Session

from erp_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from erp_kernel.domain.clock import DeterministicClock
from erp_kernel.domain.values import PartyType
from erp_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from erp_modules.reporting.config import ReportingConfig
from erp_modules.reporting.service import ReportingService
from erp_services.catalog_service import CatalogService
from erp_services.invoicing_service import InvoicingService
from erp_services.settlement_service import SettlementService
from erp_services.valuation_service import InventoryValuationService

START_TIME = datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def utc(*args: int) -> datetime:
    """datetime(*args) in UTC."""
    return datetime(*args, tzinfo=timezone.utc)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture erp_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, valuation):
            valuation.allocate_cogs(product_id, 5)
            logs = captured_logs()
            assert any(r["message"] == "fifo_allocation_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("erp_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Record store
# =============================================================================


@pytest.fixture
def engine():
    """A fresh in-memory database for each test."""
    eng = init_engine_from_url("sqlite://")
    create_tables()
    yield eng
    drop_tables()
    reset_engine()


@pytest.fixture
def session(engine) -> Generator[Session, None, None]:
    """Session on the per-test database; rolled back at teardown."""
    sess = get_session()
    yield sess
    sess.rollback()
    sess.close()


# =============================================================================
# Clock and services
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock fixed at 2024-01-01 12:00 UTC."""
    return DeterministicClock(START_TIME)


@pytest.fixture
def reporting_config() -> ReportingConfig:
    return ReportingConfig()


@pytest.fixture
def catalog(session: Session) -> CatalogService:
    return CatalogService(session)


@pytest.fixture
def valuation(session: Session) -> InventoryValuationService:
    return InventoryValuationService(session)


@pytest.fixture
def invoicing(session: Session, deterministic_clock, reporting_config) -> InvoicingService:
    return InvoicingService(session, deterministic_clock, reporting_config.gst)


@pytest.fixture
def settlements(session: Session, deterministic_clock) -> SettlementService:
    return SettlementService(session, deterministic_clock)


@pytest.fixture
def reporting(session: Session, deterministic_clock, reporting_config) -> ReportingService:
    return ReportingService(session, deterministic_clock, reporting_config)


# =============================================================================
# Test data factories
# =============================================================================


@pytest.fixture
def create_product(catalog: CatalogService):
    """Factory fixture to create products with unique SKUs."""
    counter = {"n": 0}

    def _create(
        name: str = "Paracetamol 500mg",
        price: Decimal | str = "20",
        cost: Decimal | str = "10",
        expiry_alert_days: int = 30,
        low_stock_alert_qty: int = 10,
        sku: str | None = None,
    ):
        counter["n"] += 1
        return catalog.create_product(
            name=name,
            sku=sku or f"SKU-{counter['n']:04d}",
            price=Decimal(price),
            cost=Decimal(cost),
            expiry_alert_days=expiry_alert_days,
            low_stock_alert_qty=low_stock_alert_qty,
        )

    return _create


@pytest.fixture
def customer(catalog: CatalogService):
    return catalog.create_party("Acme Traders", PartyType.CUSTOMER, state="Maharashtra")


@pytest.fixture
def supplier(catalog: CatalogService):
    return catalog.create_party("Wholesale Pharma", PartyType.SUPPLIER, state="Gujarat")


@pytest.fixture
def receive_batch(invoicing: InvoicingService, supplier):
    """Factory fixture: receive a batch of a product from the default supplier."""

    def _receive(
        product,
        quantity: int,
        cost_per_item: Decimal | str,
        received_at: datetime | None = None,
        expiry_date: datetime | None = None,
        batch_number: str | None = None,
    ):
        return invoicing.record_purchase_batch(
            product_id=product.id,
            supplier_id=supplier.id,
            quantity=quantity,
            cost_per_item=Decimal(cost_per_item),
            batch_number=batch_number,
            expiry_date=expiry_date,
            received_at=received_at,
        )

    return _receive
