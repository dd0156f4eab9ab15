"""
Tests for SettlementService: receivable/payable updates and expenses.
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from erp_kernel.domain.values import PaymentStatus
from erp_kernel.exceptions import (
    InvalidAmountError,
    InvalidInputError,
    PayableNotFoundError,
    ReceivableNotFoundError,
)
from erp_services.invoicing_service import SaleLine

MARCH_5 = datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc)
APRIL_2 = datetime(2024, 4, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def sale(invoicing, create_product, receive_batch, customer):
    product = create_product(price="50")
    receive_batch(product, 10, "30", received_at=MARCH_5)
    return invoicing.record_sale(customer.id, [SaleLine(product.id, 2)], MARCH_5)


@pytest.fixture
def purchase(invoicing, create_product, supplier):
    product = create_product()
    return invoicing.record_purchase_batch(product.id, supplier.id, 10, "6", received_at=MARCH_5)


class TestUpdateReceivable:

    def test_full_settlement_completes_at_clock_time(self, settlements, sale, deterministic_clock):
        deterministic_clock.set_time(APRIL_2)

        record = settlements.update_receivable(sale.receivable_id, 0)

        assert record.status is PaymentStatus.COMPLETED
        assert record.is_settled
        assert record.updated_at == APRIL_2

    def test_partial_payment_stays_pending(self, settlements, sale):
        record = settlements.update_receivable(sale.receivable_id, "40")

        assert record.outstanding_amount == Decimal("40")
        assert record.status is PaymentStatus.PENDING

    def test_above_total_rejected(self, settlements, sale):
        with pytest.raises(InvalidAmountError):
            settlements.update_receivable(sale.receivable_id, "100.01")

    def test_negative_rejected(self, settlements, sale):
        with pytest.raises(InvalidAmountError):
            settlements.update_receivable(sale.receivable_id, -1)

    def test_unknown_receivable(self, settlements, engine):
        with pytest.raises(ReceivableNotFoundError):
            settlements.update_receivable(uuid4(), 0)

    def test_malformed_id(self, settlements, engine):
        with pytest.raises(ReceivableNotFoundError):
            settlements.update_receivable("INV-000001", 0)

    def test_update_logged(self, settlements, sale, captured_logs):
        settlements.update_receivable(sale.receivable_id, 0)

        records = [r for r in captured_logs() if r["message"] == "receivable_updated"]
        assert records[0]["status"] == "COMPLETED"
        assert records[0]["receivable_id"] == sale.receivable_id


class TestUpdatePayable:

    def test_settle_payable(self, settlements, purchase, deterministic_clock):
        deterministic_clock.set_time(APRIL_2)

        record = settlements.update_payable(purchase.payable_id, 0)

        assert record.status is PaymentStatus.COMPLETED
        assert record.updated_at == APRIL_2

    def test_unknown_payable(self, settlements, engine):
        with pytest.raises(PayableNotFoundError):
            settlements.update_payable(uuid4(), 0)

    def test_reopening_is_allowed(self, settlements, purchase):
        settlements.update_payable(purchase.payable_id, 0)

        record = settlements.update_payable(purchase.payable_id, "60")

        assert record.status is PaymentStatus.PENDING


class TestRecordExpense:

    def test_record_expense(self, settlements):
        expense = settlements.record_expense("March rent", "Rent", "1500", MARCH_5)

        assert expense.amount == Decimal("1500")
        assert expense.expense_date == MARCH_5
        assert expense.payment_mode == "CASH"

    def test_defaults_to_clock(self, settlements, deterministic_clock):
        expense = settlements.record_expense("Tea", "Office", 30)

        assert expense.expense_date == deterministic_clock.now()

    def test_requires_title_and_category(self, settlements):
        with pytest.raises(InvalidInputError):
            settlements.record_expense("", "Rent", 10)
        with pytest.raises(InvalidInputError):
            settlements.record_expense("Rent", "", 10)

    def test_rejects_float_amount(self, settlements):
        with pytest.raises(InvalidAmountError):
            settlements.record_expense("Rent", "Rent", 10.5)

    def test_rejects_non_datetime_date(self, settlements):
        with pytest.raises(InvalidInputError):
            settlements.record_expense("Rent", "Rent", 10, expense_date="2024-03-01")
