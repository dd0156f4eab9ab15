"""
Integration tests for ReportingService over a real (in-memory) record store.

The central scenario: a 1000 invoice in March with 600 COGS and a 100
expense, collected in April.  Profit lands in March; the cash lands in
April; the balance sheet balances at every cutoff.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from erp_kernel.domain.period import ReportingWindow, month_end_cutoff
from erp_kernel.domain.values import PartyType
from erp_kernel.exceptions import InvalidInputError, InvalidPeriodError
from erp_modules.reporting.models import ExceptionKind, TrialBalanceStatus
from erp_modules.reporting.statements import UNEXPLAINED_RESIDUAL
from erp_services.invoicing_service import SaleLine

MARCH = ReportingWindow.for_month(2024, 3)
APRIL = ReportingWindow.for_month(2024, 4)
MARCH_END = month_end_cutoff(2024, 3)
APRIL_END = month_end_cutoff(2024, 4)


def _at(month: int, day: int, hour: int = 10) -> datetime:
    return datetime(2024, month, day, hour, tzinfo=timezone.utc)


@pytest.fixture
def march_business(create_product, receive_batch, invoicing, settlements, customer, deterministic_clock):
    """
    1 Mar: buy 10 units at 60 on credit.
    5 Mar: sell all 10 at 100 on credit.
    10 Mar: pay 100 rent.
    """
    product = create_product(name="Insulin Pen", price="100", cost="60")
    purchase = receive_batch(product, 10, "60", received_at=_at(3, 1))
    sale = invoicing.record_sale(customer.id, [SaleLine(product.id, 10)], _at(3, 5))
    settlements.record_expense("March rent", "Rent", "100", _at(3, 10))
    deterministic_clock.set_time(_at(3, 31, 18))
    return {"product": product, "purchase": purchase, "sale": sale}


@pytest.fixture
def settled_in_april(march_business, settlements, deterministic_clock):
    """Customer pays on 10 Apr; supplier is paid on 12 Apr."""
    deterministic_clock.set_time(_at(4, 10))
    settlements.update_receivable(march_business["sale"].receivable_id, 0)
    deterministic_clock.set_time(_at(4, 12))
    settlements.update_payable(march_business["purchase"].payable_id, 0)
    deterministic_clock.set_time(_at(4, 30, 18))
    return march_business


class TestProfitVersusCashTiming:

    def test_profit_recognized_in_invoice_month(self, reporting, settled_in_april):
        march = reporting.profit_and_loss(MARCH)
        april = reporting.profit_and_loss(APRIL)

        assert march.revenue == Decimal("1000")
        assert march.cogs == Decimal("600")
        assert march.expenses == Decimal("100")
        assert march.net_profit == Decimal("300")
        assert april.net_profit == Decimal("0")

    def test_cash_recognized_in_settlement_month(self, reporting, settled_in_april):
        march = reporting.cash_flow(MARCH)
        april = reporting.cash_flow(APRIL)

        assert march.cash_received_from_customers == Decimal("0")
        assert march.net_cash_flow == Decimal("-100")
        assert april.cash_received_from_customers == Decimal("1000")
        assert april.cash_paid_to_suppliers == Decimal("600")
        assert april.net_cash_flow == Decimal("400")

    @pytest.mark.parametrize("window", [MARCH, APRIL])
    def test_reconciliation_fully_explained(self, reporting, settled_in_april, window):
        report = reporting.reconciliation(window)

        assert report.is_fully_explained
        assert report.unexplained_residual == Decimal("0")
        assert report.net_profit + report.total_adjustments == report.net_cash_flow
        assert report.adjustments[-1].label == UNEXPLAINED_RESIDUAL


class TestBalanceSheet:

    def test_balances_at_each_month_end(self, reporting, settled_in_april):
        for cutoff in (MARCH_END, APRIL_END):
            report = reporting.balance_sheet(cutoff)
            assert report.total_assets == report.total_liabilities_and_equity

    def test_march_position_uses_settlements_known_at_cutoff(self, reporting, settled_in_april):
        report = reporting.balance_sheet(MARCH_END)

        assert report.cash_bank == Decimal("-100")
        assert report.accounts_receivable == Decimal("1000")
        assert report.accounts_payable == Decimal("600")
        assert report.total_equity == Decimal("300")

    def test_april_position_after_settlement(self, reporting, settled_in_april):
        report = reporting.balance_sheet(APRIL_END)

        assert report.cash_bank == Decimal("300")
        assert report.accounts_receivable == Decimal("0")
        assert report.accounts_payable == Decimal("0")
        assert report.total_equity == Decimal("300")

    def test_inventory_counts_remaining_stock(self, reporting, march_business, receive_batch):
        receive_batch(march_business["product"], 5, "70", received_at=_at(3, 20))

        report = reporting.balance_sheet(MARCH_END)

        assert report.inventory_value == Decimal("350")

    def test_batches_received_after_cutoff_excluded(self, reporting, march_business, receive_batch):
        receive_batch(march_business["product"], 5, "70", received_at=_at(4, 2))

        report = reporting.balance_sheet(MARCH_END)

        assert report.inventory_value == Decimal("0")


class TestGeneralLedger:

    def test_march_ledger_balances(self, reporting, march_business):
        report = reporting.general_ledger(MARCH)

        assert report.is_balanced
        assert report.total_debit == Decimal("2300")
        assert [r.reference for r in report.rows[:2]] == [
            "Purchase Batch: B-000001",
            "Purchase Batch: B-000001",
        ]

    def test_account_filter(self, reporting, settled_in_april):
        report = reporting.general_ledger(APRIL, account="Cash / Bank")

        assert [(r.debit, r.credit) for r in report.rows] == [
            (Decimal("1000"), Decimal("0")),
            (Decimal("0"), Decimal("600")),
        ]
        assert report.total_debit == report.total_credit == Decimal("1600")

    def test_invalid_window(self, reporting, engine):
        with pytest.raises(InvalidPeriodError):
            reporting.general_ledger((2024, 3))


class TestTrialBalance:

    def test_mismatch_is_flagged_not_raised(self, reporting, march_business, captured_logs):
        report = reporting.trial_balance(MARCH_END)

        assert report.total_debit == Decimal("1100")
        assert report.total_credit == Decimal("600")
        assert report.status is TrialBalanceStatus.MISMATCH
        assert any(r["message"] == "trial_balance_mismatch" for r in captured_logs())

    def test_cutoff_is_inclusive(self, reporting, march_business):
        report = reporting.trial_balance(_at(3, 5))

        names = [line.account_name for line in report.lines]
        assert "Acme Traders" in names
        assert "Expense: Rent" not in names

    def test_invalid_cutoff(self, reporting, engine):
        with pytest.raises(InvalidPeriodError):
            reporting.trial_balance("2024-03-31")


class TestRepeatability:

    @pytest.mark.parametrize("method, argument", [
        ("general_ledger", MARCH),
        ("trial_balance", MARCH_END),
        ("balance_sheet", MARCH_END),
        ("cash_flow", MARCH),
        ("profit_and_loss", MARCH),
        ("reconciliation", MARCH),
        ("party_performance", MARCH),
        ("financial_health", MARCH),
    ])
    def test_same_store_same_report(self, reporting, settled_in_april, method, argument):
        build = getattr(reporting, method)

        first = build(argument)
        second = build(argument)

        assert first == second
        assert reporting.to_dict(first) == reporting.to_dict(second)


class TestOperationalReports:

    def test_alerts(self, reporting, create_product, receive_batch):
        product = create_product(name="Eye Drops", expiry_alert_days=30, low_stock_alert_qty=10)
        receive_batch(product, 5, "12", expiry_date=_at(1, 20, 0))

        report = reporting.alerts()

        assert [a.remaining_days for a in report.expiring_batches] == [19]
        assert [a.product_name for a in report.low_stock_products] == ["Eye Drops"]
        assert report.total_alerts == 2

    def test_aging_and_overdue_exceptions(self, reporting, create_product, receive_batch,
                                          invoicing, customer, deterministic_clock):
        product = create_product(price="20")
        receive_batch(product, 10, "10")
        invoicing.record_sale(customer.id, [SaleLine(product.id, 2)], _at(1, 2))
        deterministic_clock.set_time(_at(3, 15, 12))

        aging = reporting.aging()
        assert [(i.age_days, i.status) for i in aging.receivables] == [(73, "Critical")]
        assert aging.customer_exposure == (("Acme Traders", Decimal("40")),)

        exceptions = reporting.exception_report(MARCH)
        overdue = exceptions.of_kind(ExceptionKind.OVERDUE_RECEIVABLE)
        assert [i.message for i in overdue] == ["Acme Traders owes 40.00 for 73 days"]

    def test_sales_drop_month_over_month(self, reporting, settled_in_april):
        report = reporting.exception_report(APRIL)

        drops = report.of_kind(ExceptionKind.SALES_DROP)
        assert [i.message for i in drops] == ["Sales down 100.00% vs previous month"]

    def test_exception_report_for_first_supported_month(self, reporting, settlements):
        january_1900 = ReportingWindow.for_month(1900, 1)
        settlements.record_expense("Opening rent", "Rent", "100", datetime(1900, 1, 10, tzinfo=timezone.utc))

        report = reporting.exception_report(january_1900)

        assert report.items == ()
        assert report.metadata.period_start == january_1900.start

    def test_stock_summary_reports_oversell_drift(self, reporting, create_product, receive_batch,
                                                  invoicing, customer, captured_logs):
        product = create_product(name="Bandage")
        receive_batch(product, 30, "2")
        invoicing.record_sale(customer.id, [SaleLine(product.id, 40)])

        report = reporting.stock_summary()

        line = report.lines[0]
        assert (line.stock_in, line.stock_out, line.batch_stock) == (30, 40, 0)
        assert line.drift == 10
        assert any(r["message"] == "stock_drift_detected" for r in captured_logs())


class TestPartyPerformance:

    def test_settled_customer(self, reporting, settled_in_april, catalog):
        catalog.create_party("Zen Clinic", PartyType.CUSTOMER)

        report = reporting.party_performance(MARCH)

        assert report.party_type is PartyType.CUSTOMER
        assert [line.party_name for line in report.lines] == ["Acme Traders", "Zen Clinic"]
        acme, zen = report.lines
        assert acme.total_invoiced == Decimal("1000")
        assert acme.outstanding == Decimal("0")
        assert acme.average_delay_days == 36  # 5 Mar -> 10 Apr
        assert (zen.total_invoiced, zen.document_count, zen.average_delay_days) == (Decimal("0"), 0, 0)

    def test_open_invoice_ages_to_clock(self, reporting, march_business):
        report = reporting.party_performance(MARCH)

        line = report.lines[0]
        assert line.outstanding == Decimal("1000")
        assert line.average_delay_days == 26  # 5 Mar 10:00 -> 31 Mar 18:00

    def test_invoices_outside_window_ignored(self, reporting, settled_in_april):
        report = reporting.party_performance(APRIL)

        assert report.lines[0].document_count == 0
        assert report.lines[0].total_invoiced == Decimal("0")

    def test_suppliers_use_purchased_batches(self, reporting, settled_in_april):
        report = reporting.party_performance(MARCH, "SUPPLIER")

        line = report.lines[0]
        assert line.party_name == "Wholesale Pharma"
        assert line.total_invoiced == Decimal("600")
        assert line.outstanding == Decimal("0")
        assert line.average_delay_days == 42  # 1 Mar -> 12 Apr

    def test_unknown_party_type(self, reporting, engine):
        with pytest.raises(InvalidInputError):
            reporting.party_performance(MARCH, "VENDOR")

    def test_logged(self, reporting, march_business, captured_logs):
        reporting.party_performance(MARCH)

        records = [r for r in captured_logs() if r["message"] == "party_performance_generated"]
        assert records[0]["party_type"] == "CUSTOMER"
        assert records[0]["party_count"] == 1


class TestFinancialHealth:

    def test_march_kpis(self, reporting, settled_in_april):
        report = reporting.financial_health(MARCH)

        assert report.total_sales == Decimal("1000")
        assert report.total_expenses == Decimal("100")
        assert report.net_profit_loss == Decimal("900")
        # both settled in April, so still open at the March cutoff
        assert report.total_receivable == Decimal("1000")
        assert report.total_payable == Decimal("600")
        assert report.net_outstanding == Decimal("400")
        assert report.metadata.as_of == MARCH_END

    def test_april_kpis(self, reporting, settled_in_april):
        report = reporting.financial_health(APRIL)

        assert report.total_sales == Decimal("0")
        assert report.total_receivable == Decimal("0")
        assert report.total_payable == Decimal("0")
        assert report.net_outstanding == Decimal("0")

    def test_invalid_window(self, reporting, engine):
        with pytest.raises(InvalidPeriodError):
            reporting.financial_health("2024-03")


class TestRendering:

    def test_to_dict(self, reporting, settled_in_april):
        rendered = reporting.to_dict(reporting.balance_sheet(APRIL_END))

        assert rendered["metadata"]["report_type"] == "balance_sheet"
        assert rendered["metadata"]["currency"] == "INR"
        assert rendered["cash_bank"] == "300.00"
        assert rendered["metadata"]["as_of"] == APRIL_END.isoformat()
