"""Tests for render_to_dict, the JSON-friendly report renderer."""

import json
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from erp_engines.ledger import LedgerRow
from erp_modules.reporting.models import (
    CashFlowLine,
    GeneralLedgerReport,
    ReportMetadata,
    ReportType,
    TrialBalanceStatus,
)
from erp_modules.reporting.statements import render_to_dict

GENERATED = datetime(2024, 4, 1, 9, 30, tzinfo=timezone.utc)


def _meta() -> ReportMetadata:
    return ReportMetadata(
        report_type=ReportType.GENERAL_LEDGER,
        entity_name="Sharma Medicals",
        currency="INR",
        generated_at=GENERATED.isoformat(),
        period_start=datetime(2024, 3, 1, tzinfo=timezone.utc),
        period_end=datetime(2024, 4, 1, tzinfo=timezone.utc),
    )


class TestScalars:

    def test_decimal_rounded_half_up(self):
        assert render_to_dict(Decimal("2.345")) == "2.35"
        assert render_to_dict(Decimal("-2.345")) == "-2.35"

    def test_custom_precision(self):
        assert render_to_dict(Decimal("1.23456"), precision=3) == "1.235"
        assert render_to_dict(Decimal("7"), precision=0) == "7"

    def test_enum_uuid_datetime(self):
        uid = UUID("12345678-1234-5678-1234-567812345678")

        assert render_to_dict(TrialBalanceStatus.MISMATCH) == "Mismatch"
        assert render_to_dict(uid) == "12345678-1234-5678-1234-567812345678"
        assert render_to_dict(GENERATED) == "2024-04-01T09:30:00+00:00"

    def test_plain_values_and_none(self):
        assert render_to_dict(None) is None
        assert render_to_dict(3) == 3
        assert render_to_dict(True) is True
        assert render_to_dict("x") == "x"


class TestNested:

    def test_dataclass_and_tuple(self):
        lines = (CashFlowLine("Cash received from customers", Decimal("1000")),)

        assert render_to_dict(lines) == [
            {"label": "Cash received from customers", "amount": "1000.00"},
        ]

    def test_full_report_is_json_serializable(self):
        row = LedgerRow(
            date=datetime(2024, 3, 5, 10, tzinfo=timezone.utc),
            account="Accounts Receivable",
            reference="Invoice: INV-000001",
            debit=Decimal("1000"),
            credit=Decimal("0"),
        )
        report = GeneralLedgerReport(
            metadata=_meta(),
            rows=(row,),
            account_filter=None,
            total_debit=Decimal("1000"),
            total_credit=Decimal("1000"),
        )

        rendered = render_to_dict(report)

        assert rendered["metadata"]["report_type"] == "general_ledger"
        assert rendered["metadata"]["as_of"] is None
        assert rendered["rows"][0]["debit"] == "1000.00"
        assert rendered["rows"][0]["date"] == "2024-03-05T10:00:00+00:00"
        assert rendered["accounts"] == []
        json.dumps(rendered)
