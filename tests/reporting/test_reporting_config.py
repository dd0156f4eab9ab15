"""Tests for ReportingConfig and its nested threshold settings."""

from decimal import Decimal

import pytest

from erp_engines.aging import AgingCalculator
from erp_modules.reporting.config import (
    AgingThresholds,
    ExceptionThresholds,
    GstSettings,
    ReportingConfig,
)


class TestReportingConfig:

    def test_defaults(self):
        config = ReportingConfig()

        assert config.entity_name == "Company"
        assert config.default_currency == "INR"
        assert config.display_precision == 2
        assert config.balance_tolerance == Decimal("0.01")
        assert config.interest_category == "Interest on Loans"
        assert config.gst.enabled is False

    def test_with_defaults_matches_constructor(self):
        assert ReportingConfig.with_defaults() == ReportingConfig()

    def test_from_dict_builds_nested_sections(self):
        config = ReportingConfig.from_dict({
            "entity_name": "Sharma Medicals",
            "exceptions": {"sales_drop_ratio": 0.5, "overdue_receivable_days": 45},
            "aging": {"current_max_days": 15, "overdue_max_days": 45},
            "gst": {"enabled": True, "seller_state": "Karnataka"},
        })

        assert config.exceptions.sales_drop_ratio == Decimal("0.5")
        assert config.exceptions.overdue_receivable_days == 45
        assert config.aging.current_max_days == 15
        assert config.gst.seller_state == "Karnataka"

    def test_from_dict_does_not_mutate_input(self):
        data = {"aging": {"current_max_days": 10, "overdue_max_days": 20}}

        ReportingConfig.from_dict(data)

        assert data == {"aging": {"current_max_days": 10, "overdue_max_days": 20}}

    def test_float_tolerance_converted_exactly(self):
        assert ReportingConfig(balance_tolerance=0.1).balance_tolerance == Decimal("0.1")

    @pytest.mark.parametrize("kwargs", [
        {"default_currency": "RS"},
        {"display_precision": -1},
        {"balance_tolerance": "-0.01"},
    ])
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            ReportingConfig(**kwargs)

    def test_unknown_key_rejected(self):
        with pytest.raises(TypeError):
            ReportingConfig.from_dict({"fiscal_year_start": 4})


class TestThresholds:

    def test_negative_overdue_days(self):
        with pytest.raises(ValueError):
            ExceptionThresholds(overdue_receivable_days=-1)

    @pytest.mark.parametrize("current,overdue", [(30, 30), (60, 30), (-1, 30)])
    def test_aging_order_enforced(self, current, overdue):
        with pytest.raises(ValueError):
            AgingThresholds(current_max_days=current, overdue_max_days=overdue)

    def test_custom_buckets_are_contiguous(self):
        buckets = AgingThresholds(current_max_days=15, overdue_max_days=45).buckets()

        assert [(b.min_days, b.max_days) for b in buckets] == [(0, 15), (16, 45), (46, None)]
        assert [b.status for b in buckets] == ["Current", "Overdue", "Critical"]
        AgingCalculator(buckets)

    def test_gst_rate_must_be_a_slab(self):
        with pytest.raises(ValueError):
            GstSettings(default_rate=7)
