"""
Tests for translating connectivity failures into StoreUnavailableError.
"""

from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from erp_kernel.exceptions import ErpKernelError, StoreUnavailableError
from erp_kernel.selectors.base import store_guard
from erp_kernel.selectors.inventory_selector import InventorySelector


def _operational_error() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("could not connect to server"))


class TestStoreGuard:

    def test_operational_error_translated(self):
        with pytest.raises(StoreUnavailableError) as exc_info:
            with store_guard("list_batches"):
                raise _operational_error()

        err = exc_info.value
        assert err.code == "STORE_UNAVAILABLE"
        assert err.operation == "list_batches"
        assert "could not connect" in err.detail
        assert isinstance(err.__cause__, OperationalError)
        assert isinstance(err, ErpKernelError)

    def test_other_errors_pass_through(self):
        integrity = IntegrityError("INSERT", {}, Exception("duplicate key"))
        with pytest.raises(IntegrityError):
            with store_guard("insert"):
                raise integrity

    def test_failure_logged(self, captured_logs):
        with pytest.raises(StoreUnavailableError):
            with store_guard("trial_balance"):
                raise _operational_error()

        records = [r for r in captured_logs() if r["message"] == "record_store_unavailable"]
        assert records[0]["operation"] == "trial_balance"
        assert records[0]["error_type"] == "OperationalError"


class TestSelectorUnavailable:

    def test_selector_raises_store_unavailable(self):
        session = MagicMock()
        session.execute.side_effect = _operational_error()
        session.scalars.side_effect = _operational_error()

        with pytest.raises(StoreUnavailableError):
            InventorySelector(session).list_batches(str(uuid4()))
