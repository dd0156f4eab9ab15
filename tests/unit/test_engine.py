"""Tests for record-store engine setup."""

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.pool import StaticPool

from erp_kernel.db.engine import (
    create_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from erp_kernel.services.sequence_service import SequenceCounter


@pytest.fixture(autouse=True)
def _fresh_engine():
    reset_engine()
    yield
    reset_engine()


def test_session_requires_initialization():
    with pytest.raises(RuntimeError, match="not initialized"):
        get_session()


def test_in_memory_sqlite_shares_one_connection():
    engine = init_engine_from_url("sqlite://")
    create_tables()

    assert isinstance(engine.pool, StaticPool)
    assert "document_series" in inspect(engine).get_table_names()


def test_file_sqlite_uses_regular_pool(tmp_path):
    engine = init_engine_from_url(f"sqlite:///{tmp_path / 'erp.db'}")

    assert not isinstance(engine.pool, StaticPool)
    with engine.connect() as conn:
        assert conn.execute(text("select 1")).scalar() == 1


def test_session_scope_rolls_back_on_error():
    init_engine_from_url("sqlite://")
    create_tables()

    with pytest.raises(ValueError):
        with session_scope() as session:
            session.add(SequenceCounter(name="batch", last_value=1))
            session.flush()
            raise ValueError("abort")

    with session_scope() as session:
        assert session.query(SequenceCounter).count() == 0
