"""Database layer - engine, session scope and declarative base."""

from erp_kernel.db.base import UUID, Base, TimestampedBase, UUIDString
from erp_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "Base",
    "TimestampedBase",
    "UUIDString",
    "UUID",
]
