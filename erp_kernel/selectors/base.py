"""
Module: erp_kernel.selectors.base
Responsibility: Base class for read-only selectors, plus the translation of
    driver connectivity failures into StoreUnavailableError.
Architecture position: Kernel > Selectors.  May import from db/, models/ and
    domain/.  MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Selectors never add, delete, flush or commit.
    - Selectors return frozen snapshot DTOs, never ORM instances.
    - The caller owns the session and its transaction scope.

Failure modes:
    - StoreUnavailableError (chained from the SQLAlchemy error) when the
      database is unreachable.  No retry is attempted.
"""

from abc import ABC
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Any, Iterator

from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from erp_kernel.domain.period import as_utc
from erp_kernel.domain.values import ZERO
from erp_kernel.exceptions import StoreUnavailableError
from erp_kernel.logging_config import get_logger

logger = get_logger("selectors")

UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, DisconnectionError)


@contextmanager
def store_guard(operation: str) -> Iterator[None]:
    """Re-raise connectivity failures inside the block as StoreUnavailableError."""
    try:
        yield
    except UNAVAILABLE_ERRORS as exc:
        detail = str(getattr(exc, "orig", None) or exc)
        logger.error(
            "record_store_unavailable",
            extra={"operation": operation, "error_type": type(exc).__name__},
        )
        raise StoreUnavailableError(operation, detail) from exc


def to_decimal_or_zero(value: Any) -> Decimal:
    """Aggregate results may come back as None, int or float on some dialects."""
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def utc_or_none(value: datetime | None) -> datetime | None:
    return as_utc(value) if value is not None else None


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Contract:
        Selectors accept a Session from the caller, perform read-only queries,
        and return DTOs or computed results.  They MUST NOT mutate any data.
    """

    def __init__(self, session: Session):
        self.session = session
