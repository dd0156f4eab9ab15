"""
Values -- Decimal money helpers, quantity validation and settlement status.

Responsibility:
    The foundational value rules every engine relies on: amounts are
    ``Decimal`` (never ``float``), quantities are non-negative ``int``,
    and a receivable/payable status is a pure function of its outstanding
    amount.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Internal arithmetic keeps full Decimal precision; ``round_money`` is
      called only at output boundaries.
    - ``PaymentStatus`` is never stored; ``derive_status`` is the only way
      to obtain it.

Failure modes:
    - InvalidQuantityError for negative, fractional, boolean or non-numeric
      quantities.
    - InvalidAmountError for negative, non-finite or non-numeric amounts.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any

from erp_kernel.exceptions import InvalidAmountError, InvalidQuantityError

ZERO = Decimal("0")
MONEY_QUANTUM = Decimal("0.01")
DEFAULT_CURRENCY = "INR"


class PaymentStatus(str, Enum):
    """Settlement status of a receivable or payable."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class PartyType(str, Enum):
    CUSTOMER = "CUSTOMER"
    SUPPLIER = "SUPPLIER"


class EntrySide(str, Enum):
    """Side of a party ledger transaction."""

    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class StockDirection(str, Enum):
    IN = "IN"
    OUT = "OUT"


class InvoiceType(str, Enum):
    SALES = "SALES"
    PURCHASE = "PURCHASE"


def derive_status(outstanding_amount: Decimal) -> PaymentStatus:
    """PENDING iff something is still owed, else COMPLETED."""
    if outstanding_amount > ZERO:
        return PaymentStatus.PENDING
    return PaymentStatus.COMPLETED


def round_money(amount: Decimal, places: int = 2) -> Decimal:
    """
    Round a Decimal half-up to ``places`` decimal places.

    Only used at output boundaries (CogsResult, rendered reports).
    """
    quantum = MONEY_QUANTUM if places == 2 else Decimal(1).scaleb(-places)
    return amount.quantize(quantum, rounding=ROUND_HALF_UP)


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """
    Coerce a str/int/Decimal into a Decimal. Floats and bools are rejected.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmountError(field, value, "must be Decimal, int or str")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise InvalidAmountError(field, value, "not a number") from exc
    else:
        raise InvalidAmountError(field, value, "must be Decimal, int or str")
    if not result.is_finite():
        raise InvalidAmountError(field, value, "must be finite")
    return result


def validate_amount(value: Any, field: str = "amount") -> Decimal:
    """Coerce to Decimal and require it to be >= 0."""
    result = to_decimal(value, field)
    if result < ZERO:
        raise InvalidAmountError(field, value, "must not be negative")
    return result


def validate_quantity(value: Any, *, allow_zero: bool = True) -> int:
    """
    Require a non-negative ``int`` quantity.

    ``bool`` is rejected even though it subclasses ``int``.
    """
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidQuantityError(value, "must be an integer")
    if value < 0:
        raise InvalidQuantityError(value, "must not be negative")
    if value == 0 and not allow_zero:
        raise InvalidQuantityError(value, "must be positive")
    return value
