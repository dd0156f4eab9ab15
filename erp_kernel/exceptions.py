"""
Typed exception hierarchy for the ERP accounting engine.

Every error carries a machine-readable ``code`` class attribute and the
structured data needed to act on it, so callers catch by type and never
parse message strings.

    ErpKernelError (base)
    |
    +-- NotFoundError
    |   +-- ProductNotFoundError
    |   +-- BatchNotFoundError
    |   +-- PartyNotFoundError
    |   +-- ReceivableNotFoundError
    |   +-- PayableNotFoundError
    |
    +-- InvalidInputError
    |   +-- InvalidQuantityError
    |   +-- InvalidAmountError
    |   +-- InvalidPeriodError
    |   +-- InvalidGstRateError
    |
    +-- InconsistentStateError
    |   +-- NegativeStockError
    |
    +-- StoreUnavailableError

Error codes:

    Category      | Code                 | When raised
    --------------|----------------------|------------------------------------
    NotFound      | PRODUCT_NOT_FOUND    | Referenced product id missing
                  | BATCH_NOT_FOUND      | Consumption plan names unknown batch
                  | PARTY_NOT_FOUND      | Invoice/purchase names unknown party
                  | RECEIVABLE_NOT_FOUND | Settlement of an unknown receivable
                  | PAYABLE_NOT_FOUND    | Settlement of an unknown payable
    InvalidInput  | INVALID_QUANTITY     | Negative/non-integer quantity
                  | INVALID_AMOUNT       | Negative/non-numeric money amount
                  | INVALID_PERIOD       | Month/year out of range, bad window
                  | INVALID_GST_RATE     | Rate outside the allowed slabs
    Inconsistent  | NEGATIVE_STOCK       | Decrement would take a batch below 0
    Unavailable   | STORE_UNAVAILABLE    | Database unreachable or disconnected

Imbalance (trial balance mismatch) and oversell are deliberately NOT
exceptions: they are flagged on the returned report or result.
"""

from decimal import Decimal
from typing import Any


class ErpKernelError(Exception):
    """Base exception for all ERP accounting errors."""

    code: str = "ERP_KERNEL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)


# =============================================================================
# NotFound
# =============================================================================


class NotFoundError(ErpKernelError):
    """A referenced record does not exist."""

    code: str = "NOT_FOUND"


class ProductNotFoundError(NotFoundError):
    """Product does not exist."""

    code: str = "PRODUCT_NOT_FOUND"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Product not found: {product_id}")


class BatchNotFoundError(NotFoundError):
    """Batch referenced by a consumption plan does not exist."""

    code: str = "BATCH_NOT_FOUND"

    def __init__(self, batch_id: str):
        self.batch_id = batch_id
        super().__init__(f"Batch not found: {batch_id}")


class PartyNotFoundError(NotFoundError):
    """Customer or supplier does not exist."""

    code: str = "PARTY_NOT_FOUND"

    def __init__(self, party_id: str):
        self.party_id = party_id
        super().__init__(f"Party not found: {party_id}")


class ReceivableNotFoundError(NotFoundError):
    code: str = "RECEIVABLE_NOT_FOUND"

    def __init__(self, receivable_id: str):
        self.receivable_id = receivable_id
        super().__init__(f"Receivable not found: {receivable_id}")


class PayableNotFoundError(NotFoundError):
    code: str = "PAYABLE_NOT_FOUND"

    def __init__(self, payable_id: str):
        self.payable_id = payable_id
        super().__init__(f"Payable not found: {payable_id}")


# =============================================================================
# InvalidInput
# =============================================================================


class InvalidInputError(ErpKernelError):
    """Input rejected before any computation or mutation."""

    code: str = "INVALID_INPUT"


class InvalidQuantityError(InvalidInputError):
    """Quantity is negative, fractional, boolean or not a number."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: Any, reason: str):
        self.quantity = repr(quantity)
        self.reason = reason
        super().__init__(f"Invalid quantity {quantity!r}: {reason}")


class InvalidAmountError(InvalidInputError):
    """Monetary amount is negative, non-finite or not a number."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, field: str, amount: Any, reason: str):
        self.field = field
        self.amount = repr(amount)
        self.reason = reason
        super().__init__(f"Invalid amount for {field} ({amount!r}): {reason}")


class InvalidPeriodError(InvalidInputError):
    """Month/year out of range, or a window whose end precedes its start."""

    code: str = "INVALID_PERIOD"

    def __init__(self, message: str, year: int | None = None, month: int | None = None):
        self.year = year
        self.month = month
        super().__init__(message)


class InvalidGstRateError(InvalidInputError):
    code: str = "INVALID_GST_RATE"

    def __init__(self, rate: Decimal | int, allowed: tuple[int, ...]):
        self.rate = str(rate)
        self.allowed = list(allowed)
        super().__init__(f"GST rate {rate} not in allowed slabs {list(allowed)}")


# =============================================================================
# Inconsistent
# =============================================================================


class InconsistentStateError(ErpKernelError):
    """The record store disagrees with an operation's preconditions."""

    code: str = "INCONSISTENT_STATE"


class NegativeStockError(InconsistentStateError):
    """Applying a consumption entry would take a batch below zero."""

    code: str = "NEGATIVE_STOCK"

    def __init__(self, batch_id: str, available: int, requested: int):
        self.batch_id = batch_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Batch {batch_id} has {available} units, cannot consume {requested}"
        )


# =============================================================================
# Unavailable
# =============================================================================


class StoreUnavailableError(ErpKernelError):
    """
    The underlying record store is unreachable.

    Always raised ``from`` the driver exception. No retry is attempted here.
    """

    code: str = "STORE_UNAVAILABLE"

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"Record store unavailable during {operation}: {detail}")
