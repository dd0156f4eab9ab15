"""
GST engine - intra/inter-state goods and services tax split.

Pure functions with no I/O.  Only the single split the business needs is
supported: the same state for seller and customer means half CGST and half
SGST, different states means the whole amount is IGST.

Usage:
    from decimal import Decimal
    from erp_engines.tax import calculate_gst

    gst = calculate_gst(
        quantity=2,
        price_per_item=Decimal("500"),
        seller_state="Maharashtra",
        customer_state="maharashtra",
        gst_rate=18,
    )
    gst.cgst   # Decimal("90")
    gst.total  # Decimal("1180")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from erp_kernel.domain.values import ZERO, to_decimal, validate_quantity
from erp_kernel.exceptions import InvalidGstRateError
from erp_kernel.logging_config import get_logger

logger = get_logger("engines.tax")

GST_RATES: tuple[int, ...] = (0, 5, 12, 18, 28)
DEFAULT_GST_RATE = 18
DEFAULT_SELLER_STATE = "Maharashtra"

_HUNDRED = Decimal("100")
_TWO = Decimal("2")


@dataclass(frozen=True, slots=True)
class GstBreakdown:
    """Tax split for one line.  Amounts are unrounded."""

    taxable_value: Decimal
    gst_rate: Decimal
    gst_amount: Decimal
    cgst: Decimal
    sgst: Decimal
    igst: Decimal

    @property
    def total(self) -> Decimal:
        return self.taxable_value + self.gst_amount

    def __add__(self, other: GstBreakdown) -> GstBreakdown:
        if not isinstance(other, GstBreakdown):
            return NotImplemented
        return GstBreakdown(
            taxable_value=self.taxable_value + other.taxable_value,
            gst_rate=self.gst_rate if self.gst_rate == other.gst_rate else ZERO,
            gst_amount=self.gst_amount + other.gst_amount,
            cgst=self.cgst + other.cgst,
            sgst=self.sgst + other.sgst,
            igst=self.igst + other.igst,
        )


def is_intra_state(seller_state: str | None, customer_state: str | None) -> bool:
    """Case-insensitive state comparison; a missing state counts as intra-state."""
    if not seller_state or not customer_state:
        return True
    return seller_state.strip().lower() == customer_state.strip().lower()


def calculate_gst(
    quantity: int,
    price_per_item: Decimal,
    seller_state: str | None = DEFAULT_SELLER_STATE,
    customer_state: str | None = DEFAULT_SELLER_STATE,
    gst_rate: Decimal | int = DEFAULT_GST_RATE,
) -> GstBreakdown:
    """
    Compute taxable value and the CGST/SGST or IGST split for one line.

    Raises:
        InvalidQuantityError: quantity is not a non-negative int.
        InvalidAmountError: price_per_item is not a valid amount.
        InvalidGstRateError: gst_rate is not one of GST_RATES.
    """
    qty = validate_quantity(quantity)
    price = to_decimal(price_per_item, "price_per_item")
    rate = to_decimal(gst_rate, "gst_rate")
    if rate not in {Decimal(r) for r in GST_RATES}:
        logger.error("gst_rate_rejected", extra={"gst_rate": str(rate)})
        raise InvalidGstRateError(rate, GST_RATES)

    taxable = price * qty
    gst_amount = taxable * rate / _HUNDRED

    if is_intra_state(seller_state, customer_state):
        half = gst_amount / _TWO
        return GstBreakdown(taxable, rate, gst_amount, half, half, ZERO)
    return GstBreakdown(taxable, rate, gst_amount, ZERO, ZERO, gst_amount)


def no_gst(quantity: int, price_per_item: Decimal) -> GstBreakdown:
    """Breakdown for a line sold without GST."""
    taxable = to_decimal(price_per_item, "price_per_item") * validate_quantity(quantity)
    return GstBreakdown(taxable, ZERO, ZERO, ZERO, ZERO, ZERO)
