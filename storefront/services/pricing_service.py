"""
Cart and order price computation.

Everything in this module is pure: no database access, no clock, no logging.
Amounts are ``decimal.Decimal`` throughout; a float never enters a total.
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List, Optional, Tuple

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


@dataclass(frozen=True)
class PricedLine:
    """A cart item joined with its live catalog prices"""
    base_price: Decimal
    quantity: int
    additional_price: Optional[Decimal] = None

    @property
    def unit_price(self) -> Decimal:
        return self.base_price + (self.additional_price or ZERO)

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class CartTotals:
    """
    Result of pricing a cart.

    ``subtotal`` and ``discount_amount`` are only set when a coupon took part
    in the computation, so "no coupon" and "a coupon worth nothing" stay
    distinguishable for callers.
    """
    total: Decimal
    subtotal: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None

    @property
    def has_discount(self) -> bool:
        return self.subtotal is not None

    def as_dict(self) -> Dict[str, Any]:
        if not self.has_discount:
            return {"total": self.total}

        return {
            "subtotal": self.subtotal,
            "discount_amount": self.discount_amount,
            "total": self.total,
        }


def to_decimal(value: Any) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # go through str so 15.5 becomes Decimal("15.5"), not its binary expansion
        return Decimal(str(value))
    return Decimal(value)


def calculate_cart_total(lines: Iterable[PricedLine], discount: Optional[Decimal] = None) -> CartTotals:
    """Compute subtotal, discount and total for a set of priced lines and an optional coupon discount (percent)"""
    subtotal = sum((line.line_total for line in lines), ZERO)

    if discount is not None:
        discount_amount = subtotal * to_decimal(discount) / HUNDRED
        return CartTotals(
            total=subtotal - discount_amount,
            subtotal=subtotal,
            discount_amount=discount_amount,
        )

    return CartTotals(total=subtotal)


def apply_order_discounts(amount: Decimal, discounts: List[Decimal]) -> Tuple[Decimal, Decimal]:
    """
    Take each percentage discount, in order, off the running amount.

    Returns the final amount and the discount amount of the last coupon.
    """
    total = to_decimal(amount)
    last_discount = ZERO

    for percent in discounts:
        last_discount = total * to_decimal(percent) / HUNDRED
        total = total - last_discount

    return total, last_discount


def quantize_money(value: Decimal) -> Decimal:
    """Round an amount to cents for persistence"""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
