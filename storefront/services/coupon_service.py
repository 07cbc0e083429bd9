from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from ..exceptions import (
    ConflictException,
    CouponExpiredException,
    DuplicateRecordError,
    NotFoundException,
)
from ..models import Cart, Coupon, Order
from ..repos.interfaces import CartStore, CatalogReference, CouponStore
from ..schemas.coupon import CouponCreate, CouponUpdate
from ..utils.logging import get_logger
from .cart_service import build_cart_details, load_priced_lines, store_guard
from .pricing_service import apply_order_discounts, calculate_cart_total, quantize_money

logger = get_logger(__name__)


def as_utc(dt: datetime) -> datetime:
    """Treat naive datetimes coming back from the database as UTC"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def serialize_coupon(coupon: Coupon) -> Dict[str, Any]:
    return {
        "id": coupon.id,
        "code": coupon.code,
        "discount": coupon.discount,
        "expiry_date": as_utc(coupon.expiry_date),
    }


class CouponService:
    """
    Coupon administration and the two attach paths.

    A cart holds at most one coupon: attaching another replaces it. An order
    can collect several distinct coupons; its total is always re-derived from
    the amount it was placed with and the discounts recorded on each
    attachment, in attachment order.
    """

    def __init__(self, coupon_store: CouponStore, cart_store: CartStore, catalog: CatalogReference):
        self.coupon_store = coupon_store
        self.cart_store = cart_store
        self.catalog = catalog

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def _get_valid_coupon(self, coupon_code: str) -> Coupon:
        """Get a coupon by code and make sure it has not expired"""
        coupon = await self.coupon_store.find_by_code(coupon_code)
        if not coupon:
            raise NotFoundException("Coupon not found")

        if as_utc(coupon.expiry_date) < self._now():
            logger.warning("Rejected expired coupon %s", coupon.code)
            raise CouponExpiredException()

        return coupon

    async def _get_coupon(self, coupon_id: int) -> Coupon:
        coupon = await self.coupon_store.find_by_id(coupon_id)
        if not coupon:
            raise NotFoundException("Coupon not found")
        return coupon

    # Attach

    @store_guard
    async def apply_coupon_to_cart(self, cart_id: int, coupon_code: str, caller_id: Optional[int] = None) -> Dict[str, Any]:
        """Attach a coupon to a cart, replacing any coupon already attached"""
        cart: Optional[Cart] = await self.cart_store.get_cart(cart_id)
        if not cart or (caller_id is not None and cart.user_id != caller_id):
            raise NotFoundException("Cart not found")

        coupon = await self._get_valid_coupon(coupon_code)

        # Check if coupon is already applied to the cart
        current = await self.coupon_store.find_cart_coupon(cart.id)
        if current and current.id == coupon.id:
            raise ConflictException("Coupon is already applied to this cart")

        await self.coupon_store.upsert_cart_coupon(cart.id, coupon.id)
        await self.coupon_store.commit()

        if current:
            logger.info("Replaced coupon %s with %s on cart %s", current.code, coupon.code, cart.id)
        else:
            logger.info("Applied coupon %s to cart %s", coupon.code, cart.id)

        items = await self.cart_store.list_items(cart.id)
        priced = await load_priced_lines(items, self.catalog)
        totals = calculate_cart_total([line for _, line in priced], coupon.discount)

        return build_cart_details(cart, priced, coupon, totals)

    @store_guard
    async def apply_coupon_to_order(self, order_id: int, coupon_code: str, caller_id: Optional[int] = None) -> Dict[str, Any]:
        """Attach a coupon to an order and persist the recomputed order total"""
        # Lock the order so the applied coupons read below stay current until commit
        order: Optional[Order] = await self.coupon_store.find_order(order_id, for_update=True)
        if not order or (caller_id is not None and order.user_id != caller_id):
            raise NotFoundException("Order not found")

        coupon = await self._get_valid_coupon(coupon_code)

        # Check if coupon is already applied to the order
        if await self.coupon_store.find_order_coupon(order.id, coupon.id):
            raise ConflictException("Coupon is already applied to this order")

        applied = await self.coupon_store.list_order_coupons(order.id)

        try:
            await self.coupon_store.create_order_coupon(order.id, coupon.id, coupon.discount)
        except DuplicateRecordError:
            raise ConflictException("Coupon is already applied to this order")

        discounts: List[Decimal] = [link.discount for link in applied] + [coupon.discount]
        total, discount_amount = apply_order_discounts(order.subtotal_amount, discounts)

        order = await self.coupon_store.update_order_total(order.id, quantize_money(total))
        await self.coupon_store.commit()
        logger.info("Applied coupon %s to order %s, total is now %s", coupon.code, order.id, order.total_amount)

        return {
            "id": order.id,
            "user_id": order.user_id,
            "subtotal_amount": order.subtotal_amount,
            "total_amount": order.total_amount,
            "discount_amount": quantize_money(discount_amount),
            "coupon_codes": [link.coupon.code for link in applied] + [coupon.code],
        }

    # Administration

    @store_guard
    async def create_coupon(self, coupon_data: CouponCreate) -> Dict[str, Any]:
        """Create a new coupon"""
        if await self.coupon_store.find_by_code(coupon_data.code):
            raise ConflictException("Coupon code already exists")

        try:
            coupon = await self.coupon_store.create_coupon(
                code=coupon_data.code,
                discount=coupon_data.discount,
                expiry_date=coupon_data.expiry_date
            )
        except DuplicateRecordError:
            raise ConflictException("Coupon code already exists")

        await self.coupon_store.commit()
        logger.info("Created coupon %s", coupon.code)

        return serialize_coupon(coupon)

    @store_guard
    async def list_coupons(self) -> List[Dict[str, Any]]:
        return [serialize_coupon(c) for c in await self.coupon_store.list_coupons()]

    @store_guard
    async def get_coupon(self, coupon_id: int) -> Dict[str, Any]:
        return serialize_coupon(await self._get_coupon(coupon_id))

    @store_guard
    async def update_coupon(self, coupon_id: int, coupon_data: CouponUpdate) -> Dict[str, Any]:
        """Update the fields that were provided"""
        coupon = await self._get_coupon(coupon_id)
        fields = coupon_data.model_dump(exclude_unset=True)

        # If code is being updated, check for uniqueness
        if fields.get("code") and fields["code"] != coupon.code:
            existing = await self.coupon_store.find_by_code(fields["code"])
            if existing and existing.id != coupon.id:
                raise ConflictException("Coupon code already exists")

        try:
            coupon = await self.coupon_store.update_coupon(coupon, fields)
        except DuplicateRecordError:
            raise ConflictException("Coupon code already exists")

        await self.coupon_store.commit()
        logger.info("Updated coupon %s: %s", coupon.id, ", ".join(sorted(fields)))

        return serialize_coupon(coupon)

    @store_guard
    async def delete_coupon(self, coupon_id: int) -> None:
        """Delete a coupon that no order uses. Carts holding it lose it."""
        coupon = await self._get_coupon(coupon_id)

        if await self.coupon_store.coupon_in_orders(coupon.id):
            raise ConflictException("Cannot delete coupon as it is being used in orders")

        await self.coupon_store.delete_coupon(coupon)
        await self.coupon_store.commit()
        logger.info("Deleted coupon %s", coupon.code)
