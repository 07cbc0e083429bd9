from functools import wraps
from typing import Any, Dict, List, Optional, Tuple

from ..core.config import Config
from ..exceptions import (
    APIException,
    ConflictException,
    DuplicateRecordError,
    InvalidArgumentException,
    LimitExceededException,
    MissingReferenceError,
    NotFoundException,
    StorageFailureException,
    StoreError,
    UnauthorizedException,
)
from ..models import Cart, CartItem, Coupon
from ..repos.interfaces import CartStore, CatalogReference, CouponStore
from ..utils.logging import get_logger
from .pricing_service import CartTotals, PricedLine, calculate_cart_total

logger = get_logger(__name__)


def store_guard(func):
    """Surface store failures as StorageFailureException; domain errors pass through"""
    @wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except APIException:
            raise
        except StoreError as e:
            logger.error("Storage failure in %s: %s", func.__name__, e, exc_info=True)
            raise StorageFailureException() from e

    return wrapper


def serialize_item(item: CartItem, line: Optional[PricedLine] = None) -> Dict[str, Any]:
    data = {
        "id": item.id,
        "cart_id": item.cart_id,
        "product_id": item.product_id,
        "variant_id": item.variant_id,
        "quantity": item.quantity,
    }
    if line is not None:
        data["unit_price"] = line.unit_price
        data["line_total"] = line.line_total
    return data


async def load_priced_lines(items: List[CartItem], catalog: CatalogReference) -> List[Tuple[CartItem, PricedLine]]:
    """Join cart items with live catalog prices. Items whose product vanished are skipped."""
    priced = []
    for item in items:
        product = await catalog.get_product(item.product_id)
        if not product:
            logger.warning("Cart item %s references missing product %s", item.id, item.product_id)
            continue

        additional_price = None
        if item.variant_id is not None:
            variant = await catalog.get_variant(item.variant_id)
            if variant:
                additional_price = variant.additional_price

        line = PricedLine(
            base_price=product.base_price,
            additional_price=additional_price,
            quantity=item.quantity
        )
        priced.append((item, line))

    return priced


def build_cart_details(cart: Cart, priced: List[Tuple[CartItem, PricedLine]], coupon: Optional[Coupon], totals: CartTotals) -> Dict[str, Any]:
    return {
        "cart": {
            "id": cart.id,
            "user_id": cart.user_id,
            "coupon_code": coupon.code if coupon else None,
            "items": [serialize_item(item, line) for item, line in priced],
        },
        **totals.as_dict(),
    }


class CartService:
    """
    Per-user cart: composition rules and pricing.

    Stores are injected; the service holds no state of its own between calls.
    """

    def __init__(
        self,
        cart_store: CartStore,
        catalog: CatalogReference,
        coupon_store: CouponStore,
        max_items: int = Config.CART_MAX_ITEM_LIMIT,
    ):
        self.cart_store = cart_store
        self.catalog = catalog
        self.coupon_store = coupon_store
        self.max_items = max_items

    def _require_caller(self, caller_id: Optional[int]) -> int:
        if caller_id is None:
            raise UnauthorizedException()
        return caller_id

    async def _get_user_cart(self, user_id: int, for_update: bool = False) -> Cart:
        cart = await self.cart_store.find_cart_by_owner(user_id, for_update=for_update)
        if not cart:
            raise NotFoundException("Cart not found.")
        return cart

    async def _get_or_create_cart(self, user_id: int) -> Cart:
        """Get a user's cart or create one if it doesn't exist"""
        cart = await self.cart_store.find_cart_by_owner(user_id, for_update=True)
        if cart:
            return cart

        try:
            cart = await self.cart_store.create_cart(user_id)
            logger.info("Created cart %s for user %s", cart.id, user_id)
            return cart
        except DuplicateRecordError:
            # A concurrent request created it first
            return await self._get_user_cart(user_id, for_update=True)

    async def get_cart_details(self, cart: Cart) -> Dict[str, Any]:
        """Price a cart from live catalog prices and its currently attached coupon"""
        items = await self.cart_store.list_items(cart.id)
        priced = await load_priced_lines(items, self.catalog)

        coupon = await self.coupon_store.find_cart_coupon(cart.id)
        totals = calculate_cart_total(
            [line for _, line in priced],
            coupon.discount if coupon else None
        )

        return build_cart_details(cart, priced, coupon, totals)

    @store_guard
    async def get_cart(self, caller_id: Optional[int]) -> Dict[str, Any]:
        """Get current user's cart with prices"""
        user_id = self._require_caller(caller_id)
        cart = await self._get_user_cart(user_id)
        return await self.get_cart_details(cart)

    @store_guard
    async def add_item(self, caller_id: Optional[int], product_id: int, variant_id: Optional[int] = None) -> Dict[str, Any]:
        """Add a product (and optionally one of its variants) to the cart with quantity 1"""
        user_id = self._require_caller(caller_id)

        # Check the product and variant exist in the catalog
        product = await self.catalog.get_product(product_id)
        if not product:
            raise NotFoundException(f"Product with ID {product_id} not found")

        if variant_id is not None:
            variant = await self.catalog.get_variant(variant_id)
            if not variant or variant.product_id != product_id:
                raise NotFoundException(f"Variant with ID {variant_id} not found for product {product_id}")

        cart = await self._get_or_create_cart(user_id)
        items = await self.cart_store.list_items(cart.id)

        if any(i.product_id == product_id and i.variant_id == variant_id for i in items):
            logger.warning("User %s tried to add product %s (variant %s) twice", user_id, product_id, variant_id)
            raise ConflictException("This product is already in your cart.")

        if len(items) >= self.max_items:
            logger.warning("Cart %s reached the item limit of %s", cart.id, self.max_items)
            raise LimitExceededException(
                f"Cart item limit of {self.max_items} reached. Please remove an item before adding a new one."
            )

        try:
            await self.cart_store.create_item(cart.id, product_id, variant_id, 1)
        except DuplicateRecordError:
            raise ConflictException("This product is already in your cart.")
        except MissingReferenceError:
            raise NotFoundException(f"Product with ID {product_id} not found")

        await self.cart_store.commit()
        logger.info("Added product %s (variant %s) to cart %s", product_id, variant_id, cart.id)

        return await self.get_cart_details(cart)

    @store_guard
    async def remove_item(self, caller_id: Optional[int], item_id: int) -> Dict[str, Any]:
        """Remove an item from the caller's cart"""
        user_id = self._require_caller(caller_id)
        cart = await self._get_user_cart(user_id)

        item = await self.cart_store.find_item(item_id)
        if not item or item.cart_id != cart.id:
            raise NotFoundException("Item not found in your cart.")

        await self.cart_store.delete_item(item.id)
        await self.cart_store.commit()
        logger.info("Removed item %s from cart %s", item_id, cart.id)

        return await self.get_cart_details(cart)

    @store_guard
    async def clear_cart(self, caller_id: Optional[int]) -> None:
        """Remove all items from the caller's cart. The cart itself is kept."""
        user_id = self._require_caller(caller_id)
        cart = await self._get_user_cart(user_id)

        await self.cart_store.delete_all_items(cart.id)
        await self.cart_store.commit()
        logger.info("Cleared cart %s", cart.id)

    @store_guard
    async def update_quantity(self, caller_id: Optional[int], item_id: int, quantity: Any) -> Dict[str, Any]:
        """Overwrite the quantity of a cart item. Returns the item without re-pricing the cart."""
        user_id = self._require_caller(caller_id)

        # bool is an int subclass; True is not a quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
            raise InvalidArgumentException("Quantity must be a positive integer.")

        item = await self.cart_store.find_item(item_id)
        if not item or item.cart.user_id != user_id:
            raise NotFoundException("Cart item not found.")

        updated = await self.cart_store.update_item_quantity(item.id, quantity)
        await self.cart_store.commit()
        logger.info("Set quantity of cart item %s to %s", item_id, quantity)

        return serialize_item(updated)

    @store_guard
    async def remove_coupon(self, caller_id: Optional[int]) -> Dict[str, Any]:
        """Detach the coupon from the caller's cart, if any"""
        user_id = self._require_caller(caller_id)
        cart = await self._get_user_cart(user_id)

        await self.coupon_store.delete_cart_coupon(cart.id)
        await self.coupon_store.commit()
        logger.info("Removed coupon from cart %s", cart.id)

        return await self.get_cart_details(cart)
