"""
Operations the cart and coupon services need from the outside world.

The SQLAlchemy repositories in this package implement them; tests use
in-memory versions. Implementations raise the store errors from
``storefront.exceptions`` (``StoreError`` and subclasses) and nothing else.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Protocol

from ..models import Cart, CartItem, Coupon, Order, OrderCoupon, Product, ProductVariant


class CatalogReference(Protocol):
    async def get_product(self, product_id: int) -> Optional[Product]: ...

    async def get_variant(self, variant_id: int) -> Optional[ProductVariant]: ...


class CartStore(Protocol):
    async def find_cart_by_owner(self, user_id: int, for_update: bool = False) -> Optional[Cart]: ...

    async def get_cart(self, cart_id: int) -> Optional[Cart]: ...

    async def create_cart(self, user_id: int) -> Cart: ...

    async def list_items(self, cart_id: int) -> List[CartItem]: ...

    async def create_item(self, cart_id: int, product_id: int, variant_id: Optional[int], quantity: int) -> CartItem: ...

    async def delete_item(self, item_id: int) -> None: ...

    async def delete_all_items(self, cart_id: int) -> None: ...

    async def update_item_quantity(self, item_id: int, quantity: int) -> CartItem: ...

    async def find_item(self, item_id: int) -> Optional[CartItem]: ...

    async def commit(self) -> None: ...


class CouponStore(Protocol):
    async def find_by_code(self, code: str) -> Optional[Coupon]: ...

    async def find_by_id(self, coupon_id: int) -> Optional[Coupon]: ...

    async def list_coupons(self) -> List[Coupon]: ...

    async def create_coupon(self, code: str, discount: Decimal, expiry_date: datetime) -> Coupon: ...

    async def update_coupon(self, coupon: Coupon, fields: Dict[str, Any]) -> Coupon: ...

    async def delete_coupon(self, coupon: Coupon) -> None: ...

    async def coupon_in_orders(self, coupon_id: int) -> bool: ...

    async def find_cart_coupon(self, cart_id: int) -> Optional[Coupon]: ...

    async def upsert_cart_coupon(self, cart_id: int, coupon_id: int) -> None: ...

    async def delete_cart_coupon(self, cart_id: int) -> None: ...

    async def find_order(self, order_id: int, for_update: bool = False) -> Optional[Order]: ...

    async def list_order_coupons(self, order_id: int) -> List[OrderCoupon]: ...

    async def find_order_coupon(self, order_id: int, coupon_id: int) -> Optional[OrderCoupon]: ...

    async def create_order_coupon(self, order_id: int, coupon_id: int, discount: Decimal) -> OrderCoupon: ...

    async def update_order_total(self, order_id: int, total: Decimal) -> Order: ...

    async def commit(self) -> None: ...
