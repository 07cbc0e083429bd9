from .cart import Cart
from .cart_item import CartItem
from .coupon import CartCoupon, Coupon, OrderCoupon
from .order import Order
from .product import Product, ProductVariant


__all__ = [
    "Cart",
    "CartItem",
    "CartCoupon",
    "Coupon",
    "Order",
    "OrderCoupon",
    "Product",
    "ProductVariant",
]
