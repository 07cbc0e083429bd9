from .cart_service import CartService
from .coupon_service import CouponService


__all__ = ["CartService", "CouponService"]
