from .auth import CurrentUser
from .cart import (
    CartDetailsResponse,
    CartItemCreate,
    CartItemQuantityUpdate,
    CartItemResponse,
)
from .coupon import (
    ApplyCouponToCart,
    ApplyCouponToOrder,
    CouponCreate,
    CouponResponse,
    CouponUpdate,
)
from .order import OrderCouponResponse


__all__ = [
    # auth schemas
    "CurrentUser",

    # cart schemas
    "CartDetailsResponse",
    "CartItemCreate",
    "CartItemQuantityUpdate",
    "CartItemResponse",

    # coupon schemas
    "ApplyCouponToCart",
    "ApplyCouponToOrder",
    "CouponCreate",
    "CouponResponse",
    "CouponUpdate",

    # order schemas
    "OrderCouponResponse",
]
