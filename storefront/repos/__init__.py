from .cart_repo import CartRepo
from .catalog_repo import CatalogRepo
from .coupon_repo import CouponRepo


__all__ = ["CartRepo", "CatalogRepo", "CouponRepo"]
