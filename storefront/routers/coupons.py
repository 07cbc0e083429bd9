from fastapi import APIRouter, Depends, status
from typing import List

from ..core.dependencies import get_coupon_service, get_current_admin, get_current_user
from ..schemas.auth import CurrentUser
from ..schemas.cart import CartDetailsResponse
from ..schemas.coupon import ApplyCouponToCart, ApplyCouponToOrder, CouponCreate, CouponResponse, CouponUpdate
from ..schemas.order import OrderCouponResponse
from ..services.coupon_service import CouponService

router = APIRouter()

@router.post("/apply", response_model=CartDetailsResponse, response_model_exclude_unset=True)
async def apply_coupon_to_cart(
    payload: ApplyCouponToCart,
    current_user: CurrentUser = Depends(get_current_user),
    coupon_service: CouponService = Depends(get_coupon_service)
):
    """
    **Apply Coupon to Cart**

    Attach a coupon to one of the current user's carts. Any coupon already on
    the cart is replaced.

    **Returns:**
    - The cart with `subtotal`, `discount_amount` and `total`

    **Errors:**
    - 404 if the cart or coupon does not exist
    - 400 if the coupon has expired
    - 409 if this coupon is already on the cart
    """
    return await coupon_service.apply_coupon_to_cart(payload.cart_id, payload.coupon_code, current_user.id)

@router.post("/apply-to-order", response_model=OrderCouponResponse)
async def apply_coupon_to_order(
    payload: ApplyCouponToOrder,
    current_user: CurrentUser = Depends(get_current_user),
    coupon_service: CouponService = Depends(get_coupon_service)
):
    """
    **Apply Coupon to Order**

    Attach a coupon to one of the current user's orders and store the new
    order total. Different coupons can be combined; each takes its
    percentage off the amount left by the previous ones.
    """
    return await coupon_service.apply_coupon_to_order(payload.order_id, payload.coupon_code, current_user.id)

# Admin only

@router.post("/", response_model=CouponResponse, status_code=status.HTTP_201_CREATED)
async def create_coupon(
    coupon: CouponCreate,
    admin: CurrentUser = Depends(get_current_admin),
    coupon_service: CouponService = Depends(get_coupon_service)
):
    """Create a new coupon"""
    return await coupon_service.create_coupon(coupon)

@router.get("/", response_model=List[CouponResponse])
async def list_coupons(
    admin: CurrentUser = Depends(get_current_admin),
    coupon_service: CouponService = Depends(get_coupon_service)
):
    """List all coupons, newest first"""
    return await coupon_service.list_coupons()

@router.get("/{coupon_id}", response_model=CouponResponse)
async def get_coupon(
    coupon_id: int,
    admin: CurrentUser = Depends(get_current_admin),
    coupon_service: CouponService = Depends(get_coupon_service)
):
    """Get a coupon by id"""
    return await coupon_service.get_coupon(coupon_id)

@router.patch("/{coupon_id}", response_model=CouponResponse)
async def update_coupon(
    coupon_id: int,
    coupon: CouponUpdate,
    admin: CurrentUser = Depends(get_current_admin),
    coupon_service: CouponService = Depends(get_coupon_service)
):
    """Update a coupon. Only the fields sent are changed."""
    return await coupon_service.update_coupon(coupon_id, coupon)

@router.delete("/{coupon_id}")
async def delete_coupon(
    coupon_id: int,
    admin: CurrentUser = Depends(get_current_admin),
    coupon_service: CouponService = Depends(get_coupon_service)
):
    """Delete a coupon that is not used by any order"""
    await coupon_service.delete_coupon(coupon_id)
    return {"message": "Coupon deleted successfully"}
