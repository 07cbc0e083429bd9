from fastapi import APIRouter, Depends, status

from ..core.dependencies import get_cart_service, get_current_user
from ..schemas.auth import CurrentUser
from ..schemas.cart import CartDetailsResponse, CartItemCreate, CartItemQuantityUpdate, CartItemResponse
from ..services.cart_service import CartService

router = APIRouter()

@router.post("/", response_model=CartDetailsResponse, response_model_exclude_unset=True, status_code=status.HTTP_201_CREATED)
async def add_to_cart(
    item: CartItemCreate,
    current_user: CurrentUser = Depends(get_current_user),
    cart_service: CartService = Depends(get_cart_service)
):
    """
    **Add Item to Cart**

    Add a product, optionally a specific variant, to the current user's cart
    with quantity 1. The cart is created on the first call.

    **Request Body:**
    - **product_id**: Catalog product id
    - **variant_id**: Variant of that product (optional)

    **Returns:**
    - The cart with live prices and totals

    **Errors:**
    - 404 if the product or variant does not exist
    - 409 if the product/variant pair is already in the cart
    - 422 if the cart is full
    """
    return await cart_service.add_item(current_user.id, item.product_id, item.variant_id)

@router.get("/", response_model=CartDetailsResponse, response_model_exclude_unset=True)
async def get_cart(
    current_user: CurrentUser = Depends(get_current_user),
    cart_service: CartService = Depends(get_cart_service)
):
    """
    **Get Cart**

    Current user's cart priced from live catalog prices. `subtotal` and
    `discount_amount` are included only when a coupon is attached.
    """
    return await cart_service.get_cart(current_user.id)

@router.delete("/")
async def clear_cart(
    current_user: CurrentUser = Depends(get_current_user),
    cart_service: CartService = Depends(get_cart_service)
):
    """Clear all items from cart"""
    await cart_service.clear_cart(current_user.id)
    return {"message": "Cart cleared successfully."}

@router.delete("/coupon", response_model=CartDetailsResponse, response_model_exclude_unset=True)
async def remove_coupon(
    current_user: CurrentUser = Depends(get_current_user),
    cart_service: CartService = Depends(get_cart_service)
):
    """Remove coupon from cart"""
    return await cart_service.remove_coupon(current_user.id)

@router.delete("/{item_id}", response_model=CartDetailsResponse, response_model_exclude_unset=True)
async def remove_from_cart(
    item_id: int,
    current_user: CurrentUser = Depends(get_current_user),
    cart_service: CartService = Depends(get_cart_service)
):
    """Remove an item from the cart"""
    return await cart_service.remove_item(current_user.id, item_id)

@router.patch("/{item_id}", response_model=CartItemResponse)
async def update_cart_item_quantity(
    item_id: int,
    payload: CartItemQuantityUpdate,
    current_user: CurrentUser = Depends(get_current_user),
    cart_service: CartService = Depends(get_cart_service)
):
    """
    **Update Item Quantity**

    Overwrite the quantity of one cart item. Returns the updated item only;
    fetch the cart for new totals.

    **Errors:**
    - 400 if quantity is not a positive integer
    - 404 if the item is not in the current user's cart
    """
    return await cart_service.update_quantity(current_user.id, item_id, payload.quantity)
