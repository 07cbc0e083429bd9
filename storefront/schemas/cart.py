from pydantic import BaseModel, ConfigDict
from typing import Optional, List
from decimal import Decimal

class CartItemCreate(BaseModel):
    """Schema for adding a product to the cart"""
    product_id: int
    variant_id: Optional[int] = None

class CartItemQuantityUpdate(BaseModel):
    """Schema for updating the quantity of a cart item"""
    quantity: int

class CartItemResponse(BaseModel):
    """Schema for cart item responses"""
    id: int
    cart_id: int
    product_id: int
    variant_id: Optional[int] = None
    quantity: int

    model_config = ConfigDict(from_attributes=True)

class PricedCartItemResponse(CartItemResponse):
    """Schema for a cart item with its live price"""
    unit_price: Decimal
    line_total: Decimal

class CartResponse(BaseModel):
    """Schema for cart responses"""
    id: int
    user_id: int
    coupon_code: Optional[str] = None
    items: List[PricedCartItemResponse] = []

class CartDetailsResponse(BaseModel):
    """
    Schema for a priced cart.

    subtotal and discount_amount are only present when a coupon is attached.
    """
    cart: CartResponse
    subtotal: Optional[Decimal] = None
    discount_amount: Optional[Decimal] = None
    total: Decimal
