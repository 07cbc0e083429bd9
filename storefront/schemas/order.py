from pydantic import BaseModel
from typing import List
from decimal import Decimal

class OrderCouponResponse(BaseModel):
    """Schema for an order after a coupon was applied"""
    id: int
    user_id: int
    subtotal_amount: Decimal
    total_amount: Decimal
    discount_amount: Decimal
    coupon_codes: List[str] = []
