from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional
from datetime import datetime, timezone
from decimal import Decimal


def normalize_code(value: str) -> str:
    return value.strip().upper()


def future_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    if value <= datetime.now(timezone.utc):
        raise ValueError("Expiry date must be in the future")
    return value


class CouponBase(BaseModel):
    """Base schema for coupons"""
    code: str = Field(min_length=3, max_length=20, description="Coupon code, stored upper-case")
    discount: Decimal = Field(gt=0, le=100, max_digits=5, decimal_places=2, description="Percentage off the total")
    expiry_date: datetime

class CouponCreate(CouponBase):
    """Schema for creating coupons"""

    @field_validator("code", mode="before")
    @classmethod
    def clean_code(cls, value):
        return normalize_code(value) if isinstance(value, str) else value

    @field_validator("expiry_date")
    @classmethod
    def check_expiry(cls, value: datetime) -> datetime:
        return future_utc(value)

class CouponUpdate(BaseModel):
    """Schema for updating coupons. Only fields that are sent are changed."""
    code: Optional[str] = Field(None, min_length=3, max_length=20)
    discount: Optional[Decimal] = Field(None, gt=0, le=100, max_digits=5, decimal_places=2)
    expiry_date: Optional[datetime] = None

    @field_validator("code", mode="before")
    @classmethod
    def clean_code(cls, value):
        return normalize_code(value) if isinstance(value, str) else value

    @field_validator("expiry_date")
    @classmethod
    def check_expiry(cls, value: Optional[datetime]) -> Optional[datetime]:
        return future_utc(value) if value is not None else value

    @model_validator(mode="after")
    def reject_nulls(self):
        for field in self.model_fields_set:
            if getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

class CouponResponse(CouponBase):
    """Schema for coupon responses"""
    id: int

    model_config = ConfigDict(from_attributes=True)

class ApplyCouponToCart(BaseModel):
    """Schema for applying a coupon to a cart"""
    cart_id: int
    coupon_code: str

    @field_validator("coupon_code", mode="before")
    @classmethod
    def clean_code(cls, value):
        return normalize_code(value) if isinstance(value, str) else value

class ApplyCouponToOrder(BaseModel):
    """Schema for applying a coupon to an order"""
    order_id: int
    coupon_code: str

    @field_validator("coupon_code", mode="before")
    @classmethod
    def clean_code(cls, value):
        return normalize_code(value) if isinstance(value, str) else value
