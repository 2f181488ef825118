"""
Pydantic v2 schemas for request/response validation.

Request schemas use extra="forbid" so unknown fields are rejected at the
boundary. Amounts are integers in minor currency units.
"""

from datetime import datetime, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

DiscountType = Literal["percentage", "fixed"]
OrderMethod = Literal["whatsapp", "email"]
OrderStatus = Literal["pending", "confirmed", "completed"]
ProductSort = Literal["newest", "price_asc", "price_desc", "popularity", "rating"]


def _to_utc(value):
    """Accept epoch milliseconds as well as ISO timestamps; naive means UTC."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return value


class StrictRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


#
# Coupons
#

class ValidateCouponRequest(StrictRequest):
    code: str = Field(..., min_length=1, max_length=64, description="Coupon code (case-insensitive)")
    order_amount: int = Field(..., ge=0, description="Pre-discount order amount in minor units")


class ValidateCouponResponse(BaseModel):
    valid: bool
    code: str
    reason: Optional[str] = Field(None, description="Machine-readable rejection reason")
    error: Optional[str] = Field(None, description="Message suitable for showing to the customer")
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[float] = None
    discount_amount: Optional[int] = None
    final_amount: Optional[int] = None


class CreateCouponRequest(StrictRequest):
    code: str = Field(..., min_length=1, max_length=64)
    discount_type: DiscountType
    discount_value: float = Field(
        ..., ge=0, allow_inf_nan=False, description="Percent (0-100) or flat amount in minor units",
    )
    valid_from: datetime
    valid_until: datetime
    usage_limit: Optional[int] = Field(None, ge=1, description="Maximum redemptions; omit for unlimited")
    description: Optional[str] = Field(None, max_length=500)

    @field_validator("valid_from", "valid_until", mode="before")
    @classmethod
    def _epoch_millis(cls, value):
        return _to_utc(value)

    @field_validator("valid_from", "valid_until")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _window_order(self):
        if self.valid_until < self.valid_from:
            raise ValueError("valid_until must not be earlier than valid_from")
        return self


class CouponOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    discount_type: DiscountType
    discount_value: float
    is_active: bool
    valid_from: datetime
    valid_until: datetime
    usage_limit: Optional[int] = None
    used_count: int
    description: Optional[str] = None
    created_at: datetime


#
# Products
#

class CreateProductRequest(StrictRequest):
    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    anime_name: str = ""
    price: int = Field(..., ge=0, description="Unit price in minor units")
    stock: int = Field(0, ge=0)
    is_active: bool = True


class UpdateProductRequest(StrictRequest):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    anime_name: Optional[str] = None
    price: Optional[int] = Field(None, ge=0)
    stock: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ProductOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    anime_name: str
    price: int
    stock: int
    total_sales: int
    average_rating: float
    review_count: int
    is_active: bool


#
# Orders
#

class CustomerDetails(StrictRequest):
    name: str = Field(..., min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: str = Field(..., min_length=5, max_length=64)
    address: str = Field(..., min_length=1, max_length=2000)


class PlaceOrderRequest(StrictRequest):
    customer: CustomerDetails
    product_id: int = Field(..., ge=1)
    quantity: int = Field(..., ge=1)
    coupon_code: Optional[str] = Field(None, max_length=64)
    order_method: OrderMethod

    @field_validator("coupon_code")
    @classmethod
    def _blank_code_is_none(cls, value: Optional[str]) -> Optional[str]:
        return value or None


class UpdateOrderStatusRequest(StrictRequest):
    status: OrderStatus
    notes: Optional[str] = Field(None, max_length=2000)


class OrderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: Optional[str] = None
    customer_name: str
    email: str
    phone: str
    address: str
    product_id: int
    product_name: str
    quantity: int
    original_amount: int
    discount_amount: int
    total_amount: int
    coupon_code: Optional[str] = None
    status: OrderStatus
    order_method: OrderMethod
    notes: Optional[str] = None
    created_at: datetime


class HandoffOut(BaseModel):
    method: OrderMethod
    url: str
    subject: str
    body: str


class PlaceOrderResponse(BaseModel):
    order: OrderOut
    handoff: HandoffOut


class OrderListResponse(BaseModel):
    orders: List[OrderOut]


#
# Admin
#

class AdminStatusOut(BaseModel):
    user_id: str
    is_admin: bool
