from pydantic import Field
from typing import Optional
from datetime import datetime

from models.coupon import DiscountType
from schemas.common import CamelModel

# Request body for checking a code against an amount
class CouponValidateRequest(CamelModel):
    code: str = Field(min_length=1, max_length=20)
    order_total: float = Field(ge=0)

# Request body for applying a code to a pending order
class CouponApplyRequest(CamelModel):
    code: str = Field(min_length=1, max_length=20)
    order_id: int

class CouponValidateOut(CamelModel):
    code: str
    discount_type: str
    discount_value: float
    discount_amount: float

# Admin input for a new coupon
class CouponCreate(CamelModel):
    code: str = Field(min_length=3, max_length=20)
    description: Optional[str] = Field(default="", max_length=200)
    discount_type: DiscountType
    discount_value: float = Field(gt=0)
    max_discount_amount: float = Field(default=0, ge=0)
    min_order_amount: float = Field(default=0, ge=0)
    valid_from: datetime
    valid_until: datetime
    max_usage: int = Field(ge=1)
    max_usage_per_user: int = Field(default=1, ge=0)
    is_active: bool = True

class CouponOut(CamelModel):
    id: int
    code: str
    description: str
    discount_type: str
    discount_value: float
    max_discount_amount: float
    min_order_amount: float
    valid_from: datetime
    valid_until: datetime
    max_usage: int
    max_usage_per_user: int
    usage_count: int
    is_active: bool
