from pydantic import Field
from typing import List, Optional
from datetime import datetime

from models.order import OrderStatus, PaymentMethod, ShippingMethod
from schemas.common import CamelModel


# Postal address captured on the order
class Address(CamelModel):
    full_name: str = Field(min_length=1, max_length=120)
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    country: str = "USA"
    phone: Optional[str] = None


# Input schema for checkout
class OrderCreatePayload(CamelModel):
    shipping_address: Address
    billing_address: Optional[Address] = None
    payment_method: PaymentMethod
    shipping_method: ShippingMethod = ShippingMethod.STANDARD
    notes: Optional[str] = Field(default=None, max_length=500)


# Output schema for an individual order line (snapshot)
class OrderItemOut(CamelModel):
    product_id: Optional[int] = None
    name: str
    price: float
    quantity: int
    image_url: Optional[str] = None
    line_total: float


class StatusHistoryOut(CamelModel):
    status: str
    actor_id: Optional[int] = None
    note: Optional[str] = None
    timestamp: datetime


class RefundOut(CamelModel):
    id: int
    amount: float
    reason: str
    refund_method: str
    status: str
    processed_by: Optional[int] = None
    processed_at: datetime


# Output schema representing the full order details
class OrderResponse(CamelModel):
    id: int
    order_number: str
    user_id: int
    status: str
    payment_method: str
    payment_status: str
    shipping_method: str
    shipping_address: dict
    billing_address: Optional[dict] = None
    items: List[OrderItemOut]
    total_items: int
    subtotal: float
    tax: float
    shipping_cost: float
    discount: float
    total: float
    currency: str
    coupon_code: Optional[str] = None
    notes: Optional[str] = None
    tracking_number: Optional[str] = None
    estimated_delivery: Optional[datetime] = None
    actual_delivery: Optional[datetime] = None
    status_history: List[StatusHistoryOut]
    refunds: List[RefundOut]
    created_at: Optional[datetime] = None


# Schema for the admin status update
class OrderStatusPatch(CamelModel):
    order_status: OrderStatus
    tracking_number: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None, max_length=500)


# Schema for the admin refund action
class RefundCreate(CamelModel):
    amount: float = Field(gt=0)
    reason: str = Field(min_length=1, max_length=500)
    refund_method: str = "original"
