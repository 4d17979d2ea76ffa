# backend/models/coupon.py
import enum

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, String, func
from sqlalchemy.orm import relationship
from database import Base


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


# Discount code; code is stored upper-case and looked up case-insensitively
class Coupon(Base):
    __tablename__ = "coupons"

    id = Column(Integer, primary_key=True, index=True)
    code = Column(String(20), unique=True, nullable=False, index=True)
    description = Column(String(200), nullable=False, default="")

    discount_type = Column(String(20), nullable=False)
    discount_value = Column(Numeric(10, 2), nullable=False)
    max_discount_amount = Column(Numeric(10, 2), nullable=False, default=0) # 0 means no cap
    min_order_amount = Column(Numeric(10, 2), nullable=False, default=0)

    valid_from = Column(DateTime, nullable=False)
    valid_until = Column(DateTime, nullable=False)

    max_usage = Column(Integer, CheckConstraint("max_usage >= 1"), nullable=False)
    max_usage_per_user = Column(Integer, nullable=False, default=1) # 0 means unlimited per user
    usage_count = Column(Integer, CheckConstraint("usage_count >= 0"), nullable=False, default=0)

    is_active = Column(Boolean, nullable=False, default=True)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, server_default=func.now())

    used_by = relationship("CouponUsage", back_populates="coupon", cascade="all, delete-orphan", order_by="CouponUsage.id")


# One row per redemption
class CouponUsage(Base):
    __tablename__ = "coupon_usages"

    id = Column(Integer, primary_key=True, index=True)
    coupon_id = Column(Integer, ForeignKey("coupons.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=True)
    used_at = Column(DateTime, nullable=False)
    order_amount = Column(Numeric(10, 2), nullable=False)
    discount_amount = Column(Numeric(10, 2), nullable=False)

    coupon = relationship("Coupon", back_populates="used_by")
