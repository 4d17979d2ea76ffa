# backend/services/coupons.py
import logging
from decimal import Decimal
from typing import Tuple

from sqlalchemy import func, or_, select, update
from sqlalchemy.orm import Session

from models.coupon import Coupon, CouponUsage, DiscountType
from models.order import Order, OrderStatus
from models.users import User
from utils.dates import as_naive_utc, utcnow
from utils.errors import AlreadyExists, CouponNotApplicable, NotFound, ValidationFailed
from utils.money import ZERO, money

logger = logging.getLogger(__name__)


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def calculate_discount(coupon: Coupon, order_total) -> Decimal:
    base = money(order_total)
    if coupon.discount_type == DiscountType.PERCENTAGE.value:
        discount = base * Decimal(str(coupon.discount_value)) / Decimal(100)
        cap = money(coupon.max_discount_amount)
        if cap > ZERO:
            discount = min(discount, cap)
    else:
        discount = Decimal(str(coupon.discount_value))
    # Never discount past zero
    return money(max(min(discount, base), ZERO))


def _find_valid_coupon(db: Session, code: str) -> Coupon:
    now = utcnow()
    coupon = (
        db.query(Coupon)
        .filter(
            Coupon.code == normalize_code(code),
            Coupon.is_active.is_(True),
            Coupon.valid_from <= now,
            Coupon.valid_until >= now,
        )
        .first()
    )
    if not coupon:
        raise NotFound("Invalid or expired coupon code")
    return coupon


def validate_coupon(db: Session, code: str, order_total, user_id: int) -> Tuple[Coupon, Decimal]:
    """Check a code against an amount without touching any counters."""
    coupon = _find_valid_coupon(db, code)

    if coupon.usage_count >= coupon.max_usage:
        raise CouponNotApplicable("Coupon usage limit exceeded")

    if coupon.max_usage_per_user:
        used = (
            db.query(func.count(CouponUsage.id))
            .filter(CouponUsage.coupon_id == coupon.id, CouponUsage.user_id == user_id)
            .scalar()
        )
        if used >= coupon.max_usage_per_user:
            raise CouponNotApplicable("You have already used this coupon")

    if money(order_total) < money(coupon.min_order_amount):
        raise CouponNotApplicable(f"Minimum order amount of {money(coupon.min_order_amount)} required")

    return coupon, calculate_discount(coupon, order_total)


def apply_coupon(db: Session, code: str, order_id: int, user_id: int) -> Order:
    order = (
        db.query(Order)
        .filter(Order.id == order_id, Order.user_id == user_id, Order.status == OrderStatus.PENDING.value)
        .first()
    )
    if not order:
        raise NotFound("Order not found or cannot be modified")
    if order.coupon_code:
        raise CouponNotApplicable("A coupon has already been applied to this order")

    coupon, discount = validate_coupon(db, code, order.subtotal, user_id)

    used_by_user = (
        select(func.count(CouponUsage.id))
        .where(CouponUsage.coupon_id == coupon.id, CouponUsage.user_id == user_id)
        .scalar_subquery()
    )

    try:
        # Counter only moves while both ceilings still hold at write time
        result = db.execute(
            update(Coupon)
            .where(
                Coupon.id == coupon.id,
                Coupon.usage_count < Coupon.max_usage,
                or_(Coupon.max_usage_per_user == 0, used_by_user < Coupon.max_usage_per_user),
            )
            .values(usage_count=Coupon.usage_count + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            usage_count, max_usage = (
                db.query(Coupon.usage_count, Coupon.max_usage).filter(Coupon.id == coupon.id).one()
            )
            if usage_count >= max_usage:
                raise CouponNotApplicable("Coupon usage limit exceeded")
            raise CouponNotApplicable("You have already used this coupon")

        db.add(CouponUsage(
            coupon_id=coupon.id,
            user_id=user_id,
            order_id=order.id,
            used_at=utcnow(),
            order_amount=money(order.subtotal),
            discount_amount=discount,
        ))
        order.coupon_code = coupon.code
        order.discount = discount
        order.total = money(money(order.subtotal) + money(order.tax) + money(order.shipping_cost) - discount)
        db.commit()
    except Exception:
        db.rollback()
        raise

    logger.info("Coupon %s applied to order %s (discount %s)", coupon.code, order.order_number, discount)
    db.refresh(order)
    return order


def create_coupon(db: Session, payload, admin: User) -> Coupon:
    code = normalize_code(payload.code)
    if db.query(Coupon.id).filter(Coupon.code == code).first():
        raise AlreadyExists("Coupon code already exists")

    valid_from = as_naive_utc(payload.valid_from)
    valid_until = as_naive_utc(payload.valid_until)
    if valid_from >= valid_until:
        raise ValidationFailed(errors=[{"field": "validUntil", "message": "Valid until must be after valid from"}])

    discount_type = getattr(payload.discount_type, "value", payload.discount_type)
    if discount_type == DiscountType.PERCENTAGE.value and payload.discount_value > 100:
        raise ValidationFailed(errors=[{"field": "discountValue", "message": "Percentage discount cannot exceed 100"}])

    coupon = Coupon(
        code=code,
        description=payload.description or "",
        discount_type=discount_type,
        discount_value=money(payload.discount_value),
        max_discount_amount=money(payload.max_discount_amount),
        min_order_amount=money(payload.min_order_amount),
        valid_from=valid_from,
        valid_until=valid_until,
        max_usage=payload.max_usage,
        max_usage_per_user=payload.max_usage_per_user,
        usage_count=0,
        is_active=payload.is_active,
        created_by=admin.id if admin else None,
    )
    db.add(coupon)
    db.commit()
    db.refresh(coupon)
    logger.info("Coupon %s created by user %s", coupon.code, coupon.created_by)
    return coupon
