# backend/services/order_status.py
import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from config import settings
from models.order import Order, OrderStatus, OrderStatusHistory, PaymentMethod, PaymentStatus, Refund
from models.users import User
from utils.dates import utcnow
from utils.errors import InvalidTransition, NotFound, ValidationFailed
from utils.money import ZERO, money

logger = logging.getLogger(__name__)

S = OrderStatus

# Forward moves an order may make; staying on the current status is always allowed
ALLOWED_TRANSITIONS = {
    S.PENDING: {S.CONFIRMED, S.PROCESSING, S.CANCELLED},
    S.CONFIRMED: {S.PROCESSING, S.CANCELLED},
    S.PROCESSING: {S.SHIPPED, S.CANCELLED},
    S.SHIPPED: {S.DELIVERED, S.RETURNED},
    S.DELIVERED: {S.RETURNED, S.REFUNDED},
    S.CANCELLED: {S.REFUNDED},
    S.RETURNED: {S.REFUNDED},
    S.REFUNDED: set(),
}

REFUNDABLE = {S.DELIVERED.value, S.CANCELLED.value}


def can_transition(current: str, new: str) -> bool:
    if current == new or not settings.STRICT_STATUS_TRANSITIONS:
        return True
    return OrderStatus(new) in ALLOWED_TRANSITIONS.get(OrderStatus(current), set())


def _load_order(db: Session, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFound("Order not found")
    return order


def _append_history(order: Order, status: str, actor: Optional[User], note: Optional[str] = None):
    order.status_history.append(OrderStatusHistory(
        status=status,
        actor_id=actor.id if actor else None,
        note=note,
        timestamp=utcnow(),
    ))


def set_status(
    db: Session,
    order_id: int,
    new_status,
    actor: Optional[User],
    note: Optional[str] = None,
    tracking_number: Optional[str] = None,
) -> Order:
    new_status = OrderStatus(new_status).value
    order = _load_order(db, order_id)
    previous = order.status

    if not can_transition(previous, new_status):
        raise InvalidTransition(f"Cannot change order status from {previous} to {new_status}")

    now = utcnow()
    order.status = new_status

    if new_status == S.SHIPPED.value:
        if tracking_number:
            order.tracking_number = tracking_number
        if order.estimated_delivery is None:
            days = settings.SHIPPING_DAYS.get(order.shipping_method, settings.SHIPPING_DAYS.get("standard", 5))
            order.estimated_delivery = now + timedelta(days=days)
    elif tracking_number:
        order.tracking_number = tracking_number

    if new_status == S.DELIVERED.value:
        order.actual_delivery = now
        if order.payment_method == PaymentMethod.CASH_ON_DELIVERY.value:
            order.payment_status = PaymentStatus.PAID.value

    _append_history(order, new_status, actor, note)
    db.commit()
    db.refresh(order)

    logger.info("Order %s status %s -> %s", order.order_number, previous, new_status)
    return order


def process_refund(
    db: Session,
    order_id: int,
    amount,
    reason: str,
    actor: Optional[User],
    refund_method: str = "original",
) -> Order:
    order = _load_order(db, order_id)

    if order.status not in REFUNDABLE:
        raise InvalidTransition("Order cannot be refunded in current status")

    amount = money(amount)
    if amount <= ZERO:
        raise ValidationFailed(errors=[{"field": "amount", "message": "Refund amount must be positive"}])

    remaining = money(order.total) - order.refunded_amount
    if amount > remaining:
        raise ValidationFailed(f"Refund amount cannot exceed {remaining}")

    order.refunds.append(Refund(
        amount=amount,
        reason=reason,
        refund_method=refund_method or "original",
        status="processed",
        processed_by=actor.id if actor else None,
        processed_at=utcnow(),
    ))

    if amount == remaining:
        order.status = S.REFUNDED.value
        order.payment_status = PaymentStatus.REFUNDED.value
        _append_history(order, S.REFUNDED.value, actor, f"Refunded: {reason}")
    else:
        order.payment_status = PaymentStatus.PARTIALLY_REFUNDED.value

    db.commit()
    db.refresh(order)

    logger.info("Refund of %s recorded on order %s", amount, order.order_number)
    return order
