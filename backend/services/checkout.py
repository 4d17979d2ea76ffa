# backend/services/checkout.py
import logging
import random
import time
from decimal import Decimal
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from config import settings
from models.cart import Cart, CartItem
from models.order import Order, OrderItem, OrderStatus, OrderStatusHistory, PaymentStatus, ShippingMethod
from models.product import Product
from models.users import User
from utils.dates import utcnow
from utils.errors import EmptyCart, InsufficientStock, NotFound
from utils.money import ZERO, money

logger = logging.getLogger(__name__)

ORDER_NUMBER_ATTEMPTS = 3


def generate_order_number() -> str:
    # ORD- + last 6 digits of the millisecond clock + 3 random digits
    stamp = str(int(time.time() * 1000))[-6:]
    return f"ORD-{stamp}{random.randint(0, 999):03d}"


def calculate_totals(subtotal) -> dict:
    subtotal = money(subtotal)
    tax = money(subtotal * Decimal(str(settings.TAX_RATE)))
    if subtotal > Decimal(str(settings.FREE_SHIPPING_THRESHOLD)):
        shipping_cost = ZERO
    else:
        shipping_cost = money(settings.SHIPPING_FLAT_FEE)
    return {
        "subtotal": subtotal,
        "tax": tax,
        "shipping_cost": shipping_cost,
        "total": money(subtotal + tax + shipping_cost),
    }


def _dump_address(address) -> Optional[dict]:
    if address is None:
        return None
    if hasattr(address, "model_dump"):
        return address.model_dump(by_alias=True)
    return dict(address)


def _build_order(cart: Cart, user_id: int, totals: dict, shipping_address, payment_method,
                 billing_address, notes, shipping_method) -> Order:
    order = Order(
        order_number=generate_order_number(),
        user_id=user_id,
        status=OrderStatus.PENDING.value,
        payment_method=getattr(payment_method, "value", payment_method),
        payment_status=PaymentStatus.PENDING.value,
        shipping_method=getattr(shipping_method, "value", shipping_method),
        shipping_address=_dump_address(shipping_address),
        billing_address=_dump_address(billing_address or shipping_address),
        discount=ZERO,
        currency=settings.CURRENCY,
        notes=notes,
        **totals,
    )
    for item in cart.items:
        order.items.append(OrderItem(
            product_id=item.product_id,
            name=item.product.name,
            price=money(item.unit_price_at_add),
            quantity=item.quantity,
            image_url=item.product.image_url,
        ))
    order.status_history.append(OrderStatusHistory(
        status=OrderStatus.PENDING.value, actor_id=user_id, note="Order placed", timestamp=utcnow(),
    ))
    return order


def place_order(
    db: Session,
    user_id: int,
    shipping_address,
    payment_method,
    billing_address=None,
    notes: Optional[str] = None,
    shipping_method=ShippingMethod.STANDARD,
) -> Order:
    """
    Turn the user's cart into an order.

    Stock is checked up front for a clear error message, then decremented with
    conditional updates inside the same transaction that inserts the order and
    empties the cart. Any shortfall rolls everything back. A clash on the
    order number rolls back too and the whole attempt is repeated.
    """
    cart = (
        db.query(Cart)
        .options(selectinload(Cart.items).selectinload(CartItem.product))
        .filter(Cart.user_id == user_id)
        .first()
    )
    if not cart or not cart.items:
        raise EmptyCart()

    for item in cart.items:
        product = item.product
        if product is None:
            raise InsufficientStock(f"Product {item.product_id} is no longer available")
        if item.quantity > product.stock_quantity:
            raise InsufficientStock(
                f"Insufficient stock for {product.name}. Only {product.stock_quantity} available"
            )

    totals = calculate_totals(cart.total_amount)

    for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
        order = _build_order(
            cart, user_id, totals, shipping_address, payment_method, billing_address, notes, shipping_method,
        )
        number = order.order_number
        db.add(order)
        try:
            for item in cart.items:
                result = db.execute(
                    update(Product)
                    .where(Product.id == item.product_id, Product.stock_quantity >= item.quantity)
                    .values(stock_quantity=Product.stock_quantity - item.quantity)
                    .execution_options(synchronize_session=False)
                )
                if result.rowcount != 1:
                    raise InsufficientStock(f"Insufficient stock for {item.product.name}")
            cart.items.clear()
            db.commit()
        except IntegrityError:
            db.rollback()
            taken = db.query(Order.id).filter(Order.order_number == number).first()
            if not taken or attempt == ORDER_NUMBER_ATTEMPTS:
                raise
            logger.warning("Order number %s already taken, retrying (attempt %s)", number, attempt)
            continue
        except Exception:
            db.rollback()
            raise
        break

    logger.info("Order %s placed by user %s (total %s)", order.order_number, user_id, order.total)
    db.refresh(order)
    return order


def get_order(db: Session, order_id: int, user: User) -> Order:
    order = (
        db.query(Order)
        .options(
            selectinload(Order.items),
            selectinload(Order.status_history),
            selectinload(Order.refunds),
        )
        .filter(Order.id == order_id)
        .first()
    )
    # Customers only see their own orders; foreign ids look like missing ones
    if not order or (order.user_id != user.id and not user.is_admin):
        raise NotFound("Order not found")
    return order
