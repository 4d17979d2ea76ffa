# backend/services/cart.py
import logging

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session, selectinload

from models.cart import Cart, CartItem
from models.product import Product
from utils.errors import CartNotFound, InsufficientStock, NotFound, ValidationFailed

logger = logging.getLogger(__name__)

_INSERTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}


def _load_cart(db: Session, user_id: int):
    return (
        db.query(Cart)
        .options(selectinload(Cart.items).selectinload(CartItem.product))
        .filter(Cart.user_id == user_id)
        .first()
    )


def _require_cart(db: Session, user_id: int) -> Cart:
    cart = _load_cart(db, user_id)
    if not cart:
        raise CartNotFound()
    return cart


def _active_product(db: Session, product_id: int) -> Product:
    product = db.query(Product).filter(Product.id == product_id, Product.is_active.is_(True)).first()
    if not product:
        raise NotFound("Product not found")
    return product


def _check_stock(product: Product, quantity: int):
    if product.stock_quantity < quantity:
        raise InsufficientStock(
            f"Insufficient stock. Only {product.stock_quantity} items available for {product.name}"
        )


# Concurrent first requests race on the unique user_id, so the insert ignores
# conflicts and callers read the row back afterwards.
def insert_for_user(db: Session, model, user_id: int):
    insert = _INSERTS.get(db.get_bind().dialect.name)
    if insert is not None:
        stmt = insert(model).values(user_id=user_id).on_conflict_do_nothing(index_elements=[model.user_id])
        db.execute(stmt)
    else:
        db.add(model(user_id=user_id))
    db.commit()


def get_or_create_cart(db: Session, user_id: int) -> Cart:
    cart = _load_cart(db, user_id)
    if cart:
        return cart

    insert_for_user(db, Cart, user_id)
    logger.debug("Created cart for user %s", user_id)
    return _load_cart(db, user_id)


def get_cart(db: Session, user_id: int) -> Cart:
    return get_or_create_cart(db, user_id)


def add_item(db: Session, user_id: int, product_id: int, quantity: int = 1) -> Cart:
    if quantity is None or quantity < 1:
        raise ValidationFailed(errors=[{"field": "quantity", "message": "Quantity must be at least 1"}])

    product = _active_product(db, product_id)
    _check_stock(product, quantity)

    cart = get_or_create_cart(db, user_id)
    item = cart.find_item(product_id)
    if item:
        # The combined quantity has to fit in stock too
        _check_stock(product, item.quantity + quantity)
        item.quantity += quantity
    else:
        # Price is captured once, when the line is created
        cart.items.append(CartItem(product_id=product.id, quantity=quantity, unit_price_at_add=product.price))

    db.commit()
    return _load_cart(db, user_id)


def update_quantity(db: Session, user_id: int, product_id: int, quantity: int) -> Cart:
    if quantity is None or quantity < 0:
        raise ValidationFailed(errors=[{"field": "quantity", "message": "Quantity cannot be negative"}])

    cart = _require_cart(db, user_id)
    item = cart.find_item(product_id)
    if not item:
        raise NotFound("Item not found in cart")

    if quantity == 0:
        cart.items.remove(item)
    else:
        product = db.query(Product).filter(Product.id == product_id).first()
        if not product:
            raise NotFound("Product not found")
        _check_stock(product, quantity)
        item.quantity = quantity

    db.commit()
    return _load_cart(db, user_id)


def remove_item(db: Session, user_id: int, product_id: int) -> Cart:
    cart = _require_cart(db, user_id)
    item = cart.find_item(product_id)
    if item:
        cart.items.remove(item)
        db.commit()
    return _load_cart(db, user_id)


def clear_cart(db: Session, user_id: int) -> Cart:
    cart = _require_cart(db, user_id)
    cart.items.clear()
    db.commit()
    return _load_cart(db, user_id)
