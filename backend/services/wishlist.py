# backend/services/wishlist.py
from sqlalchemy.orm import Session, selectinload

from models.cart import Cart
from models.product import Product
from models.wishlist import Wishlist, WishlistItem
from services import cart as cart_service
from utils.errors import AlreadyExists, NotFound


def _load(db: Session, user_id: int):
    return (
        db.query(Wishlist)
        .options(selectinload(Wishlist.items).selectinload(WishlistItem.product))
        .filter(Wishlist.user_id == user_id)
        .first()
    )


def get_wishlist(db: Session, user_id: int) -> Wishlist:
    wishlist = _load(db, user_id)
    if not wishlist:
        cart_service.insert_for_user(db, Wishlist, user_id)
        wishlist = _load(db, user_id)
    return wishlist


def _find(wishlist: Wishlist, product_id: int):
    return next((it for it in wishlist.items if it.product_id == product_id), None)


def add_item(db: Session, user_id: int, product_id: int) -> Wishlist:
    product = db.query(Product).filter(Product.id == product_id, Product.is_active.is_(True)).first()
    if not product:
        raise NotFound("Product not found")

    wishlist = get_wishlist(db, user_id)
    if _find(wishlist, product_id):
        raise AlreadyExists("Product already in wishlist")

    wishlist.items.append(WishlistItem(product_id=product_id))
    db.commit()
    return _load(db, user_id)


def remove_item(db: Session, user_id: int, product_id: int) -> Wishlist:
    wishlist = _load(db, user_id)
    if not wishlist:
        raise NotFound("Wishlist not found")

    item = _find(wishlist, product_id)
    if item:
        wishlist.items.remove(item)
        db.commit()
    return _load(db, user_id)


def clear_wishlist(db: Session, user_id: int) -> Wishlist:
    wishlist = get_wishlist(db, user_id)
    wishlist.items.clear()
    db.commit()
    return _load(db, user_id)


# Add through the cart rules first; the wishlist line is dropped only if that succeeds
def move_to_cart(db: Session, user_id: int, product_id: int, quantity: int = 1) -> Cart:
    wishlist = _load(db, user_id)
    if not wishlist or not _find(wishlist, product_id):
        raise NotFound("Product not in wishlist")

    cart_service.add_item(db, user_id, product_id, quantity)

    wishlist = _load(db, user_id)
    item = _find(wishlist, product_id)
    if item:
        wishlist.items.remove(item)
        db.commit()
    return cart_service.get_cart(db, user_id)
