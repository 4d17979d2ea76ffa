# backend/routes/wishlist.py
from typing import Optional

from fastapi import APIRouter, Body, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import client_ip, write_log
from models.users import User
from models.wishlist import Wishlist
from routes.cart import cart_to_out
from schemas.cart import CartOut
from schemas.common import ApiResponse
from schemas.wishlist import WishlistAdd, WishlistItemOut, WishlistMoveToCart, WishlistOut
from services import wishlist as wishlist_service

router = APIRouter(prefix="/wishlist", tags=["Wishlist"])

def _wishlist_to_out(wishlist: Wishlist) -> WishlistOut:
    items = []
    for it in wishlist.items:
        product = it.product
        items.append(WishlistItemOut(
            product_id=it.product_id,
            name=product.name,
            price=float(product.price),
            image_url=product.image_url,
            in_stock=product.is_active and product.stock_quantity > 0,
            added_at=it.added_at,
        ))
    return WishlistOut(items=items, total_items=len(items))

def _log(db: Session, request: Request, user: User, action: str, meta: Optional[dict] = None):
    write_log(db, user_id=user.id, action=action, resource="wishlist", ip=client_ip(request), meta=meta)

@router.get("", response_model=ApiResponse[WishlistOut])
def get_wishlist(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    wishlist = wishlist_service.get_wishlist(db, current_user.id)
    return ApiResponse[WishlistOut](data=_wishlist_to_out(wishlist))

@router.post("", response_model=ApiResponse[WishlistOut])
def add_to_wishlist(
    payload: WishlistAdd,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    out = _wishlist_to_out(wishlist_service.add_item(db, current_user.id, payload.product_id))
    _log(db, request, current_user, "WISHLIST_ADD", {"product_id": payload.product_id})
    return ApiResponse[WishlistOut](message="Product added to wishlist", data=out)

@router.delete("", response_model=ApiResponse[WishlistOut])
def clear_wishlist(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    out = _wishlist_to_out(wishlist_service.clear_wishlist(db, current_user.id))
    _log(db, request, current_user, "WISHLIST_CLEAR")
    return ApiResponse[WishlistOut](message="Wishlist cleared", data=out)

@router.delete("/{product_id}", response_model=ApiResponse[WishlistOut])
def remove_from_wishlist(
    product_id: int,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    out = _wishlist_to_out(wishlist_service.remove_item(db, current_user.id, product_id))
    _log(db, request, current_user, "WISHLIST_REMOVE", {"product_id": product_id})
    return ApiResponse[WishlistOut](message="Product removed from wishlist", data=out)

@router.post("/{product_id}/move-to-cart", response_model=ApiResponse[CartOut])
def move_to_cart(
    product_id: int,
    request: Request,
    payload: Optional[WishlistMoveToCart] = Body(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    quantity = payload.quantity if payload else 1
    out = cart_to_out(wishlist_service.move_to_cart(db, current_user.id, product_id, quantity))
    _log(db, request, current_user, "WISHLIST_MOVE_TO_CART", {"product_id": product_id, "quantity": quantity})
    return ApiResponse[CartOut](message="Product moved to cart", data=out)
