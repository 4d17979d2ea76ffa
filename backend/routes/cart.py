# backend/routes/cart.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import client_ip, write_log
from models.users import User
from models.cart import Cart
from schemas.cart import CartAddItem, CartUpdateItem, CartRemoveItem, CartOut, CartItemOut
from schemas.common import ApiResponse
from services import cart as cart_service

router = APIRouter(prefix="/cart", tags=["Cart"])

# Map Cart model to the CartOut schema; totals use the price captured on each line
def cart_to_out(cart: Cart) -> CartOut:
    items_out = []
    for it in cart.items:
        product = it.product
        items_out.append(CartItemOut(
            product_id=it.product_id,
            name=product.name if product else "",
            image_url=product.image_url if product else None,
            price=float(it.unit_price_at_add),
            current_price=float(product.price) if product else float(it.unit_price_at_add),
            quantity=it.quantity,
            line_total=float(it.line_total),
            stock_quantity=product.stock_quantity if product else 0,
        ))
    return CartOut(items=items_out, total_items=cart.total_items, total_amount=float(cart.total_amount))

@router.get("", response_model=ApiResponse[CartOut])
def get_cart(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = cart_service.get_cart(db, current_user.id)
    return ApiResponse[CartOut](data=cart_to_out(cart))

@router.post("", response_model=ApiResponse[CartOut])
def add_to_cart(
    payload: CartAddItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = cart_service.add_item(db, current_user.id, payload.product_id, payload.quantity)
    out = cart_to_out(cart)

    write_log(
        db,
        user_id=current_user.id,
        action="CART_ADD",
        resource="cart",
        resource_id=cart.id,
        ip=client_ip(request),
        meta={"product_id": payload.product_id, "quantity": payload.quantity, "total": out.total_amount},
    )
    return ApiResponse[CartOut](message="Item added to cart", data=out)

@router.put("", response_model=ApiResponse[CartOut])
def update_cart_item(
    payload: CartUpdateItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = cart_service.update_quantity(db, current_user.id, payload.product_id, payload.quantity)
    out = cart_to_out(cart)

    write_log(
        db,
        user_id=current_user.id,
        action="CART_UPDATE",
        resource="cart",
        resource_id=cart.id,
        ip=client_ip(request),
        meta={"product_id": payload.product_id, "quantity": payload.quantity, "total": out.total_amount},
    )
    return ApiResponse[CartOut](message="Cart updated", data=out)

@router.delete("", response_model=ApiResponse[CartOut])
def remove_cart_item(
    payload: CartRemoveItem,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = cart_service.remove_item(db, current_user.id, payload.product_id)
    out = cart_to_out(cart)

    write_log(
        db,
        user_id=current_user.id,
        action="CART_REMOVE",
        resource="cart",
        resource_id=cart.id,
        ip=client_ip(request),
        meta={"product_id": payload.product_id, "cart_items": len(out.items), "total": out.total_amount},
    )
    return ApiResponse[CartOut](message="Item removed from cart", data=out)

@router.delete("/clear", response_model=ApiResponse[CartOut])
def clear_cart(
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    cart = cart_service.clear_cart(db, current_user.id)

    write_log(
        db,
        user_id=current_user.id,
        action="CART_CLEAR",
        resource="cart",
        resource_id=cart.id,
        ip=client_ip(request),
    )
    return ApiResponse[CartOut](message="Cart cleared", data=cart_to_out(cart))
