# backend/routes/orders.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user
from utils.audit import client_ip, write_log
from models.users import User
from models.order import Order
from schemas.common import ApiResponse
from schemas.order import OrderCreatePayload, OrderResponse, OrderItemOut, StatusHistoryOut, RefundOut
from services import checkout

router = APIRouter(prefix="/orders", tags=["Orders"])

# Map Order model to OrderResponse schema
def order_to_out(order: Order) -> OrderResponse:
    items = [
        OrderItemOut(
            product_id=it.product_id,
            name=it.name,
            price=float(it.price),
            quantity=it.quantity,
            image_url=it.image_url,
            line_total=float(it.line_total),
        )
        for it in order.items
    ]
    return OrderResponse(
        id=order.id,
        order_number=order.order_number,
        user_id=order.user_id,
        status=order.status,
        payment_method=order.payment_method,
        payment_status=order.payment_status,
        shipping_method=order.shipping_method,
        shipping_address=order.shipping_address,
        billing_address=order.billing_address,
        items=items,
        total_items=order.total_items,
        subtotal=float(order.subtotal),
        tax=float(order.tax),
        shipping_cost=float(order.shipping_cost),
        discount=float(order.discount or 0),
        total=float(order.total),
        currency=order.currency,
        coupon_code=order.coupon_code,
        notes=order.notes,
        tracking_number=order.tracking_number,
        estimated_delivery=order.estimated_delivery,
        actual_delivery=order.actual_delivery,
        status_history=[StatusHistoryOut.model_validate(h) for h in order.status_history],
        refunds=[RefundOut.model_validate(r) for r in order.refunds],
        created_at=order.created_at,
    )

@router.post("", response_model=ApiResponse[OrderResponse], status_code=status.HTTP_201_CREATED)
def create_order(
    payload: OrderCreatePayload,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    order = checkout.place_order(
        db,
        current_user.id,
        shipping_address=payload.shipping_address,
        payment_method=payload.payment_method,
        billing_address=payload.billing_address,
        notes=payload.notes,
        shipping_method=payload.shipping_method,
    )
    out = order_to_out(order)

    write_log(
        db,
        user_id=current_user.id,
        action="ORDER_CREATE",
        resource="orders",
        resource_id=out.id,
        ip=client_ip(request),
        meta={"order_number": out.order_number, "items": out.total_items, "total": out.total},
    )
    return ApiResponse[OrderResponse](message="Order created successfully", data=out)

@router.get("/{order_id}", response_model=ApiResponse[OrderResponse])
def get_order(
    order_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    order = checkout.get_order(db, order_id, current_user)
    return ApiResponse[OrderResponse](data=order_to_out(order))
