# backend/routes/admin_orders.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import require_admin
from utils.audit import client_ip, write_log
from models.users import User
from routes.orders import order_to_out
from schemas.common import ApiResponse
from schemas.order import OrderResponse, OrderStatusPatch, RefundCreate
from services import order_status

router = APIRouter(prefix="/admin/orders", tags=["Admin"])

# Change order status (admin)
@router.put("/{order_id}/status", response_model=ApiResponse[OrderResponse])
def update_order_status(
    order_id: int,
    payload: OrderStatusPatch,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    order = order_status.set_status(
        db,
        order_id,
        payload.order_status,
        admin,
        note=payload.notes,
        tracking_number=payload.tracking_number,
    )
    out = order_to_out(order)

    write_log(
        db,
        user_id=admin.id,
        action="ORDER_STATUS_CHANGE",
        resource="orders",
        resource_id=order_id,
        ip=client_ip(request),
        meta={"status": out.status, "tracking_number": out.tracking_number},
    )
    return ApiResponse[OrderResponse](message="Order status updated successfully", data=out)

# Record a refund against a delivered or cancelled order
@router.post("/{order_id}/refund", response_model=ApiResponse[OrderResponse])
def refund_order(
    order_id: int,
    payload: RefundCreate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    order = order_status.process_refund(
        db,
        order_id,
        payload.amount,
        payload.reason,
        admin,
        refund_method=payload.refund_method,
    )
    out = order_to_out(order)

    write_log(
        db,
        user_id=admin.id,
        action="ORDER_REFUND",
        resource="orders",
        resource_id=order_id,
        ip=client_ip(request),
        meta={"amount": payload.amount, "payment_status": out.payment_status},
    )
    return ApiResponse[OrderResponse](message="Refund processed successfully", data=out)
