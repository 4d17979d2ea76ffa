# backend/routes/coupons.py
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from database import get_db
from utils.tokenJWT import get_current_user, require_admin
from utils.audit import client_ip, write_log
from models.users import User
from routes.orders import order_to_out
from schemas.common import ApiResponse
from schemas.coupon import CouponApplyRequest, CouponCreate, CouponOut, CouponValidateOut, CouponValidateRequest
from schemas.order import OrderResponse
from services import coupons

router = APIRouter(prefix="/coupons", tags=["Coupons"])

# Dry-run: report the discount a code would give, counters untouched
@router.post("/validate", response_model=ApiResponse[CouponValidateOut])
def validate_coupon(
    payload: CouponValidateRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    coupon, discount = coupons.validate_coupon(db, payload.code, payload.order_total, current_user.id)
    out = CouponValidateOut(
        code=coupon.code,
        discount_type=coupon.discount_type,
        discount_value=float(coupon.discount_value),
        discount_amount=float(discount),
    )
    return ApiResponse[CouponValidateOut](message="Coupon is valid", data=out)

@router.post("/apply", response_model=ApiResponse[OrderResponse])
def apply_coupon(
    payload: CouponApplyRequest,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    order = coupons.apply_coupon(db, payload.code, payload.order_id, current_user.id)
    out = order_to_out(order)

    write_log(
        db,
        user_id=current_user.id,
        action="COUPON_APPLY",
        resource="coupons",
        resource_id=out.id,
        ip=client_ip(request),
        meta={"code": out.coupon_code, "discount": out.discount, "total": out.total},
    )
    return ApiResponse[OrderResponse](message="Coupon applied successfully", data=out)

@router.post("/admin", response_model=ApiResponse[CouponOut], status_code=status.HTTP_201_CREATED)
def create_coupon(
    payload: CouponCreate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    coupon = coupons.create_coupon(db, payload, admin)
    out = CouponOut.model_validate(coupon)

    write_log(
        db,
        user_id=admin.id,
        action="COUPON_CREATE",
        resource="coupons",
        resource_id=out.id,
        ip=client_ip(request),
        meta={"code": out.code, "discount_type": out.discount_type, "discount_value": out.discount_value},
    )
    return ApiResponse[CouponOut](message="Coupon created successfully", data=out)
