from datetime import timedelta

import pytest

from config import settings
from models.log import Log
from models.order import Order
from services import order_status
from utils.errors import InvalidTransition, NotFound


def _set(client, headers, order_id, status, **extra):
    body = {"orderStatus": status}
    body.update(extra)
    return client.put(f"/api/admin/orders/{order_id}/status", json=body, headers=headers)


def _walk(client, headers, order_id, *statuses):
    for status in statuses:
        r = _set(client, headers, order_id, status)
        assert r.status_code == 200, r.text
    return r.json()["data"]


def test_status_change_appends_history(client, admin_headers, place_order, products):
    order = place_order([(products["charger"], 1)])
    r = _set(client, admin_headers, order["id"], "confirmed", notes="Payment verified")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["status"] == "confirmed"
    assert [h["status"] for h in data["statusHistory"]] == ["pending", "confirmed"]
    assert data["statusHistory"][-1]["note"] == "Payment verified"


def test_same_status_is_allowed_and_recorded(client, admin_headers, place_order, products):
    order = place_order([(products["charger"], 1)])
    data = _walk(client, admin_headers, order["id"], "pending")
    assert data["status"] == "pending"
    assert len(data["statusHistory"]) == 2


def test_shipping_sets_tracking_and_estimate(client, admin_headers, place_order, products):
    order = place_order([(products["charger"], 1)], shippingMethod="express")
    _walk(client, admin_headers, order["id"], "confirmed", "processing")
    r = _set(client, admin_headers, order["id"], "shipped", trackingNumber="1Z999")
    data = r.json()["data"]
    assert data["trackingNumber"] == "1Z999"
    assert data["estimatedDelivery"] is not None


def test_estimate_matches_shipping_method(db, users, place_order, products):
    order = place_order([(products["charger"], 1)], shippingMethod="overnight")
    admin = users["admin"]
    order_status.set_status(db, order["id"], "processing", admin)
    shipped = order_status.set_status(db, order["id"], "shipped", admin)
    last = shipped.status_history[-1].timestamp
    assert abs(shipped.estimated_delivery - (last + timedelta(days=1))) < timedelta(seconds=5)


def test_estimate_is_not_overwritten(db, users, place_order, products):
    order = place_order([(products["charger"], 1)])
    admin = users["admin"]
    order_status.set_status(db, order["id"], "processing", admin)
    first = order_status.set_status(db, order["id"], "shipped", admin).estimated_delivery
    again = order_status.set_status(db, order["id"], "shipped", admin, tracking_number="NEW1")
    assert again.estimated_delivery == first
    assert again.tracking_number == "NEW1"


def test_delivery_marks_cash_orders_paid(client, admin_headers, place_order, products):
    order = place_order([(products["charger"], 1)], paymentMethod="cash_on_delivery")
    data = _walk(client, admin_headers, order["id"], "processing", "shipped", "delivered")
    assert data["actualDelivery"] is not None
    assert data["paymentStatus"] == "paid"


def test_delivery_keeps_card_payment_status(client, admin_headers, place_order, products):
    order = place_order([(products["charger"], 1)])
    data = _walk(client, admin_headers, order["id"], "processing", "shipped", "delivered")
    assert data["paymentStatus"] == "pending"


def test_illegal_transition_rejected_without_history(client, db, admin_headers, place_order, products):
    order = place_order([(products["charger"], 1)])
    r = _set(client, admin_headers, order["id"], "delivered")
    assert r.status_code == 400
    assert r.json()["message"] == "Cannot change order status from pending to delivered"

    db.expire_all()
    stored = db.get(Order, order["id"])
    assert stored.status == "pending"
    assert len(stored.status_history) == 1


def test_refunded_is_terminal(db, users, place_order, products):
    order = place_order([(products["charger"], 1)])
    admin = users["admin"]
    order_status.set_status(db, order["id"], "cancelled", admin)
    order_status.set_status(db, order["id"], "refunded", admin)
    with pytest.raises(InvalidTransition):
        order_status.set_status(db, order["id"], "pending", admin)


def test_permissive_mode_allows_any_transition(db, users, place_order, products, monkeypatch):
    monkeypatch.setattr(settings, "STRICT_STATUS_TRANSITIONS", False)
    order = place_order([(products["charger"], 1)])
    updated = order_status.set_status(db, order["id"], "delivered", users["admin"])
    assert updated.status == "delivered"


def test_unknown_order(db, users):
    with pytest.raises(NotFound):
        order_status.set_status(db, 999, "confirmed", users["admin"])


def test_invalid_status_value(client, admin_headers, place_order, products):
    order = place_order([(products["charger"], 1)])
    r = _set(client, admin_headers, order["id"], "teleported")
    assert r.status_code == 400
    assert r.json()["errors"][0]["field"] == "orderStatus"


def test_status_change_requires_admin(client, customer_headers, place_order, products):
    order = place_order([(products["charger"], 1)])
    r = _set(client, customer_headers, order["id"], "confirmed")
    assert r.status_code == 403
    assert r.json()["message"] == "Access denied. Admin privileges required."


def test_status_change_is_audited(client, db, admin_headers, place_order, products):
    order = place_order([(products["charger"], 1)])
    _set(client, admin_headers, order["id"], "confirmed")
    log = db.query(Log).filter(Log.action == "ORDER_STATUS_CHANGE").one()
    assert log.resource_id == order["id"]
    assert log.meta["status"] == "confirmed"


def _delivered_order(client, admin_headers, place_order, products):
    # 2 x 100 -> total 216.00
    order = place_order([(products["headphones"], 2)])
    _walk(client, admin_headers, order["id"], "processing", "shipped", "delivered")
    return order


def test_partial_then_full_refund(client, admin_headers, place_order, products):
    order = _delivered_order(client, admin_headers, place_order, products)
    url = f"/api/admin/orders/{order['id']}/refund"

    r = client.post(url, json={"amount": 16, "reason": "Damaged box"}, headers=admin_headers)
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["paymentStatus"] == "partially_refunded"
    assert data["status"] == "delivered"
    assert data["refunds"][0]["amount"] == pytest.approx(16.0)
    assert data["refunds"][0]["refundMethod"] == "original"

    r = client.post(url, json={"amount": 200, "reason": "Returned", "refundMethod": "store_credit"}, headers=admin_headers)
    data = r.json()["data"]
    assert data["status"] == "refunded"
    assert data["paymentStatus"] == "refunded"
    assert data["statusHistory"][-1]["status"] == "refunded"
    assert len(data["refunds"]) == 2


def test_refund_cannot_exceed_remaining(client, admin_headers, place_order, products):
    order = _delivered_order(client, admin_headers, place_order, products)
    url = f"/api/admin/orders/{order['id']}/refund"
    client.post(url, json={"amount": 200, "reason": "Partial"}, headers=admin_headers)
    r = client.post(url, json={"amount": 20, "reason": "Too much"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Refund amount cannot exceed 16.00"


def test_refund_requires_delivered_or_cancelled(client, admin_headers, place_order, products):
    order = place_order([(products["charger"], 1)])
    r = client.post(f"/api/admin/orders/{order['id']}/refund", json={"amount": 5, "reason": "x"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Order cannot be refunded in current status"


def test_refund_amount_must_be_positive(client, admin_headers, place_order, products):
    order = place_order([(products["charger"], 1)])
    _set(client, admin_headers, order["id"], "cancelled")
    r = client.post(f"/api/admin/orders/{order['id']}/refund", json={"amount": 0, "reason": "x"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Validation errors"
