from datetime import timedelta

from utils.tokenJWT import create_access_token


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["success"] is True
    assert r.json()["data"] == {"status": "ok"}


def test_unknown_route(client):
    r = client.get("/api/does-not-exist")
    assert r.status_code == 404
    assert r.json() == {"success": False, "message": "Route not found"}


def test_missing_token(client):
    r = client.get("/api/cart")
    assert r.status_code == 401
    assert r.json()["message"] == "Access denied. No token provided."


def test_garbage_token(client, users):
    r = client.get("/api/cart", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid token."


def test_expired_token(client, users):
    token = create_access_token({"sub": "jane@example.com"}, timedelta(minutes=-5))
    r = client.get("/api/cart", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_token_for_unknown_or_inactive_user(client, users):
    token = create_access_token({"sub": "ghost@example.com"})
    r = client.get("/api/cart", headers={"Authorization": f"Bearer {token}"})
    assert r.json()["message"] == "Invalid token. User not found."

    token = create_access_token({"sub": "gone@example.com"})
    r = client.get("/api/cart", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401
    assert r.json()["message"] == "Account is deactivated."


def test_malformed_body_lists_field_errors(client, customer_headers):
    r = client.post("/api/cart", json={"quantity": "lots"}, headers=customer_headers)
    assert r.status_code == 400
    body = r.json()
    assert body["success"] is False
    fields = {e["field"] for e in body["errors"]}
    assert {"productId", "quantity"} <= fields
