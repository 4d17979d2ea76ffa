from models.log import Log
from models.wishlist import Wishlist
from services import wishlist as wishlist_service


def test_get_creates_empty_wishlist(client, customer_headers):
    r = client.get("/api/wishlist", headers=customer_headers)
    assert r.status_code == 200
    assert r.json()["data"] == {"items": [], "totalItems": 0}


def test_add_and_remove(client, customer_headers, products):
    r = client.post("/api/wishlist", json={"productId": products["stand"]}, headers=customer_headers)
    assert r.status_code == 200
    item = r.json()["data"]["items"][0]
    assert item["name"] == "Laptop Stand"
    assert item["inStock"] is False

    r = client.delete(f"/api/wishlist/{products['stand']}", headers=customer_headers)
    assert r.status_code == 200
    assert r.json()["data"]["totalItems"] == 0


def test_add_duplicate_and_unknown(client, customer_headers, products):
    client.post("/api/wishlist", json={"productId": products["charger"]}, headers=customer_headers)
    r = client.post("/api/wishlist", json={"productId": products["charger"]}, headers=customer_headers)
    assert r.status_code == 409
    assert r.json()["message"] == "Product already in wishlist"

    r = client.post("/api/wishlist", json={"productId": 12345}, headers=customer_headers)
    assert r.status_code == 404


def test_remove_without_wishlist(client, customer_headers, products):
    r = client.delete(f"/api/wishlist/{products['charger']}", headers=customer_headers)
    assert r.status_code == 404
    assert r.json()["message"] == "Wishlist not found"


def test_clear(client, customer_headers, products):
    for key in ("charger", "headphones"):
        client.post("/api/wishlist", json={"productId": products[key]}, headers=customer_headers)
    r = client.delete("/api/wishlist", headers=customer_headers)
    assert r.status_code == 200
    assert r.json()["data"]["items"] == []


def test_move_to_cart(client, db, customer_headers, products):
    client.post("/api/wishlist", json={"productId": products["headphones"]}, headers=customer_headers)
    r = client.post(f"/api/wishlist/{products['headphones']}/move-to-cart", json={"quantity": 2}, headers=customer_headers)
    assert r.status_code == 200
    cart = r.json()["data"]
    assert cart["items"][0]["productId"] == products["headphones"]
    assert cart["items"][0]["quantity"] == 2

    wishlist = client.get("/api/wishlist", headers=customer_headers).json()["data"]
    assert wishlist["items"] == []
    assert db.query(Log).filter(Log.action == "WISHLIST_MOVE_TO_CART").count() == 1


def test_move_out_of_stock_keeps_wishlist_line(client, customer_headers, products):
    client.post("/api/wishlist", json={"productId": products["stand"]}, headers=customer_headers)
    r = client.post(f"/api/wishlist/{products['stand']}/move-to-cart", headers=customer_headers)
    assert r.status_code == 400

    wishlist = client.get("/api/wishlist", headers=customer_headers).json()["data"]
    assert wishlist["totalItems"] == 1


def test_move_product_not_in_wishlist(client, customer_headers, products):
    r = client.post(f"/api/wishlist/{products['charger']}/move-to-cart", headers=customer_headers)
    assert r.status_code == 404
    assert r.json()["message"] == "Product not in wishlist"


def test_first_fetch_tolerates_concurrent_create(db, session_factory, monkeypatch, users):
    uid = users["customer"].id
    real_load = wishlist_service._load
    calls = []

    # A parallel request creates the row right after our lookup came back empty
    def load_after_parallel_create(session, user_id):
        found = real_load(session, user_id)
        if not calls:
            calls.append(user_id)
            other = session_factory()
            try:
                other.add(Wishlist(user_id=user_id))
                other.commit()
            finally:
                other.close()
        return found

    monkeypatch.setattr(wishlist_service, "_load", load_after_parallel_create)
    wishlist = wishlist_service.get_wishlist(db, uid)

    rows = db.query(Wishlist).filter(Wishlist.user_id == uid).all()
    assert len(rows) == 1
    assert wishlist.id == rows[0].id
    assert wishlist_service.get_wishlist(db, uid).id == wishlist.id
