import os
from datetime import timedelta

# Keep the app's own engine in memory; tests swap in their own session below
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, get_db
from main import app
from models.coupon import Coupon
from models.product import Product
from models.users import User
from utils.dates import utcnow
from utils.tokenJWT import create_access_token


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def users(db):
    admin = User(email="admin@example.com", role="admin", first_name="Store", last_name="Admin")
    customer = User(email="jane@example.com", role="customer", first_name="Jane", last_name="Doe")
    other = User(email="bob@example.com", role="customer", first_name="Bob", last_name="Roe")
    inactive = User(email="gone@example.com", role="customer", is_active=False)
    db.add_all([admin, customer, other, inactive])
    db.commit()
    return {"admin": admin, "customer": customer, "other": other, "inactive": inactive}


@pytest.fixture()
def products(db):
    items = {
        "headphones": Product(name="Wireless Headphones", slug="wireless-headphones", price=100, stock_quantity=10),
        "charger": Product(name="USB-C Charger", slug="usb-c-charger", price=19.99, stock_quantity=100,
                           image_url="https://img.example.com/charger.png"),
        "stand": Product(name="Laptop Stand", slug="laptop-stand", price=34.90, stock_quantity=0),
        "retired": Product(name="Old Mouse", slug="old-mouse", price=9.99, stock_quantity=5, is_active=False),
    }
    db.add_all(items.values())
    db.commit()
    return {key: p.id for key, p in items.items()}


def _headers(email):
    token = create_access_token({"sub": email}, timedelta(minutes=30))
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def customer_headers(users):
    return _headers("jane@example.com")


@pytest.fixture()
def other_headers(users):
    return _headers("bob@example.com")


@pytest.fixture()
def admin_headers(users):
    return _headers("admin@example.com")


@pytest.fixture()
def make_coupon(db, users):
    def _make(code="SAVE10", discount_type="percentage", discount_value=10, **kwargs):
        now = utcnow()
        values = dict(
            code=code,
            description=f"{code} test coupon",
            discount_type=discount_type,
            discount_value=discount_value,
            max_discount_amount=0,
            min_order_amount=0,
            valid_from=now - timedelta(days=1),
            valid_until=now + timedelta(days=30),
            max_usage=100,
            max_usage_per_user=1,
            usage_count=0,
            is_active=True,
        )
        values.update(kwargs)
        coupon = Coupon(**values)
        db.add(coupon)
        db.commit()
        return coupon
    return _make


ADDRESS = {
    "fullName": "Jane Doe",
    "street": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "zipCode": "62701",
    "country": "USA",
}


@pytest.fixture()
def address():
    return dict(ADDRESS)


@pytest.fixture()
def place_order(client, customer_headers):
    """Fill the cart with the given (product_id, quantity) lines and check out."""
    def _place(lines, headers=None, **extra):
        headers = headers or customer_headers
        for product_id, quantity in lines:
            r = client.post("/api/cart", json={"productId": product_id, "quantity": quantity}, headers=headers)
            assert r.status_code == 200, r.text
        body = {"shippingAddress": ADDRESS, "paymentMethod": "credit_card"}
        body.update(extra)
        r = client.post("/api/orders", json=body, headers=headers)
        assert r.status_code == 201, r.text
        return r.json()["data"]
    return _place
