import os
import sys
from datetime import timedelta

# Add 'backend' folder to Python path
sys.path.append(os.path.abspath(os.path.dirname(__file__)))

# Database models and setup
from database import SessionLocal, init_db
from models.coupon import Coupon, DiscountType
from models.product import Product
from models.users import User
from utils.dates import utcnow
from utils.tokenJWT import create_access_token

# Configuration
USERS = [
    {"email": "admin@example.com", "role": "admin", "first_name": "Store", "last_name": "Admin"},
    {"email": "jane@example.com", "role": "customer", "first_name": "Jane", "last_name": "Doe"},
]

PRODUCTS = [
    ("Wireless Headphones", "wireless-headphones", 100.00, 25),
    ("USB-C Charger", "usb-c-charger", 19.99, 100),
    ("Mechanical Keyboard", "mechanical-keyboard", 89.50, 10),
    ("Laptop Stand", "laptop-stand", 34.90, 0),
    ("HD Webcam", "hd-webcam", 49.99, 40),
]

COUPONS = [
    # code, type, value, cap, minimum order
    ("WELCOME10", DiscountType.PERCENTAGE, 10, 15, 0),
    ("SAVE5", DiscountType.FIXED, 5, 0, 25),
]
# End Configuration


def seed():
    """Creates demo users, products and coupons. Safe to run more than once."""
    init_db()
    session = SessionLocal()
    try:
        for data in USERS:
            if not session.query(User).filter(User.email == data["email"]).first():
                session.add(User(**data))

        for name, slug, price, stock in PRODUCTS:
            if not session.query(Product).filter(Product.slug == slug).first():
                session.add(Product(
                    name=name,
                    slug=slug,
                    description=f"Demo product: {name}",
                    price=price,
                    stock_quantity=stock,
                    image_url=f"https://picsum.photos/seed/{slug}/400/400",
                ))

        now = utcnow()
        admin = session.query(User).filter(User.role == "admin").first()
        session.flush()
        for code, kind, value, cap, minimum in COUPONS:
            if not session.query(Coupon).filter(Coupon.code == code).first():
                session.add(Coupon(
                    code=code,
                    description=f"{code} demo coupon",
                    discount_type=kind.value,
                    discount_value=value,
                    max_discount_amount=cap,
                    min_order_amount=minimum,
                    valid_from=now - timedelta(days=1),
                    valid_until=now + timedelta(days=90),
                    max_usage=100,
                    max_usage_per_user=1,
                    created_by=admin.id if admin else None,
                ))

        session.commit()
        print(f"Seeded {len(USERS)} users, {len(PRODUCTS)} products, {len(COUPONS)} coupons.")

        # Tokens are normally minted by the identity service; print some for local testing
        for data in USERS:
            token = create_access_token({"sub": data["email"], "role": data["role"]}, timedelta(days=7))
            print(f"{data['role']:>8}  {data['email']}\n          Bearer {token}")
    except Exception as e:
        session.rollback()
        print(f"Seeding failed: {e}")
        raise
    finally:
        session.close()


if __name__ == "__main__":
    seed()
