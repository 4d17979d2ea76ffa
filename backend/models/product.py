# backend/models/product.py
from sqlalchemy import Boolean, CheckConstraint, Column, DateTime, Integer, Numeric, String, func
from database import Base

# Model Product
# Catalogue entry the cart and checkout read from. Managed outside this service
# (seed script / admin tooling); checkout only ever decrements stock_quantity.
class Product(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False, index=True)
    slug = Column(String(220), unique=True, nullable=False, index=True)
    description = Column(String)

    price = Column(Numeric(10, 2), CheckConstraint("price >= 0"), nullable=False)
    stock_quantity = Column(Integer, CheckConstraint("stock_quantity >= 0"), nullable=False, default=0)

    # Primary image, copied onto order lines at checkout
    image_url = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime, server_default=func.now())
