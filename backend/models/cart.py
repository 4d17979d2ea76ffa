# backend/models/cart.py
from decimal import Decimal

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, UniqueConstraint, func
from sqlalchemy.orm import relationship
from database import Base

# Represents the user's shopping cart (exactly one per user, created on first access)
class Cart(Base):
    __tablename__ = "carts" # Table name

    id = Column(Integer, primary_key=True, index=True) # Primary key
    user_id = Column(Integer, ForeignKey("users.id"), unique=True, index=True, nullable=False) # Owner
    created_at = Column(DateTime, server_default=func.now()) # Creation timestamp
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # One-to-many relationship with cart items
    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.id",
    )

    # Totals are derived from the lines on every read, never stored
    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_amount(self) -> Decimal:
        return sum((item.line_total for item in self.items), Decimal("0.00"))

    def find_item(self, product_id: int):
        return next((item for item in self.items if item.product_id == product_id), None)


# Represents a single item (product + quantity) within a cart
class CartItem(Base):
    __tablename__ = "cart_items" # Table name

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), index=True, nullable=False) # Parent cart
    product_id = Column(Integer, ForeignKey("products.id"), index=True, nullable=False) # Product reference
    quantity = Column(Integer, CheckConstraint("quantity > 0"), nullable=False, default=1)
    unit_price_at_add = Column(Numeric(10, 2), nullable=False) # Unit price at the moment of addition
    added_at = Column(DateTime, server_default=func.now())

    cart = relationship("Cart", back_populates="items") # Relationship back to Cart
    product = relationship("Product") # Relationship to Product

    __table_args__ = (
        # A product appears at most once per cart; re-adding bumps the quantity
        UniqueConstraint("cart_id", "product_id", name="uq_cartitem_cart_product"),
    )

    @property
    def line_total(self) -> Decimal:
        return Decimal(self.unit_price_at_add) * self.quantity
