# backend/models/log.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON, func
from sqlalchemy.orm import relationship
from database import Base

# Audit trail of storefront actions (cart edits, checkouts, admin order changes)
class Log(Base):
    __tablename__ = "logs"

    id = Column(Integer, primary_key=True, index=True)

    ts = Column(DateTime, server_default=func.now(), index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    action = Column(String(50), index=True)      # e.g. CART_ADD, ORDER_STATUS_CHANGE
    resource = Column(String(50), index=True)    # cart, orders, coupons, wishlist
    resource_id = Column(Integer, nullable=True) # id of the touched order/coupon, when there is one
    status = Column(String(20), index=True)      # SUCCESS / FAIL
    ip = Column(String(64), nullable=True)

    # Free-form context (quantities, old/new status, amounts)
    meta = Column(JSON, nullable=True)

    user = relationship("User", lazy="joined", uselist=False)
