# backend/models/users.py
from sqlalchemy import Boolean, Column, Integer, String
from database import Base

# Represents a storefront account; role is "customer" or "admin"
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, nullable=False, index=True)
    role = Column(String, nullable=False, default="customer")
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    @property
    def is_admin(self) -> bool:
        return (self.role or "").lower() == "admin"
