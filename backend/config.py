# backend/config.py
from pydantic_settings import BaseSettings
from typing import ClassVar, Dict, Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./storefront.db"

    FRONTEND_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"

    # Checkout pricing
    CURRENCY: str = "USD"
    TAX_RATE: float = 0.08
    FREE_SHIPPING_THRESHOLD: float = 50.0
    SHIPPING_FLAT_FEE: float = 5.99

    # Delivery estimate (days) per shipping method, applied when an order ships
    SHIPPING_DAYS: Dict[str, int] = {"standard": 5, "express": 2, "overnight": 1, "pickup": 0}

    # When false any order status may be set regardless of the current one
    STRICT_STATUS_TRANSITIONS: bool = True

    class Config:
        env_file: ClassVar[str] = str(env_path)
        extra: ClassVar[str] = "ignore"

settings = Settings()
