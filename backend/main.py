# backend/main.py
import logging

from fastapi import APIRouter, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

load_dotenv()

from config import settings
from database import init_db
from schemas.common import ApiResponse
from utils.errors import register_error_handlers

# Router imports
from routes.cart import router as cart_router
from routes.orders import router as orders_router
from routes.admin_orders import router as admin_orders_router
from routes.coupons import router as coupons_router
from routes.wishlist import router as wishlist_router

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Initialization
init_db()

app = FastAPI(title="Storefront API", version="1.0.0")

# CORS Configuration: local dev frontends plus the deployed one, if configured
origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]
if settings.FRONTEND_URL:
    origins.append(settings.FRONTEND_URL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Router registration, everything lives under /api
api = APIRouter(prefix="/api")
api.include_router(cart_router)
api.include_router(orders_router)
api.include_router(admin_orders_router)
api.include_router(coupons_router)
api.include_router(wishlist_router)

@api.get("/health", response_model=ApiResponse[dict])
def health():
    return ApiResponse[dict](message="Storefront API is running", data={"status": "ok"})

app.include_router(api)
