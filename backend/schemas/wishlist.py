from pydantic import Field
from typing import List, Optional
from datetime import datetime

from schemas.common import CamelModel

class WishlistAdd(CamelModel):
    product_id: int

# Optional body for moving a wishlist line into the cart
class WishlistMoveToCart(CamelModel):
    quantity: int = Field(default=1, ge=1)

class WishlistItemOut(CamelModel):
    product_id: int
    name: str
    price: float
    image_url: Optional[str] = None
    in_stock: bool
    added_at: Optional[datetime] = None

class WishlistOut(CamelModel):
    items: List[WishlistItemOut]
    total_items: int
