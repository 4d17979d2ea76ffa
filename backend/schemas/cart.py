from pydantic import Field
from typing import List, Optional

from schemas.common import CamelModel

# Request schema for adding an item to the cart
class CartAddItem(CamelModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)

# Request schema for setting a line's quantity (0 removes the line)
class CartUpdateItem(CamelModel):
    product_id: int
    quantity: int = Field(ge=0)

# Request schema for removing a line
class CartRemoveItem(CamelModel):
    product_id: int

# Response schema for a single cart line item
class CartItemOut(CamelModel):
    product_id: int
    name: str
    image_url: Optional[str] = None
    price: float            # unit price captured when the line was created
    current_price: float    # product's live price, may differ from the snapshot
    quantity: int
    line_total: float
    stock_quantity: int

# Response schema for the entire cart summary
class CartOut(CamelModel):
    items: List[CartItemOut]
    total_items: int
    total_amount: float
