from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

# upper bound for a single cart or order line
MAX_LINE_QUANTITY = 999

class CartAddRequest(BaseModel):
    book_id: int
    quantity: int = Field(default=1, ge=1, le=MAX_LINE_QUANTITY)

class CartUpdateRequest(BaseModel):
    # 0 removes the line, negatives are rejected by the ledger
    quantity: int = Field(..., le=MAX_LINE_QUANTITY)


class CartItemRead(BaseModel):
    book_id: int
    title: str
    author: str
    image_url: Optional[str] = None
    quantity: int
    price_at_addition: int
    line_total: int


class CartRead(BaseModel):
    session_id: str
    items: List[CartItemRead] = []
    total: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
