from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime

from bookheaven.schemas.cart_schemas import MAX_LINE_QUANTITY


class OrderLineRequest(BaseModel):
    book_id: int
    quantity: int = Field(default=1, ge=1, le=MAX_LINE_QUANTITY)


class OrderCreate(BaseModel):
    customer_name: Optional[str] = None
    customer_email: Optional[EmailStr] = None
    items: List[OrderLineRequest]


class OrderStatusUpdate(BaseModel):
    status: str


class OrderItemRead(BaseModel):
    book_id: int
    title: str
    price: int
    quantity: int
    line_total: int


class OrderRead(BaseModel):
    id: int
    buyer: str
    customer_name: Optional[str]
    customer_email: Optional[str]
    status: str
    total_amount: int
    items: List[OrderItemRead]
    created_at: datetime
    updated_at: datetime
