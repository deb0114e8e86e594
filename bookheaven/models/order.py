from sqlmodel import SQLModel, Field, Relationship
from typing import List, Optional
from datetime import datetime

from bookheaven.constants.order_status import OrderStatus
from bookheaven.models.order_item import OrderItem
from bookheaven.models.timestamps import timestamp_field

class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None

    total_amount: int

    status: str = Field(default=OrderStatus.PENDING.value)

    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()

    # relationships (important!)
    items: List["OrderItem"] = Relationship(back_populates="order")
