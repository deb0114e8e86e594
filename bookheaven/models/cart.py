from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import CheckConstraint, UniqueConstraint
from typing import List, Optional
from datetime import datetime

from bookheaven.models.timestamps import timestamp_field


class Cart(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    session_id: str = Field(index=True, unique=True, max_length=128)

    # cents, always the sum of price_at_addition * quantity over items
    total: int = 0

    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()

    items: List["CartItem"] = Relationship(back_populates="cart")


class CartItem(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("cart_id", "book_id"),
        CheckConstraint("quantity >= 1", name="ck_cartitem_quantity_positive"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    cart_id: int = Field(foreign_key="cart.id", index=True)
    book_id: int = Field(foreign_key="book.id")
    quantity: int = 1

    # snapshot of Book.price when the line was first created
    price_at_addition: int

    created_at: datetime = timestamp_field()

    cart: Optional[Cart] = Relationship(back_populates="items")
