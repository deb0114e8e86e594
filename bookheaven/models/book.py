from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime

from bookheaven.models.timestamps import timestamp_field


def format_price(cents: int) -> str:
    return f"${cents / 100:.2f}"


class Book(SQLModel, table=True):
    #main info
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    slug: str = Field(index=True)
    author: str
    publisher: Optional[str] = None

    #assets
    image_url: Optional[str] = None
    pdf_url: Optional[str] = None

    #Shop Details, price in cents
    price: int
    category: Optional[str] = Field(default=None, index=True)
    is_featured: bool = False

    #timestamps
    created_at: datetime = timestamp_field()
    updated_at: datetime = timestamp_field()

    @property
    def display_price(self) -> str:
        return format_price(self.price)
