from decimal import Decimal, ROUND_HALF_UP
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime


def dollars_to_cents(amount: Decimal) -> int:
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _require_whole_cents(price: Optional[Decimal]) -> Optional[Decimal]:
    if price is not None and dollars_to_cents(price) < 1:
        raise ValueError("Price must be at least 0.01")
    return price


class BookCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    author: str = Field(..., min_length=1, max_length=100)
    publisher: Optional[str] = None
    slug: Optional[str] = None

    # dollars, stored as cents
    price: Decimal = Field(..., gt=0)

    image_url: Optional[str] = None
    pdf_url: Optional[str] = None
    category: Optional[str] = None
    is_featured: bool = False

    @field_validator("price")
    @classmethod
    def price_in_cents(cls, value):
        return _require_whole_cents(value)


class BookUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    author: Optional[str] = Field(None, min_length=1, max_length=100)
    publisher: Optional[str] = None
    slug: Optional[str] = None

    price: Optional[Decimal] = Field(None, gt=0)

    image_url: Optional[str] = None
    pdf_url: Optional[str] = None
    category: Optional[str] = None
    is_featured: Optional[bool] = None

    @field_validator("price")
    @classmethod
    def price_in_cents(cls, value):
        return _require_whole_cents(value)


class BookResponse(BaseModel):
    id: int
    title: str
    slug: str
    author: str
    publisher: Optional[str]

    price: int
    display_price: str

    image_url: Optional[str]
    pdf_url: Optional[str]
    category: Optional[str]
    is_featured: bool

    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
