from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlmodel import Session, select
from bookheaven.database import get_session
from bookheaven.models.book import Book
from bookheaven.routes.books_public import book_payload
from bookheaven.utils.responses import envelope

router = APIRouter()


# ---------- LIST ALL CATEGORIES ----------
@router.get("", summary="List all categories")
def list_categories(session: Session = Depends(get_session)):
    categories = session.exec(
        select(Book.category).where(Book.category.is_not(None)).distinct()
    ).all()

    return envelope(sorted(c for c in categories if c), "Categories retrieved successfully")


# ---------- LIST BOOKS BY CATEGORY ----------
@router.get("/{category}/books", summary="List books in a category")
def list_books_by_category(category: str, session: Session = Depends(get_session)):
    books = session.exec(
        select(Book)
        .where(func.lower(Book.category) == category.strip().lower())
        .order_by(Book.created_at.desc(), Book.id.desc())
    ).all()

    return envelope([book_payload(b) for b in books], f"Books in category '{category}' retrieved successfully")
