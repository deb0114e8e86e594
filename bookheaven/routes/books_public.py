from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select
from bookheaven.database import get_session
from bookheaven.errors import InvalidArgument, NotFound
from bookheaven.models.book import Book
from bookheaven.schemas.book_schemas import BookResponse
from bookheaven.utils.pagination import paginate
from bookheaven.utils.responses import envelope

router = APIRouter()

FEATURED_LIMIT = 6


def book_payload(book: Book) -> BookResponse:
    return BookResponse.model_validate(book)


# ---------- LIST BOOKS ----------
@router.get("", summary="List books, newest first")
def list_books(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session)
):
    query = select(Book).order_by(Book.created_at.desc(), Book.id.desc())
    result = paginate(session=session, query=query, page=page, limit=limit)
    result["results"] = [book_payload(b) for b in result["results"]]
    return envelope(result, "Books retrieved successfully")


# ---------- FEATURED BOOKS ----------
@router.get("/featured", summary="Featured books for the home page")
def featured_books(session: Session = Depends(get_session)):
    books = session.exec(
        select(Book)
        .where(Book.is_featured == True)  # noqa: E712
        .order_by(Book.created_at.desc(), Book.id.desc())
        .limit(FEATURED_LIMIT)
    ).all()

    return envelope([book_payload(b) for b in books], "Featured books retrieved successfully")


# ---------- SEARCH BOOKS ----------
@router.get("/search", summary="Search books by title, author or publisher")
def search_books(
    query: str | None = Query(None, description="Search term"),
    session: Session = Depends(get_session)
):
    if not query or not query.strip():
        raise InvalidArgument("query", "Search query is required")

    like = f"%{query.strip()}%"
    books = session.exec(
        select(Book).where(
            Book.title.ilike(like) |
            Book.author.ilike(like) |
            Book.publisher.ilike(like)
        )
        .order_by(Book.title.asc())
    ).all()

    return envelope([book_payload(b) for b in books], f"Found {len(books)} book(s)")


# ---------- GET BOOK BY ID ----------
@router.get("/{book_id}", summary="Get a single book")
def get_book(book_id: int, session: Session = Depends(get_session)):
    book = session.get(Book, book_id)
    if not book:
        raise NotFound("book", book_id)

    return envelope(book_payload(book), "Book retrieved successfully")
