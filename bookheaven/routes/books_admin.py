import logging
from fastapi import APIRouter, Depends, status
from slugify import slugify
from sqlmodel import Session, select
from bookheaven.database import get_session
from bookheaven.dependencies.admin import require_admin
from bookheaven.errors import InvalidArgument, NotFound
from bookheaven.models.book import Book
from bookheaven.models.order_item import OrderItem
from bookheaven.models.timestamps import utcnow
from bookheaven.routes.books_public import book_payload
from bookheaven.schemas.book_schemas import BookCreate, BookUpdate, dollars_to_cents
from bookheaven.services.repository import BookstoreRepository
from bookheaven.utils.responses import envelope

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("")
def list_books(session: Session = Depends(get_session)):
    books = session.exec(select(Book).order_by(Book.created_at.desc(), Book.id.desc())).all()
    return envelope([book_payload(b) for b in books], "Books retrieved successfully")


@router.post("", status_code=status.HTTP_201_CREATED)
def create_book(data: BookCreate, session: Session = Depends(get_session)):
    slug = data.slug
    if not slug or slug.strip() == "":
        slug = slugify(data.title)

    book = Book(
        title=data.title,
        slug=slug,
        author=data.author,
        publisher=data.publisher,
        price=dollars_to_cents(data.price),
        image_url=data.image_url,
        pdf_url=data.pdf_url,
        category=data.category,
        is_featured=data.is_featured,
    )

    session.add(book)
    session.commit()
    session.refresh(book)

    logger.info(f"Created book {book.id} '{book.title}' at {book.price} cents")
    return envelope(book_payload(book), "Book added successfully")


@router.put("/{book_id}")
def update_book(book_id: int, data: BookUpdate, session: Session = Depends(get_session)):
    book = session.get(Book, book_id)
    if not book:
        raise NotFound("book", book_id)

    changes = data.model_dump(exclude_unset=True)

    # carts keep their price_at_addition, only the catalog moves
    if changes.get("price") is not None:
        changes["price"] = dollars_to_cents(changes["price"])
    if "slug" in changes and not (changes["slug"] or "").strip():
        changes["slug"] = slugify(changes.get("title") or book.title)

    for field, value in changes.items():
        if value is None and field in ("title", "author", "price", "slug", "is_featured"):
            continue
        setattr(book, field, value)

    book.updated_at = utcnow()
    session.add(book)
    session.commit()
    session.refresh(book)

    return envelope(book_payload(book), "Book updated successfully")


@router.delete("/{book_id}")
def delete_book(book_id: int, session: Session = Depends(get_session)):
    book = session.get(Book, book_id)
    if not book:
        raise NotFound("book", book_id)

    ordered = session.exec(
        select(OrderItem.id).where(OrderItem.book_id == book_id)
    ).first()
    if ordered is not None:
        raise InvalidArgument("book_id", "Book is referenced by existing orders and cannot be deleted")

    affected = BookstoreRepository(session).purge_book_from_carts(book_id)
    session.delete(book)
    session.commit()

    logger.info(f"Deleted book {book_id}, rebalanced {affected} cart(s)")
    return envelope(message="Book deleted successfully")
