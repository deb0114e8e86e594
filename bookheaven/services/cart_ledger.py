import logging
from typing import List, Tuple

from sqlalchemy.engine import Engine

from bookheaven.errors import InvalidArgument, NotFound
from bookheaven.models.book import Book
from bookheaven.models.cart import Cart, CartItem
from bookheaven.schemas.cart_schemas import MAX_LINE_QUANTITY, CartItemRead, CartRead
from bookheaven.services.repository import BookstoreRepository
from bookheaven.services.transaction import run_in_transaction

logger = logging.getLogger(__name__)

MAX_SESSION_ID_LENGTH = 128


def _check_session_id(session_id: str):
    if not session_id or not session_id.strip():
        raise InvalidArgument("session_id", "Session ID is required")
    if len(session_id) > MAX_SESSION_ID_LENGTH:
        raise InvalidArgument("session_id", f"Session ID must be at most {MAX_SESSION_ID_LENGTH} characters")


def _check_line_quantity(quantity: int):
    if quantity > MAX_LINE_QUANTITY:
        raise InvalidArgument("quantity", f"Quantity cannot exceed {MAX_LINE_QUANTITY}")


def _cart_view(cart: Cart, lines: List[Tuple[CartItem, Book]]) -> CartRead:
    return CartRead(
        session_id=cart.session_id,
        items=[
            CartItemRead(
                book_id=book.id,
                title=book.title,
                author=book.author,
                image_url=book.image_url,
                quantity=item.quantity,
                price_at_addition=item.price_at_addition,
                line_total=item.price_at_addition * item.quantity,
            )
            for item, book in lines
        ],
        total=cart.total,
        created_at=cart.created_at,
        updated_at=cart.updated_at,
    )


class CartLedger:
    """Per-session shopping carts.

    Each mutation is one transaction: the cart row is locked, the line items
    are changed, and ``total`` is recomputed from the full item set before
    commit. Lines remember the book price from when they were first created;
    later catalog price changes never reach them.
    """

    def __init__(self, engine: Engine, max_attempts: int = 3):
        self.engine = engine
        self.max_attempts = max_attempts

    def _mutate(self, session_id: str, action: str, work) -> CartRead:
        return run_in_transaction(
            self.engine,
            work,
            max_attempts=self.max_attempts,
            action=f"cart {action} for session {session_id}",
        )

    def _locked_cart(self, repo: BookstoreRepository, session_id: str) -> Cart:
        cart = repo.get_cart_by_session(session_id, for_update=True)
        if cart is None:
            raise NotFound("cart", session_id)
        return cart

    def get(self, session_id: str) -> CartRead:
        _check_session_id(session_id)

        def work(repo: BookstoreRepository) -> CartRead:
            cart = repo.get_cart_by_session(session_id)
            if cart is None:
                return CartRead(session_id=session_id)
            return _cart_view(cart, repo.list_cart_items(cart.id))

        return run_in_transaction(self.engine, work, action=f"cart read for session {session_id}")

    def add_item(self, session_id: str, book_id: int, quantity: int = 1) -> CartRead:
        _check_session_id(session_id)
        if quantity < 1:
            raise InvalidArgument("quantity", "Quantity must be at least 1")
        _check_line_quantity(quantity)

        def work(repo: BookstoreRepository) -> CartRead:
            book = repo.find_book_by_id(book_id)
            if book is None:
                raise NotFound("book", book_id)

            cart = repo.get_cart_by_session(session_id, for_update=True)
            if cart is None:
                cart = repo.upsert_cart(session_id)

            item = repo.find_cart_item(cart.id, book_id)
            if item is None:
                repo.upsert_cart_item(cart, book_id, quantity, book.price)
            else:
                _check_line_quantity(item.quantity + quantity)
                repo.upsert_cart_item(cart, book_id, item.quantity + quantity, item.price_at_addition)

            lines = repo.refresh_cart_total(cart)
            logger.info(f"Added {quantity} x book {book_id} to cart {session_id}, total {cart.total}")
            return _cart_view(cart, lines)

        return self._mutate(session_id, "add", work)

    def update_item_quantity(self, session_id: str, book_id: int, quantity: int) -> CartRead:
        _check_session_id(session_id)
        if quantity < 0:
            raise InvalidArgument("quantity", "Quantity cannot be negative")
        _check_line_quantity(quantity)

        def work(repo: BookstoreRepository) -> CartRead:
            cart = self._locked_cart(repo, session_id)
            item = repo.find_cart_item(cart.id, book_id)
            if item is None:
                raise NotFound("cart item", book_id, "Item not found in cart")

            if quantity == 0:
                repo.delete_cart_item(item)
            else:
                repo.upsert_cart_item(cart, book_id, quantity, item.price_at_addition)

            lines = repo.refresh_cart_total(cart)
            logger.info(f"Set book {book_id} quantity to {quantity} in cart {session_id}, total {cart.total}")
            return _cart_view(cart, lines)

        return self._mutate(session_id, "update", work)

    def remove_item(self, session_id: str, book_id: int) -> CartRead:
        _check_session_id(session_id)

        def work(repo: BookstoreRepository) -> CartRead:
            cart = self._locked_cart(repo, session_id)
            item = repo.find_cart_item(cart.id, book_id)
            if item is None:
                raise NotFound("cart item", book_id, "Item not found in cart")

            repo.delete_cart_item(item)
            lines = repo.refresh_cart_total(cart)
            logger.info(f"Removed book {book_id} from cart {session_id}, total {cart.total}")
            return _cart_view(cart, lines)

        return self._mutate(session_id, "remove", work)

    def clear(self, session_id: str) -> CartRead:
        _check_session_id(session_id)

        def work(repo: BookstoreRepository) -> CartRead:
            cart = self._locked_cart(repo, session_id)
            removed = repo.delete_all_cart_items(cart.id)
            lines = repo.refresh_cart_total(cart)
            logger.info(f"Cleared {removed} line(s) from cart {session_id}")
            return _cart_view(cart, lines)

        return self._mutate(session_id, "clear", work)
