import logging
from typing import Iterable, List, Optional, Tuple

from sqlalchemy import delete
from sqlmodel import Session, select

from bookheaven.models.book import Book
from bookheaven.models.cart import Cart, CartItem
from bookheaven.models.order import Order
from bookheaven.models.order_item import OrderItem
from bookheaven.models.timestamps import utcnow

logger = logging.getLogger(__name__)


class BookstoreRepository:
    """Storage operations the cart ledger and order service are written against.

    Every method works inside the caller's session and only flushes; the
    caller owns the transaction boundary.
    """

    def __init__(self, session: Session):
        self.session = session

    # ---------- BOOKS ----------

    def find_book_by_id(self, book_id: int) -> Optional[Book]:
        return self.session.get(Book, book_id)

    def find_books_by_ids(self, book_ids: Iterable[int]) -> List[Book]:
        ids = list(book_ids)
        if not ids:
            return []
        return list(self.session.exec(select(Book).where(Book.id.in_(ids))).all())

    # ---------- CARTS ----------

    def get_cart_by_session(self, session_id: str, for_update: bool = False) -> Optional[Cart]:
        """Fetch the cart row; ``for_update`` locks it until the transaction ends."""
        query = select(Cart).where(Cart.session_id == session_id)
        if for_update:
            query = query.with_for_update()
        return self.session.exec(query).first()

    def upsert_cart(self, session_id: str, total: int = 0) -> Cart:
        cart = self.get_cart_by_session(session_id)
        now = utcnow()
        if cart is None:
            cart = Cart(session_id=session_id, created_at=now)
            logger.info(f"Creating cart for session {session_id}")

        cart.total = total
        cart.updated_at = now
        self.session.add(cart)
        self.session.flush()
        return cart

    def list_cart_items(self, cart_id: int) -> List[Tuple[CartItem, Book]]:
        return list(
            self.session.exec(
                select(CartItem, Book)
                .join(Book, CartItem.book_id == Book.id)
                .where(CartItem.cart_id == cart_id)
                .order_by(CartItem.id)
            ).all()
        )

    def find_cart_item(self, cart_id: int, book_id: int) -> Optional[CartItem]:
        return self.session.exec(
            select(CartItem).where(
                CartItem.cart_id == cart_id,
                CartItem.book_id == book_id
            )
        ).first()

    def upsert_cart_item(self, cart: Cart, book_id: int, quantity: int, price_at_addition: int) -> CartItem:
        """Set the line for ``book_id`` to ``quantity``.

        An existing line keeps its original ``price_at_addition``.
        """
        item = self.find_cart_item(cart.id, book_id)
        if item is None:
            item = CartItem(
                cart_id=cart.id,
                book_id=book_id,
                quantity=quantity,
                price_at_addition=price_at_addition,
                created_at=utcnow()
            )
        else:
            item.quantity = quantity

        self.session.add(item)
        self.session.flush()
        return item

    def delete_cart_item(self, item: CartItem) -> None:
        self.session.delete(item)
        self.session.flush()

    def delete_all_cart_items(self, cart_id: int) -> int:
        result = self.session.exec(delete(CartItem).where(CartItem.cart_id == cart_id))
        self.session.flush()
        return result.rowcount or 0

    def refresh_cart_total(self, cart: Cart) -> List[Tuple[CartItem, Book]]:
        """Recompute ``cart.total`` from its current line items and persist it."""
        lines = self.list_cart_items(cart.id)
        cart.total = sum(item.price_at_addition * item.quantity for item, _ in lines)
        cart.updated_at = utcnow()
        self.session.add(cart)
        self.session.flush()
        return lines

    def purge_book_from_carts(self, book_id: int) -> int:
        """Drop every cart line holding ``book_id`` and rebalance the affected carts."""
        carts = self.session.exec(
            select(Cart)
            .join(CartItem, CartItem.cart_id == Cart.id)
            .where(CartItem.book_id == book_id)
            .with_for_update()
        ).all()

        self.session.exec(delete(CartItem).where(CartItem.book_id == book_id))
        self.session.flush()

        for cart in carts:
            self.refresh_cart_total(cart)

        return len(carts)

    # ---------- ORDERS ----------

    def create_order(
        self,
        lines: List[Tuple[Book, int]],
        customer_name: Optional[str] = None,
        customer_email: Optional[str] = None,
    ) -> Order:
        now = utcnow()
        order = Order(
            customer_name=customer_name,
            customer_email=customer_email,
            total_amount=sum(book.price * quantity for book, quantity in lines),
            created_at=now,
            updated_at=now
        )
        self.session.add(order)
        self.session.flush()

        for book, quantity in lines:
            self.session.add(
                OrderItem(
                    order_id=order.id,
                    book_id=book.id,
                    book_title=book.title,
                    price=book.price,
                    quantity=quantity
                )
            )

        self.session.flush()
        logger.info(f"Created order {order.id} with {len(lines)} line(s)")
        return order

    def get_order(self, order_id: int) -> Optional[Order]:
        return self.session.get(Order, order_id)

    def list_order_items(self, order_id: int) -> List[OrderItem]:
        return list(
            self.session.exec(
                select(OrderItem)
                .where(OrderItem.order_id == order_id)
                .order_by(OrderItem.id)
            ).all()
        )

    def update_order_status(self, order_id: int, status: str) -> Optional[Order]:
        order = self.get_order(order_id)
        if order:
            order.status = status
            order.updated_at = utcnow()
            self.session.add(order)
            self.session.flush()
            logger.info(f"Updated order {order_id} status to {status}")
        return order
