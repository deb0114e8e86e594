import logging
from typing import Dict, List, Optional

from sqlalchemy.engine import Engine
from sqlmodel import select

from bookheaven.constants.order_status import OrderStatus
from bookheaven.errors import InvalidArgument, NotFound
from bookheaven.models.order import Order
from bookheaven.models.order_item import OrderItem
from bookheaven.schemas.cart_schemas import MAX_LINE_QUANTITY
from bookheaven.schemas.orders_schemas import OrderItemRead, OrderLineRequest, OrderRead
from bookheaven.services.repository import BookstoreRepository
from bookheaven.services.transaction import run_in_transaction
from bookheaven.utils.pagination import paginate

logger = logging.getLogger(__name__)


def parse_status(status: str) -> OrderStatus:
    try:
        return OrderStatus(status)
    except ValueError:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise InvalidArgument("status", f"Invalid order status '{status}'. Allowed: {allowed}")


def _order_view(order: Order, items: List[OrderItem]) -> OrderRead:
    return OrderRead(
        id=order.id,
        buyer=order.customer_name or "Guest",
        customer_name=order.customer_name,
        customer_email=order.customer_email,
        status=order.status,
        total_amount=order.total_amount,
        items=[
            OrderItemRead(
                book_id=i.book_id,
                title=i.book_title,
                price=i.price,
                quantity=i.quantity,
                line_total=i.price * i.quantity,
            )
            for i in items
        ],
        created_at=order.created_at,
        updated_at=order.updated_at,
    )


class OrderService:
    def __init__(self, engine: Engine):
        self.engine = engine

    def place_order(
        self,
        items: List[OrderLineRequest],
        customer_name: Optional[str] = None,
        customer_email: Optional[str] = None,
    ) -> OrderRead:
        """Freeze the requested books and quantities into a PENDING order.

        Every book must exist; one missing id fails the whole order and
        nothing is written. Repeated book ids are merged into one line.
        """
        if not items:
            raise InvalidArgument("items", "Order items are required")

        quantities: Dict[int, int] = {}
        for line in items:
            if line.quantity < 1:
                raise InvalidArgument("quantity", f"Quantity for book {line.book_id} must be at least 1")
            quantities[line.book_id] = quantities.get(line.book_id, 0) + line.quantity
            if quantities[line.book_id] > MAX_LINE_QUANTITY:
                raise InvalidArgument("quantity", f"Quantity for book {line.book_id} cannot exceed {MAX_LINE_QUANTITY}")

        def work(repo: BookstoreRepository) -> OrderRead:
            books = {book.id: book for book in repo.find_books_by_ids(quantities)}
            missing = [book_id for book_id in quantities if book_id not in books]
            if missing:
                raise NotFound(
                    "book",
                    missing[0] if len(missing) == 1 else missing,
                    f"Books not found: {', '.join(str(m) for m in missing)}",
                )

            order = repo.create_order(
                [(books[book_id], quantity) for book_id, quantity in quantities.items()],
                customer_name=customer_name,
                customer_email=customer_email,
            )
            return _order_view(order, repo.list_order_items(order.id))

        return run_in_transaction(self.engine, work, action="order placement")

    def update_status(self, order_id: int, status: str) -> OrderRead:
        new_status = parse_status(status)

        def work(repo: BookstoreRepository) -> OrderRead:
            order = repo.update_order_status(order_id, new_status.value)
            if order is None:
                raise NotFound("order", order_id)
            return _order_view(order, repo.list_order_items(order.id))

        return run_in_transaction(self.engine, work, action=f"status update for order {order_id}")

    def get_order(self, order_id: int) -> OrderRead:
        def work(repo: BookstoreRepository) -> OrderRead:
            order = repo.get_order(order_id)
            if order is None:
                raise NotFound("order", order_id)
            return _order_view(order, repo.list_order_items(order.id))

        return run_in_transaction(self.engine, work, action=f"read of order {order_id}")

    def list_orders(self, page: int = 1, limit: int = 10, status: Optional[str] = None) -> dict:
        query = select(Order).order_by(Order.created_at.desc(), Order.id.desc())
        if status:
            query = query.where(Order.status == parse_status(status).value)

        def work(repo: BookstoreRepository) -> dict:
            result = paginate(session=repo.session, query=query, page=page, limit=limit)
            result["results"] = [
                _order_view(order, repo.list_order_items(order.id))
                for order in result["results"]
            ]
            return result

        return run_in_transaction(self.engine, work, action="order listing")
