# -------- ADMIN ORDERS --------
from fastapi import APIRouter, Depends, Query
from bookheaven.dependencies.admin import require_admin
from bookheaven.dependencies.services import get_order_service
from bookheaven.schemas.orders_schemas import OrderStatusUpdate
from bookheaven.services.order_service import OrderService
from bookheaven.utils.responses import envelope

router = APIRouter(dependencies=[Depends(require_admin)])


@router.get("")
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    status: str | None = None,
    orders: OrderService = Depends(get_order_service),
):
    return envelope(orders.list_orders(page=page, limit=limit, status=status), "Orders retrieved successfully")


@router.get("/{order_id}")
def order_details(order_id: int, orders: OrderService = Depends(get_order_service)):
    return envelope(orders.get_order(order_id), "Order retrieved successfully")


@router.put("/{order_id}/status")
def update_order_status(
    order_id: int,
    data: OrderStatusUpdate,
    orders: OrderService = Depends(get_order_service),
):
    order = orders.update_status(order_id, data.status)
    return envelope(order, "Order status updated successfully")
