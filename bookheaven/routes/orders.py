from fastapi import APIRouter, Depends, status
from bookheaven.dependencies.services import get_order_service
from bookheaven.schemas.orders_schemas import OrderCreate
from bookheaven.services.order_service import OrderService
from bookheaven.utils.responses import envelope

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
def create_order(data: OrderCreate, orders: OrderService = Depends(get_order_service)):
    order = orders.place_order(
        data.items,
        customer_name=data.customer_name,
        customer_email=data.customer_email,
    )
    return envelope(order, "Order created successfully")


@router.get("/{order_id}")
def get_order(order_id: int, orders: OrderService = Depends(get_order_service)):
    return envelope(orders.get_order(order_id), "Order retrieved successfully")
