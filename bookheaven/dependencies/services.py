from fastapi import Request
from bookheaven.services.cart_ledger import CartLedger
from bookheaven.services.order_service import OrderService


def get_cart_ledger(request: Request) -> CartLedger:
    return request.app.state.cart_ledger


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service
