from fastapi import APIRouter, Depends
from bookheaven.dependencies.services import get_cart_ledger
from bookheaven.schemas.cart_schemas import CartAddRequest, CartUpdateRequest
from bookheaven.services.cart_ledger import CartLedger
from bookheaven.utils.responses import envelope

router = APIRouter()


# View Cart
@router.get("/{session_id}")
def get_cart(session_id: str, ledger: CartLedger = Depends(get_cart_ledger)):
    cart = ledger.get(session_id)
    message = "Cart retrieved successfully" if cart.items else "Cart is empty"
    return envelope(cart, message)


# Add to Cart
@router.post("/{session_id}/add")
def add_to_cart(
    session_id: str,
    data: CartAddRequest,
    ledger: CartLedger = Depends(get_cart_ledger)
):
    cart = ledger.add_item(session_id, data.book_id, data.quantity)
    return envelope(cart, "Item added to cart successfully")


# Update Cart
@router.put("/{session_id}/update/{book_id}")
def update_cart_item(
    session_id: str,
    book_id: int,
    data: CartUpdateRequest,
    ledger: CartLedger = Depends(get_cart_ledger)
):
    cart = ledger.update_item_quantity(session_id, book_id, data.quantity)
    return envelope(cart, "Cart item updated successfully")


# Remove Cart
@router.delete("/{session_id}/remove/{book_id}")
def remove_from_cart(
    session_id: str,
    book_id: int,
    ledger: CartLedger = Depends(get_cart_ledger)
):
    cart = ledger.remove_item(session_id, book_id)
    return envelope(cart, "Item removed from cart successfully")


# Clear Cart
@router.delete("/{session_id}/clear")
def clear_cart(session_id: str, ledger: CartLedger = Depends(get_cart_ledger)):
    cart = ledger.clear(session_id)
    return envelope(cart, "Cart cleared successfully")
