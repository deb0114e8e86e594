from bookheaven.models.book import Book
from bookheaven.models.cart import Cart, CartItem
from bookheaven.models.order import Order
from bookheaven.models.order_item import OrderItem

# add ALL models here
