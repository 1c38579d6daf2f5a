"""Database models package"""

from .base import Base, TimestampedModel, UUIDModel
from .product import Product
from .cart import Cart, CartItem
from .order import Order, OrderItem, OrderStatus

__all__ = [
    "Base",
    "TimestampedModel",
    "UUIDModel",
    "Product",
    "Cart",
    "CartItem",
    "Order",
    "OrderItem",
    "OrderStatus",
]
