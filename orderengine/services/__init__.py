"""Business services for carts, stock and orders"""

from .cart_service import CartService
from .order_ledger import OrderLedger
from .order_service import OrderPlacementService
from .pricing import CartLine, PricedLine, price_lines
from .product_stock import ProductStock, StockCheck

__all__ = [
    "CartService",
    "OrderLedger",
    "OrderPlacementService",
    "CartLine",
    "PricedLine",
    "price_lines",
    "ProductStock",
    "StockCheck",
]
