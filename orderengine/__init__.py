"""Order placement engine: carts, stock and orders"""

__version__ = "1.0.0"
