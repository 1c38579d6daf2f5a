"""API v1 routes aggregation"""

from fastapi import APIRouter

from .cart.router import router as cart_router
from .orders.router import router as orders_router
from .admin.router import router as admin_router

# Create v1 router
api_router = APIRouter()

api_router.include_router(cart_router, prefix="/cart", tags=["Cart"])
api_router.include_router(orders_router, prefix="/orders", tags=["Orders"])
api_router.include_router(admin_router, prefix="/admin", tags=["Admin"])
