"""
Cart API routes
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from orderengine.core.security import get_current_user
from orderengine.services import CartService
from orderengine.utils.dependencies import get_db
from .schemas import CartItemCreate, CartItemUpdate, CartResponse

router = APIRouter()


async def _cart_response(service: CartService, user_id: str) -> CartResponse:
    return CartResponse.model_validate(await service.get_cart_summary(user_id), from_attributes=True)


@router.get("/", response_model=CartResponse, summary="Get active cart")
async def get_cart(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the active cart, creating it on first access"""
    service = CartService(db)
    return await _cart_response(service, current_user["id"])


@router.post(
    "/items",
    response_model=CartResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add item to cart"
)
async def add_item(
    item: CartItemCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = CartService(db)
    cart = await service.get_or_create_active(current_user["id"])
    await service.add_line(cart.id, item.product_id, item.quantity)
    return await _cart_response(service, current_user["id"])


@router.put("/items/{product_id}", response_model=CartResponse, summary="Update cart item quantity")
async def update_item(
    product_id: uuid.UUID,
    item: CartItemUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = CartService(db)
    cart = await service.get_or_create_active(current_user["id"])
    await service.update_line_quantity(cart.id, product_id, item.quantity)
    return await _cart_response(service, current_user["id"])


@router.delete("/items/{product_id}", response_model=CartResponse, summary="Remove item from cart")
async def remove_item(
    product_id: uuid.UUID,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = CartService(db)
    cart = await service.get_or_create_active(current_user["id"])
    await service.remove_line(cart.id, product_id)
    return await _cart_response(service, current_user["id"])


@router.delete("/", response_model=CartResponse, summary="Clear cart")
async def clear_cart(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = CartService(db)
    cart = await service.get_or_create_active(current_user["id"])
    await service.clear(cart.id)
    return await _cart_response(service, current_user["id"])
