"""
Order API routes
"""

from typing import Optional
from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
import uuid

from orderengine.core.database import Database
from orderengine.core.security import get_current_user
from orderengine.services import OrderLedger, OrderPlacementService
from orderengine.utils.dependencies import PaginationParams, get_database, get_db, get_pagination_params
from .schemas import (
    OrderCreate,
    OrderCreatedResponse,
    OrderListResponse,
    OrderResponse,
    order_list_response,
)

router = APIRouter()


@router.post(
    "/",
    response_model=OrderCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Place order",
    description="Turn the active cart into an order"
)
async def place_order(
    order_data: Optional[OrderCreate] = Body(None),
    current_user: dict = Depends(get_current_user),
    database: Database = Depends(get_database)
):
    address = order_data.shipping_address if order_data else None
    service = OrderPlacementService(database)
    order = await service.place_order(current_user["id"], address)
    return OrderCreatedResponse(order_id=order.id, total_amount=order.total_amount)


@router.get("/", response_model=OrderListResponse, summary="List my orders")
async def list_orders(
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ledger = OrderLedger(db)
    orders, page_info = await ledger.find_by_user(current_user["id"], pagination.page, pagination.limit)
    return order_list_response(orders, page_info)


@router.get("/{order_id}", response_model=OrderResponse, summary="Get order details")
async def get_order(
    order_id: uuid.UUID,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    ledger = OrderLedger(db)
    order = await ledger.find_by_id(order_id, user_id=current_user["id"])
    return OrderResponse.model_validate(order)
