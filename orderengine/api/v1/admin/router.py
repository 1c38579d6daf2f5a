"""
Admin routes for orders and stock
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
from datetime import datetime
import uuid

from orderengine.core.exceptions import NotFoundException
from orderengine.core.security import require_admin
from orderengine.models.order import OrderStatus
from orderengine.services import OrderLedger, ProductStock
from orderengine.utils.dependencies import PaginationParams, get_db, get_pagination_params
from ..orders.schemas import (
    OrderListResponse,
    OrderResponse,
    OrderStatsResponse,
    OrderStatusUpdate,
    RestockRequest,
    StockLevelResponse,
    order_list_response,
)

router = APIRouter()


@router.get("/orders", response_model=OrderListResponse, summary="List all orders")
async def list_all_orders(
    status: Optional[OrderStatus] = None,
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    pagination: PaginationParams = Depends(get_pagination_params),
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    ledger = OrderLedger(db)
    filters = {"status": status, "start_date": start_date, "end_date": end_date}
    orders, page_info = await ledger.list_all(filters, pagination.page, pagination.limit)
    return order_list_response(orders, page_info)


@router.get("/orders/stats", response_model=OrderStatsResponse, summary="Order statistics")
async def order_stats(
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    ledger = OrderLedger(db)
    return OrderStatsResponse(**await ledger.get_stats())


@router.patch("/orders/{order_id}/status", response_model=OrderResponse, summary="Update order status")
async def update_order_status(
    order_id: uuid.UUID,
    status_update: OrderStatusUpdate,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    ledger = OrderLedger(db)
    order = await ledger.update_status(order_id, status_update.status)
    return OrderResponse.model_validate(order)


@router.post("/products/{product_id}/restock", response_model=StockLevelResponse, summary="Restock product")
async def restock_product(
    product_id: uuid.UUID,
    restock: RestockRequest,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    stock = ProductStock(db)
    if not await stock.restock(product_id, restock.quantity):
        raise NotFoundException("Product not found or inactive")
    return StockLevelResponse(product_id=product_id, stock_quantity=await stock.get_stock_level(product_id))
