"""
Order schemas for request/response validation
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List, Dict, Any
from datetime import datetime
from decimal import Decimal
import uuid

from orderengine.models.order import OrderStatus


class OrderCreate(BaseModel):
    """Schema for placing an order from the active cart"""
    shipping_address: Optional[str] = Field(None, max_length=1000)


class OrderCreatedResponse(BaseModel):
    order_id: uuid.UUID
    total_amount: Decimal


class OrderItemResponse(BaseModel):
    """Order line as charged"""
    model_config = ConfigDict(from_attributes=True)

    product_id: uuid.UUID
    title: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal


class OrderResponse(BaseModel):
    """Schema for order response"""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    cart_id: uuid.UUID
    shipping_address: str
    total_amount: Decimal
    status: OrderStatus
    created_at: datetime
    items: List[OrderItemResponse]


class PaginationInfo(BaseModel):
    current: int
    total: int
    limit: int
    total_items: int


class OrderListResponse(BaseModel):
    orders: List[OrderResponse]
    pagination: PaginationInfo


class OrderStatusUpdate(BaseModel):
    status: str


class TopProduct(BaseModel):
    id: uuid.UUID
    title: str
    total_sold: int


class OrderStatsResponse(BaseModel):
    total_orders: int
    total_revenue: Decimal
    orders_by_status: Dict[str, int]
    top_products: List[TopProduct]


class RestockRequest(BaseModel):
    quantity: int = Field(..., ge=1)


class StockLevelResponse(BaseModel):
    product_id: uuid.UUID
    stock_quantity: int


def order_list_response(orders, pagination: Dict[str, Any]) -> OrderListResponse:
    return OrderListResponse(
        orders=[OrderResponse.model_validate(order) for order in orders],
        pagination=PaginationInfo(**pagination),
    )
