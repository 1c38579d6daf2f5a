"""
Cart schemas for request/response validation
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
import uuid


class CartItemCreate(BaseModel):
    """Schema for adding item to cart"""
    product_id: uuid.UUID
    quantity: int = Field(1, ge=1)


class CartItemUpdate(BaseModel):
    """Schema for updating cart item; 0 removes the line"""
    quantity: int = Field(..., ge=0)


class CartLineResponse(BaseModel):
    """Cart line with live product data"""
    model_config = ConfigDict(from_attributes=True)

    product_id: uuid.UUID
    title: Optional[str]
    unit_price: Optional[Decimal]
    quantity: int
    stock_quantity: int
    subtotal: Decimal
    available: bool


class CartInfo(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: str
    is_active: bool
    created_at: datetime


class CartSummary(BaseModel):
    total_items: int
    total_amount: Decimal


class CartResponse(BaseModel):
    """Complete cart response"""
    cart: CartInfo
    items: List[CartLineResponse]
    summary: CartSummary
