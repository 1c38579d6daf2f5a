"""Order ledger

Append-only store of committed orders and their frozen lines.
"""

from typing import List, Dict, Any, Optional, Sequence, Tuple
from datetime import datetime
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.orm import selectinload
import logging
import math
import uuid

from orderengine.models import Order, OrderItem, OrderStatus
from orderengine.core.exceptions import BadRequestException, NotFoundException
from .pricing import PricedLine, to_money

logger = logging.getLogger(__name__)


def paginate(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "current": page,
        "total": math.ceil(total / limit) if limit else 0,
        "limit": limit,
        "total_items": total,
    }


class OrderLedger:
    """Writes orders once and serves the read paths"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append(
        self,
        user_id: str,
        cart_id: uuid.UUID,
        shipping_address: str,
        lines: Sequence[PricedLine],
        total_amount: Decimal,
    ) -> Order:
        """
        Record a new order with its lines.

        Only order placement calls this, inside its own transaction.
        """
        order = Order(
            user_id=user_id,
            cart_id=cart_id,
            shipping_address=shipping_address,
            total_amount=total_amount,
            status=OrderStatus.PENDING,
        )
        order.items = [
            OrderItem(
                product_id=line.product_id,
                position=position,
                title=line.title,
                unit_price=line.unit_price,
                quantity=line.quantity,
                subtotal=line.subtotal,
            )
            for position, line in enumerate(lines)
        ]
        self.db.add(order)
        await self.db.flush()
        return order

    def _with_items(self):
        return select(Order).options(selectinload(Order.items))

    async def find_by_id(self, order_id: uuid.UUID, user_id: Optional[str] = None) -> Order:
        """Get order by ID, scoped to its owner when user_id is given"""
        query = self._with_items().where(Order.id == order_id)
        if user_id is not None:
            query = query.where(Order.user_id == user_id)

        result = await self.db.execute(query)
        order = result.scalar_one_or_none()
        if order is None:
            raise NotFoundException("Order not found")
        return order

    async def find_by_user(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Order], Dict[str, int]]:
        """Get orders for a user, newest first"""
        total = await self.db.scalar(
            select(func.count(Order.id)).where(Order.user_id == user_id)
        )
        result = await self.db.execute(
            self._with_items()
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), paginate(page, limit, total)

    async def list_all(
        self,
        filters: Optional[Dict[str, Any]] = None,
        page: int = 1,
        limit: int = 10
    ) -> Tuple[List[Order], Dict[str, int]]:
        """
        List orders with optional filters

        Args:
            filters: status, start_date, end_date
            page: 1-based page number
            limit: page size

        Returns:
            Orders for the page and pagination info
        """
        filters = filters or {}
        conditions = []

        if filters.get("status"):
            conditions.append(Order.status == OrderStatus(filters["status"]))
        if filters.get("start_date"):
            conditions.append(Order.created_at >= filters["start_date"])
        if filters.get("end_date"):
            conditions.append(Order.created_at <= filters["end_date"])

        total = await self.db.scalar(select(func.count(Order.id)).where(*conditions))
        result = await self.db.execute(
            self._with_items()
            .where(*conditions)
            .order_by(Order.created_at.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), paginate(page, limit, total)

    async def update_status(self, order_id: uuid.UUID, status: str) -> Order:
        """Record a new status; any of the known values is accepted"""
        try:
            new_status = OrderStatus(status)
        except ValueError:
            raise BadRequestException(f"Invalid order status '{status}'", error_code="INVALID_STATUS")

        order = await self.find_by_id(order_id)
        previous = order.status
        order.status = new_status
        await self.db.flush()

        logger.info(f"Order {order_id} status {previous.value} -> {new_status.value}")
        return order

    async def get_stats(self, since: Optional[datetime] = None, top_limit: int = 5) -> Dict[str, Any]:
        """Order counts, revenue and best-selling products"""
        conditions = [Order.created_at >= since] if since else []

        total_orders = await self.db.scalar(select(func.count(Order.id)).where(*conditions))

        revenue_rows = await self.db.execute(
            select(Order.total_amount)
            .where(Order.status != OrderStatus.PENDING, *conditions)
        )
        total_revenue = sum((row.total_amount for row in revenue_rows), Decimal("0"))

        status_rows = await self.db.execute(
            select(Order.status, func.count(Order.id))
            .where(*conditions)
            .group_by(Order.status)
        )
        orders_by_status = {status.value: count for status, count in status_rows}

        units_sold = func.sum(OrderItem.quantity).label("total_sold")
        top_rows = await self.db.execute(
            select(OrderItem.product_id, func.max(OrderItem.title).label("title"), units_sold)
            .select_from(OrderItem)
            .join(Order, Order.id == OrderItem.order_id)
            .where(Order.status != OrderStatus.PENDING, *conditions)
            .group_by(OrderItem.product_id)
            .order_by(units_sold.desc())
            .limit(top_limit)
        )
        top_products = [
            {"id": row.product_id, "title": row.title, "total_sold": int(row.total_sold)}
            for row in top_rows
        ]

        return {
            "total_orders": total_orders,
            "total_revenue": to_money(total_revenue),
            "orders_by_status": orders_by_status,
            "top_products": top_products,
        }
