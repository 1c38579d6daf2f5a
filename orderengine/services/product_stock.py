"""
Product stock operations
The conditional decrement is the only authoritative availability check
"""

from typing import NamedTuple, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
import logging
import uuid

from orderengine.models import Product

logger = logging.getLogger(__name__)


class StockCheck(NamedTuple):
    ok: bool
    available_quantity: int


class ProductStock:
    """
    Manages stock levels for catalog products.

    Every write is a single conditional UPDATE so concurrent buyers are
    serialized by the storage engine, never by a prior read.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_stock_level(self, product_id: uuid.UUID) -> Optional[int]:
        """Current stock of an active product, None if missing or inactive"""
        result = await self.db.execute(
            select(Product.stock_quantity).where(
                Product.id == product_id,
                Product.is_active.is_(True)
            )
        )
        return result.scalar_one_or_none()

    async def check_and_reserve(self, product_id: uuid.UUID, quantity: int) -> StockCheck:
        """
        Advisory availability check.

        Nothing is held: callers still have to go through
        commit_decrement, which re-validates at write time.
        """
        available = await self.get_stock_level(product_id)
        if available is None:
            return StockCheck(ok=False, available_quantity=0)
        return StockCheck(ok=available >= quantity, available_quantity=available)

    async def commit_decrement(self, product_id: uuid.UUID, quantity: int) -> bool:
        """
        Subtract quantity only if enough stock remains and the product is active.

        Returns False when the update matched no row; that is a stock
        failure the caller must act on.
        """
        if quantity <= 0:
            raise ValueError("quantity must be positive")

        result = await self.db.execute(
            update(Product)
            .where(
                Product.id == product_id,
                Product.stock_quantity >= quantity,
                Product.is_active.is_(True)
            )
            .values(stock_quantity=Product.stock_quantity - quantity)
            .execution_options(synchronize_session=False)
        )
        decremented = result.rowcount == 1
        if not decremented:
            logger.debug(f"Conditional decrement of {quantity} missed product {product_id}")
        return decremented

    async def release(self, product_id: uuid.UUID, quantity: int) -> None:
        """Compensate an earlier commit_decrement in the same unit of work"""
        if quantity <= 0:
            raise ValueError("quantity must be positive")

        await self.db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(stock_quantity=Product.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        )

    async def restock(self, product_id: uuid.UUID, quantity: int) -> bool:
        """Add delivered units to an active product"""
        if quantity <= 0:
            raise ValueError("quantity must be positive")

        result = await self.db.execute(
            update(Product)
            .where(Product.id == product_id, Product.is_active.is_(True))
            .values(stock_quantity=Product.stock_quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
