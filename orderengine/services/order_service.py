"""
Order placement
Turns the user's active cart into an order in a single transaction
"""

from typing import Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
import logging
import uuid

from orderengine.core.database import Database
from orderengine.core.exceptions import (
    EmptyCartException,
    InsufficientStockException,
    MissingShippingAddressException,
    PlacementException,
    StockShortage,
    StorageFailureException,
)
from orderengine.models import Order
from .cart_service import CartService
from .order_ledger import OrderLedger
from .pricing import CartLine, price_lines
from .product_stock import ProductStock

logger = logging.getLogger(__name__)


class OrderPlacementService:
    """
    Places orders from carts.

    Every step runs inside one Database.transaction(): stock decrements,
    the order insert and the cart retirement commit together, or the
    transaction is rolled back and nothing is visible to anyone else.
    """

    def __init__(self, database: Database):
        self.database = database

    async def place_order(self, user_id: str, shipping_address: Optional[str]) -> Order:
        """
        Create an order from the user's active cart

        Args:
            user_id: Verified user ID from the identity provider
            shipping_address: Delivery address, required

        Returns:
            The committed order with its lines

        Raises:
            MissingShippingAddressException: address absent or blank
            EmptyCartException: no active cart, no lines, or cart already consumed
            ProductUnavailableException: a product was deactivated or removed
            InsufficientStockException: one or more lines exceed current stock
            StorageFailureException: the database failed; everything was rolled back
        """
        address = (shipping_address or "").strip()
        if not address:
            raise MissingShippingAddressException()

        try:
            async with self.database.transaction() as session:
                order = await self._place(session, user_id, address)
        except PlacementException as e:
            logger.warning(f"Order placement rejected for user {user_id}: {e.error_code}")
            raise
        except SQLAlchemyError:
            logger.exception(f"Storage failure while placing order for user {user_id}")
            raise StorageFailureException()

        logger.info(
            f"Order {order.id} placed for user {user_id}: "
            f"{len(order.items)} lines, total {order.total_amount}"
        )
        return order

    async def _place(self, session: AsyncSession, user_id: str, address: str) -> Order:
        carts = CartService(session)
        stock = ProductStock(session)
        ledger = OrderLedger(session)

        # Lock the cart row so a concurrent placement on the same cart waits here
        cart = await carts.get_active(user_id, for_update=True)
        if cart is None:
            raise EmptyCartException()

        lines = await carts.snapshot_lines(cart.id)
        if not lines:
            raise EmptyCartException()

        # Prices come from the snapshot read before any stock moves
        priced_lines, total_amount = price_lines(lines)

        await self._decrement_all(stock, lines)

        order = await ledger.append(
            user_id=user_id,
            cart_id=cart.id,
            shipping_address=address,
            lines=priced_lines,
            total_amount=total_amount,
        )

        if not await carts.retire(cart.id):
            # Someone else consumed this cart first
            raise EmptyCartException()

        return order

    async def _decrement_all(self, stock: ProductStock, lines: List[CartLine]) -> None:
        """
        Decrement stock for every line, or for none of them.

        Rows are touched in product id order so concurrent placements
        take their row locks in the same sequence. All lines are attempted
        so the failure lists every short product, in cart order.
        """
        applied: List[Tuple[uuid.UUID, int]] = []
        shortages: Dict[uuid.UUID, StockShortage] = {}

        for line in sorted(lines, key=lambda line: line.product_id):
            if await stock.commit_decrement(line.product_id, line.quantity):
                applied.append((line.product_id, line.quantity))
                continue

            check = await stock.check_and_reserve(line.product_id, line.quantity)
            shortages[line.product_id] = StockShortage(
                product_id=line.product_id,
                title=line.title,
                requested=line.quantity,
                available=check.available_quantity,
            )

        if shortages:
            for product_id, quantity in reversed(applied):
                await stock.release(product_id, quantity)
            raise InsufficientStockException(
                [shortages[line.product_id] for line in lines if line.product_id in shortages]
            )
