"""
Cart service for managing cart operations
"""

from typing import List, Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete
from sqlalchemy.exc import IntegrityError
import logging
import uuid

from orderengine.models import Cart, CartItem, Product
from orderengine.core.exceptions import (
    BadRequestException,
    CartNotActiveException,
    NotFoundException,
    ProductUnavailableException,
)
from .pricing import CartLine, to_money

logger = logging.getLogger(__name__)


class CartService:
    """
    Service for managing cart operations

    Cart edits never touch stock; availability is only enforced when
    the cart is turned into an order.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_active(self, user_id: str, for_update: bool = False) -> Optional[Cart]:
        """Return the user's active cart, optionally row-locked"""
        query = select(Cart).where(Cart.user_id == user_id, Cart.is_active.is_(True))
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_or_create_active(self, user_id: str) -> Cart:
        """
        Fetch the active cart or create it.

        The insert runs in a savepoint guarded by the partial unique index
        on (user_id, active); a racing creator that loses falls back to
        the row the winner committed.
        """
        cart = await self.get_active(user_id)
        if cart is not None:
            return cart

        try:
            async with self.db.begin_nested():
                cart = Cart(user_id=user_id, is_active=True)
                self.db.add(cart)
        except IntegrityError:
            logger.info(f"Concurrent cart creation for user {user_id}, reusing existing cart")
            cart = await self.get_active(user_id)
            if cart is None:
                raise
        return cart

    async def _get_cart(self, cart_id: uuid.UUID) -> Cart:
        cart = await self.db.get(Cart, cart_id)
        if cart is None:
            raise NotFoundException("Cart not found")
        return cart

    async def _require_active(self, cart_id: uuid.UUID) -> Cart:
        # Row lock: an edit waits for a placement holding the cart and then sees it retired
        result = await self.db.execute(
            select(Cart)
            .where(Cart.id == cart_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        cart = result.scalar_one_or_none()
        if cart is None:
            raise NotFoundException("Cart not found")
        if not cart.is_active:
            raise CartNotActiveException(cart_id)
        return cart

    async def add_line(self, cart_id: uuid.UUID, product_id: uuid.UUID, quantity: int) -> CartItem:
        """
        Add product to cart or merge into the existing line
        """
        if quantity < 1:
            raise BadRequestException("Quantity must be at least 1", error_code="INVALID_QUANTITY")

        await self._require_active(cart_id)

        product = await self.db.get(Product, product_id)
        if product is None or not product.is_active:
            raise ProductUnavailableException([product_id])

        if await self._increment_line(cart_id, product_id, quantity):
            return await self._get_line(cart_id, product_id)

        try:
            async with self.db.begin_nested():
                item = CartItem(cart_id=cart_id, product_id=product_id, quantity=quantity)
                self.db.add(item)
            return item
        except IntegrityError:
            # Another request inserted the line first
            if not await self._increment_line(cart_id, product_id, quantity):
                raise
            return await self._get_line(cart_id, product_id)

    async def _increment_line(self, cart_id: uuid.UUID, product_id: uuid.UUID, quantity: int) -> bool:
        result = await self.db.execute(
            update(CartItem)
            .where(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
            .values(quantity=CartItem.quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    async def _get_line(self, cart_id: uuid.UUID, product_id: uuid.UUID) -> CartItem:
        result = await self.db.execute(
            select(CartItem)
            .where(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
            .execution_options(populate_existing=True)
        )
        item = result.scalar_one_or_none()
        if item is None:
            raise NotFoundException("Cart item not found")
        return item

    async def update_line_quantity(
        self,
        cart_id: uuid.UUID,
        product_id: uuid.UUID,
        quantity: int
    ) -> Optional[CartItem]:
        """
        Set the quantity of a line; zero removes it
        """
        if quantity < 0:
            raise BadRequestException("Quantity cannot be negative", error_code="INVALID_QUANTITY")
        if quantity == 0:
            await self.remove_line(cart_id, product_id)
            return None

        await self._require_active(cart_id)
        result = await self.db.execute(
            update(CartItem)
            .where(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
            .values(quantity=quantity)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundException("Cart item not found")
        return await self._get_line(cart_id, product_id)

    async def remove_line(self, cart_id: uuid.UUID, product_id: uuid.UUID) -> None:
        await self._require_active(cart_id)
        result = await self.db.execute(
            delete(CartItem)
            .where(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            raise NotFoundException("Cart item not found")

    async def clear(self, cart_id: uuid.UUID) -> int:
        """Remove every line, returns how many were removed"""
        await self._require_active(cart_id)
        result = await self.db.execute(
            delete(CartItem)
            .where(CartItem.cart_id == cart_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def retire(self, cart_id: uuid.UUID) -> bool:
        """
        One-way switch from active to retired.

        Returns True only for the call that performed the transition;
        retiring an already retired cart is a no-op.
        """
        result = await self.db.execute(
            update(Cart)
            .where(Cart.id == cart_id, Cart.is_active.is_(True))
            .values(is_active=False)
            .execution_options(synchronize_session="fetch")
        )
        if result.rowcount == 0:
            await self._get_cart(cart_id)
            return False
        return True

    async def snapshot_lines(self, cart_id: uuid.UUID) -> List[CartLine]:
        """Cart lines joined with live product price and stock"""
        result = await self.db.execute(
            select(
                CartItem.product_id,
                CartItem.quantity,
                Product.title,
                Product.price,
                Product.stock_quantity,
                Product.is_active,
            )
            .select_from(CartItem)
            .outerjoin(Product, Product.id == CartItem.product_id)
            .where(CartItem.cart_id == cart_id)
            .order_by(CartItem.created_at, CartItem.id)
        )
        return [
            CartLine(
                product_id=row.product_id,
                quantity=row.quantity,
                title=row.title,
                unit_price=row.price,
                stock_quantity=row.stock_quantity or 0,
                is_active=bool(row.is_active),
            )
            for row in result
        ]

    async def get_cart_summary(self, user_id: str) -> Dict[str, Any]:
        """
        Active cart with its lines and totals at live prices
        """
        cart = await self.get_or_create_active(user_id)
        lines = await self.snapshot_lines(cart.id)

        total_amount = sum((line.subtotal for line in lines), to_money(0))
        return {
            "cart": cart,
            "items": lines,
            "summary": {
                "total_items": sum(line.quantity for line in lines),
                "total_amount": to_money(total_amount),
            },
        }

