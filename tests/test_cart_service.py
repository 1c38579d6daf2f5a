"""Tests for the cart lifecycle."""

import asyncio
import uuid
from decimal import Decimal

import pytest
from sqlalchemy import Select, select, func
from sqlalchemy.dialects import postgresql

from orderengine.core.exceptions import (
    BadRequestException,
    CartNotActiveException,
    NotFoundException,
    ProductUnavailableException,
)
from orderengine.models import Cart
from orderengine.services import CartService


async def _lines(database, cart):
    async with database.session() as session:
        return await CartService(session).snapshot_lines(cart.id)


class TestGetOrCreateActive:
    async def test_creates_cart_lazily(self, database):
        async with database.transaction() as session:
            cart = await CartService(session).get_or_create_active("user-1")
        assert cart.is_active
        assert cart.user_id == "user-1"

    async def test_returns_existing_active_cart(self, database):
        async with database.transaction() as session:
            first = await CartService(session).get_or_create_active("user-1")
        async with database.transaction() as session:
            second = await CartService(session).get_or_create_active("user-1")
        assert first.id == second.id

    async def test_concurrent_creation_yields_one_active_cart(self, database):
        async def create():
            async with database.transaction() as session:
                return (await CartService(session).get_or_create_active("user-1")).id

        ids = await asyncio.gather(*[create() for _ in range(5)])

        assert len(set(ids)) == 1
        async with database.session() as session:
            active = await session.scalar(
                select(func.count(Cart.id)).where(Cart.user_id == "user-1", Cart.is_active.is_(True))
            )
        assert active == 1

    async def test_new_cart_after_retirement(self, database):
        async with database.transaction() as session:
            carts = CartService(session)
            first = await carts.get_or_create_active("user-1")
            await carts.retire(first.id)
        async with database.transaction() as session:
            second = await CartService(session).get_or_create_active("user-1")
        assert second.id != first.id
        assert second.is_active


class TestAddLine:
    async def test_duplicate_add_merges_quantities(self, database, make_product, fill_cart):
        product = await make_product()
        cart = await fill_cart("user-1", [(product, 2), (product, 3)])

        lines = await _lines(database, cart)
        assert len(lines) == 1
        assert lines[0].quantity == 5

    async def test_does_not_touch_stock(self, database, make_product, fill_cart, stock_of):
        product = await make_product(stock=1)
        await fill_cart("user-1", [(product, 10)])
        assert await stock_of(product) == 1

    async def test_inactive_product_cannot_be_added(self, database, make_product, fill_cart):
        product = await make_product(is_active=False)
        with pytest.raises(ProductUnavailableException):
            await fill_cart("user-1", [(product, 1)])

    async def test_quantity_must_be_positive(self, database, make_product, fill_cart):
        product = await make_product()
        with pytest.raises(BadRequestException):
            await fill_cart("user-1", [(product, 0)])

    async def test_retired_cart_is_immutable(self, database, make_product, fill_cart):
        product = await make_product()
        cart = await fill_cart("user-1", [(product, 1)])
        async with database.transaction() as session:
            await CartService(session).retire(cart.id)

        with pytest.raises(CartNotActiveException):
            async with database.transaction() as session:
                await CartService(session).add_line(cart.id, product.id, 1)

    async def test_edits_lock_the_cart_row(self, database, monkeypatch, make_product, fill_cart):
        product = await make_product()
        cart = await fill_cart("user-1", [])
        statements = []

        async with database.transaction() as session:
            execute = session.execute

            async def recording_execute(statement, *args, **kwargs):
                statements.append(statement)
                return await execute(statement, *args, **kwargs)

            monkeypatch.setattr(session, "execute", recording_execute)
            await CartService(session).add_line(cart.id, product.id, 1)

        selects = [str(s.compile(dialect=postgresql.dialect())) for s in statements if isinstance(s, Select)]
        assert any("FROM carts" in sql and "FOR UPDATE" in sql for sql in selects)


class TestEditLines:
    async def test_update_sets_quantity(self, database, make_product, fill_cart):
        product = await make_product()
        cart = await fill_cart("user-1", [(product, 2)])
        async with database.transaction() as session:
            item = await CartService(session).update_line_quantity(cart.id, product.id, 7)
        assert item.quantity == 7
        assert (await _lines(database, cart))[0].quantity == 7

    async def test_update_to_zero_removes_line(self, database, make_product, fill_cart):
        product = await make_product()
        cart = await fill_cart("user-1", [(product, 2)])
        async with database.transaction() as session:
            assert await CartService(session).update_line_quantity(cart.id, product.id, 0) is None
        assert await _lines(database, cart) == []

    async def test_update_unknown_line(self, database, make_product, fill_cart):
        product, other = await make_product(), await make_product()
        cart = await fill_cart("user-1", [(product, 1)])
        with pytest.raises(NotFoundException):
            async with database.transaction() as session:
                await CartService(session).update_line_quantity(cart.id, other.id, 3)

    async def test_remove_line(self, database, make_product, fill_cart):
        keep, drop = await make_product(title="keep"), await make_product(title="drop")
        cart = await fill_cart("user-1", [(keep, 1), (drop, 1)])
        async with database.transaction() as session:
            await CartService(session).remove_line(cart.id, drop.id)
        assert [line.title for line in await _lines(database, cart)] == ["keep"]

    async def test_clear(self, database, make_product, fill_cart):
        a, b = await make_product(), await make_product()
        cart = await fill_cart("user-1", [(a, 1), (b, 2)])
        async with database.transaction() as session:
            assert await CartService(session).clear(cart.id) == 2
        assert await _lines(database, cart) == []


class TestRetire:
    async def test_retire_is_idempotent(self, database, fill_cart):
        cart = await fill_cart("user-1", [])
        async with database.transaction() as session:
            carts = CartService(session)
            assert await carts.retire(cart.id) is True
            assert await carts.retire(cart.id) is False

    async def test_retire_unknown_cart(self, database):
        with pytest.raises(NotFoundException):
            async with database.transaction() as session:
                await CartService(session).retire(uuid.uuid4())


class TestSnapshot:
    async def test_lines_follow_insertion_order_with_live_prices(self, database, make_product, fill_cart):
        first = await make_product(title="first", price="1.50", stock=1)
        second = await make_product(title="second", price="2.00", stock=0)
        cart = await fill_cart("user-1", [(first, 2), (second, 1)])

        lines = await _lines(database, cart)

        assert [line.title for line in lines] == ["first", "second"]
        assert lines[0].unit_price == Decimal("1.50")
        assert lines[0].subtotal == Decimal("3.00")
        assert not lines[0].available
        assert not lines[1].available

    async def test_summary_totals(self, database, make_product, fill_cart):
        a = await make_product(price="9.99")
        b = await make_product(price="0.01")
        await fill_cart("user-1", [(a, 3), (b, 1)])

        async with database.transaction() as session:
            summary = await CartService(session).get_cart_summary("user-1")

        assert summary["summary"] == {"total_items": 4, "total_amount": Decimal("29.98")}
        assert len(summary["items"]) == 2
