"""Tests for conditional stock operations."""

import asyncio
import uuid

import pytest

from orderengine.services import ProductStock


class TestCheckAndReserve:
    async def test_reports_available_quantity(self, database, make_product):
        product = await make_product(stock=5)
        async with database.session() as session:
            check = await ProductStock(session).check_and_reserve(product.id, 3)
        assert check.ok
        assert check.available_quantity == 5

    async def test_insufficient_stock(self, database, make_product):
        product = await make_product(stock=2)
        async with database.session() as session:
            check = await ProductStock(session).check_and_reserve(product.id, 3)
        assert not check.ok
        assert check.available_quantity == 2

    async def test_inactive_product_has_nothing_available(self, database, make_product):
        product = await make_product(stock=10, is_active=False)
        async with database.session() as session:
            check = await ProductStock(session).check_and_reserve(product.id, 1)
        assert check == (False, 0)

    async def test_does_not_hold_stock(self, database, make_product, stock_of):
        product = await make_product(stock=4)
        async with database.session() as session:
            await ProductStock(session).check_and_reserve(product.id, 4)
        assert await stock_of(product) == 4

    async def test_unknown_product(self, database):
        async with database.session() as session:
            check = await ProductStock(session).check_and_reserve(uuid.uuid4(), 1)
        assert not check.ok


class TestCommitDecrement:
    async def test_decrements_when_enough_stock(self, database, make_product, stock_of):
        product = await make_product(stock=5)
        async with database.transaction() as session:
            assert await ProductStock(session).commit_decrement(product.id, 5)
        assert await stock_of(product) == 0

    async def test_refuses_to_go_negative(self, database, make_product, stock_of):
        product = await make_product(stock=1)
        async with database.transaction() as session:
            assert not await ProductStock(session).commit_decrement(product.id, 2)
        assert await stock_of(product) == 1

    async def test_refuses_inactive_product(self, database, make_product, stock_of):
        product = await make_product(stock=5, is_active=False)
        async with database.transaction() as session:
            assert not await ProductStock(session).commit_decrement(product.id, 1)
        assert await stock_of(product) == 5

    async def test_rejects_non_positive_quantity(self, database, make_product):
        product = await make_product()
        async with database.session() as session:
            with pytest.raises(ValueError):
                await ProductStock(session).commit_decrement(product.id, 0)

    async def test_concurrent_buyers_never_oversell(self, database, make_product, stock_of):
        product = await make_product(stock=3)

        async def buy_one():
            async with database.transaction() as session:
                return await ProductStock(session).commit_decrement(product.id, 1)

        results = await asyncio.gather(*[buy_one() for _ in range(8)])

        assert results.count(True) == 3
        assert await stock_of(product) == 0


class TestReleaseAndRestock:
    async def test_release_restores_decremented_units(self, database, make_product, stock_of):
        product = await make_product(stock=5)
        async with database.transaction() as session:
            stock = ProductStock(session)
            await stock.commit_decrement(product.id, 3)
            await stock.release(product.id, 3)
        assert await stock_of(product) == 5

    async def test_restock_adds_units(self, database, make_product, stock_of):
        product = await make_product(stock=1)
        async with database.transaction() as session:
            assert await ProductStock(session).restock(product.id, 4)
        assert await stock_of(product) == 5

    async def test_restock_skips_inactive_product(self, database, make_product, stock_of):
        product = await make_product(stock=1, is_active=False)
        async with database.transaction() as session:
            assert not await ProductStock(session).restock(product.id, 4)
        assert await stock_of(product) == 1
