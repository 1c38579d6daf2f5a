"""Tests for the order ledger read paths and immutability."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
import uuid

import pytest

from orderengine.core.exceptions import BadRequestException, ImmutableOrderException, NotFoundException
from orderengine.models import OrderStatus
from orderengine.services import OrderLedger, OrderPlacementService

ADDRESS = "1 Main Street"


@pytest.fixture
def place(database, make_product, fill_cart):
    async def _place(user_id, price="10.00", quantity=1, title="Product"):
        product = await make_product(price=price, stock=quantity, title=title)
        await fill_cart(user_id, [(product, quantity)])
        return await OrderPlacementService(database).place_order(user_id, ADDRESS)

    return _place


class TestImmutability:
    async def test_total_cannot_change(self, database, place):
        order = await place("user-1")
        with pytest.raises(ImmutableOrderException):
            async with database.transaction() as session:
                stored = await OrderLedger(session).find_by_id(order.id)
                stored.total_amount = Decimal("0.01")

    async def test_lines_cannot_change(self, database, place):
        order = await place("user-1")
        with pytest.raises(ImmutableOrderException):
            async with database.transaction() as session:
                stored = await OrderLedger(session).find_by_id(order.id)
                stored.items[0].unit_price = Decimal("0.01")

    async def test_lines_cannot_be_deleted(self, database, place):
        order = await place("user-1")
        with pytest.raises(ImmutableOrderException):
            async with database.transaction() as session:
                stored = await OrderLedger(session).find_by_id(order.id)
                await session.delete(stored.items[0])


class TestUpdateStatus:
    async def test_records_new_status(self, database, place):
        order = await place("user-1")
        async with database.transaction() as session:
            await OrderLedger(session).update_status(order.id, "shipped")
        async with database.session() as session:
            stored = await OrderLedger(session).find_by_id(order.id)
        assert stored.status == OrderStatus.SHIPPED
        assert stored.total_amount == order.total_amount

    async def test_unknown_status_is_rejected(self, database, place):
        order = await place("user-1")
        with pytest.raises(BadRequestException):
            async with database.transaction() as session:
                await OrderLedger(session).update_status(order.id, "teleported")

    async def test_unknown_order(self, database):
        with pytest.raises(NotFoundException):
            async with database.transaction() as session:
                await OrderLedger(session).update_status(uuid.uuid4(), "confirmed")


class TestReadPaths:
    async def test_find_by_id_is_scoped_to_owner(self, database, place):
        order = await place("user-1")
        async with database.session() as session:
            ledger = OrderLedger(session)
            assert (await ledger.find_by_id(order.id, user_id="user-1")).id == order.id
            with pytest.raises(NotFoundException):
                await ledger.find_by_id(order.id, user_id="user-2")

    async def test_find_by_user_paginates_newest_first(self, database, place):
        placed = [await place("user-1", title=f"p{n}") for n in range(3)]
        await place("user-2")

        async with database.session() as session:
            orders, pagination = await OrderLedger(session).find_by_user("user-1", page=1, limit=2)

        assert [o.id for o in orders] == [placed[2].id, placed[1].id]
        assert pagination == {"current": 1, "total": 2, "limit": 2, "total_items": 3}

    async def test_list_all_filters_by_status_and_date(self, database, place):
        first = await place("user-1")
        second = await place("user-2")
        async with database.transaction() as session:
            await OrderLedger(session).update_status(second.id, "confirmed")

        async with database.session() as session:
            ledger = OrderLedger(session)
            confirmed, _ = await ledger.list_all({"status": "confirmed"})
            everything, pagination = await ledger.list_all()
            future, _ = await ledger.list_all(
                {"start_date": datetime.now(timezone.utc) + timedelta(days=1)}
            )

        assert [o.id for o in confirmed] == [second.id]
        assert {o.id for o in everything} == {first.id, second.id}
        assert pagination["total_items"] == 2
        assert future == []

    async def test_stats_count_only_non_pending_revenue(self, database, place):
        await place("user-1", price="5.00", quantity=2, title="cheap")
        big = await place("user-2", price="20.00", quantity=1, title="pricey")
        async with database.transaction() as session:
            await OrderLedger(session).update_status(big.id, "delivered")

        async with database.session() as session:
            stats = await OrderLedger(session).get_stats()

        assert stats["total_orders"] == 2
        assert stats["total_revenue"] == Decimal("20.00")
        assert stats["orders_by_status"] == {"pending": 1, "delivered": 1}
        assert [p["title"] for p in stats["top_products"]] == ["pricey"]
