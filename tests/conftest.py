from decimal import Decimal

import pytest
from sqlalchemy import select

from orderengine.core.database import Database
from orderengine.models import Cart, Order, Product
from orderengine.services import CartService


@pytest.fixture
async def database(tmp_path):
    db = Database(f"sqlite:///{tmp_path / 'orders.db'}", sqlite_busy_timeout=30)
    await db.create_all()
    yield db
    await db.dispose()


@pytest.fixture
def make_product(database):
    async def _make(price="10.00", stock=5, title="Product", is_active=True):
        async with database.transaction() as session:
            product = Product(
                title=title,
                price=Decimal(price),
                stock_quantity=stock,
                is_active=is_active,
            )
            session.add(product)
        return product

    return _make


@pytest.fixture
def fill_cart(database):
    async def _fill(user_id, lines):
        async with database.transaction() as session:
            carts = CartService(session)
            cart = await carts.get_or_create_active(user_id)
            for product, quantity in lines:
                await carts.add_line(cart.id, product.id, quantity)
        return cart

    return _fill


@pytest.fixture
def stock_of(database):
    async def _stock(product):
        async with database.session() as session:
            return await session.scalar(
                select(Product.stock_quantity).where(Product.id == product.id)
            )

    return _stock


@pytest.fixture
def cart_is_active(database):
    async def _active(cart):
        async with database.session() as session:
            return await session.scalar(select(Cart.is_active).where(Cart.id == cart.id))

    return _active


@pytest.fixture
def count_orders(database):
    async def _count():
        async with database.session() as session:
            return len((await session.execute(select(Order.id))).all())

    return _count
