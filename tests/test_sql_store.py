"""
SqlAlchemyStore against a real SQLite database.

Verifies the constraints the order workflow relies on: atomic order writes, the
(user, idempotency key) uniqueness and foreign keys on order lines.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from parts_market.db.init_db import init_db
from parts_market.db.models import Order, OrderItem, Part, User
from parts_market.db.records import NewOrder, OrderLine
from parts_market.db.repositories.orders import OrderRepo
from parts_market.db.session import create_engine, create_sessionmaker
from parts_market.db.store import SqlAlchemyStore, StoreWriteError
from parts_market.settings import Settings


@pytest_asyncio.fixture
async def sessionmaker(tmp_path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    settings = Settings(env="test", database_url=f"sqlite+aiosqlite:///{tmp_path / 'store.db'}")
    engine = create_engine(settings)
    await init_db(engine)

    factory = create_sessionmaker(engine)
    async with factory() as session:
        session.add_all(
            [
                User(id=1, name="Cara", email="cara@example.com", role="Customer"),
                User(id=2, name="Sam", email="sam@example.com", role="seller"),
            ]
        )
        await session.flush()
        common = {"category": "Filters", "car_name": "Corolla", "model": "LE", "year": 2020}
        session.add_all(
            [
                Part(id=5, name="Oil filter", price=100.0, in_stock=True, created_by=2, **common),
                Part(id=6, name="Air filter", price=30.0, in_stock=False, created_by=2, **common),
            ]
        )
        await session.commit()

    try:
        yield factory
    finally:
        await engine.dispose()


async def _count(factory, model) -> int:
    async with factory() as session:
        return (await session.execute(select(func.count()).select_from(model))).scalar_one()


def _new_order(*lines: tuple[int, int], key: str | None = None) -> NewOrder:
    return NewOrder(
        user_id=1,
        address="12 Main St",
        phone_number="9876543210",
        lines=tuple(OrderLine(part_id=p, quantity=q) for p, q in lines),
        idempotency_key=key,
    )


@pytest.mark.asyncio
async def test_user_lookup_lower_cases_role(sessionmaker):
    async with sessionmaker() as session:
        store = SqlAlchemyStore(session)
        user = await store.find_user_by_id(1)
        assert user is not None
        assert user.role == "customer"
        assert await store.find_user_by_id(999) is None


@pytest.mark.asyncio
async def test_available_only_filter(sessionmaker):
    async with sessionmaker() as session:
        store = SqlAlchemyStore(session)
        available = await store.find_parts_by_ids([5, 6, 7])
        everything = await store.find_parts_by_ids([5, 6, 7], available_only=False)

    assert [p.id for p in available] == [5]
    assert sorted(p.id for p in everything) == [5, 6]


@pytest.mark.asyncio
async def test_creates_order_with_lines(sessionmaker):
    async with sessionmaker() as session:
        order = await SqlAlchemyStore(session).create_order_with_items(
            _new_order((5, 2), (6, 1), key="k-1")
        )

    assert order.status == "Placed"
    assert [(i.part_id, i.quantity) for i in order.items] == [(5, 2), (6, 1)]
    assert order.items[0].part is not None
    assert order.items[0].part.price == 100.0
    assert await _count(sessionmaker, OrderItem) == 2

    async with sessionmaker() as session:
        found = await SqlAlchemyStore(session).find_order_by_idempotency_key(user_id=1, key="k-1")
    assert found is not None
    assert found.id == order.id
    assert len(found.items) == 2


@pytest.mark.asyncio
async def test_duplicate_key_rejected(sessionmaker):
    async with sessionmaker() as session:
        store = SqlAlchemyStore(session)
        await store.create_order_with_items(_new_order((5, 1), key="dup"))
        with pytest.raises(StoreWriteError):
            await store.create_order_with_items(_new_order((5, 3), key="dup"))

        # The session is usable again after the failed write.
        assert (await store.find_order_by_idempotency_key(user_id=1, key="dup")) is not None

    assert await _count(sessionmaker, Order) == 1
    assert await _count(sessionmaker, OrderItem) == 1


@pytest.mark.asyncio
async def test_failed_line_leaves_no_partial_order(sessionmaker):
    async with sessionmaker() as session:
        with pytest.raises(StoreWriteError):
            await SqlAlchemyStore(session).create_order_with_items(_new_order((5, 1), (999, 1)))

    assert await _count(sessionmaker, Order) == 0
    assert await _count(sessionmaker, OrderItem) == 0


@pytest.mark.asyncio
async def test_orders_without_key_do_not_collide(sessionmaker):
    async with sessionmaker() as session:
        store = SqlAlchemyStore(session)
        await store.create_order_with_items(_new_order((5, 1)))
        await store.create_order_with_items(_new_order((5, 1)))

    assert await _count(sessionmaker, Order) == 2


@pytest.mark.asyncio
async def test_unbindable_value_rolls_back_and_session_recovers(sessionmaker):
    async with sessionmaker() as session:
        store = SqlAlchemyStore(session)
        # The driver rejects the value; whether SQLAlchemy wraps it depends on the driver.
        with pytest.raises((OverflowError, StoreWriteError)):
            await store.create_order_with_items(_new_order((5, 2**63)))

        assert not session.new
        order = await store.create_order_with_items(_new_order((5, 1)))

    assert [(i.part_id, i.quantity) for i in order.items] == [(5, 1)]
    assert await _count(sessionmaker, Order) == 1
    assert await _count(sessionmaker, OrderItem) == 1


@pytest.mark.asyncio
async def test_failed_reload_still_returns_committed_order(sessionmaker, monkeypatch):
    async def failing_get(self, order_id):
        raise SQLAlchemyError("connection dropped")

    monkeypatch.setattr(OrderRepo, "get", failing_get)

    async with sessionmaker() as session:
        order = await SqlAlchemyStore(session).create_order_with_items(
            _new_order((5, 2), key="k-reload")
        )

    assert order.id is not None
    assert order.status == "Placed"
    assert order.idempotency_key == "k-reload"
    assert [(i.part_id, i.quantity) for i in order.items] == [(5, 2)]
    assert await _count(sessionmaker, Order) == 1
