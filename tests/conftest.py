"""
tests.conftest

Shared fixtures.

Responsibilities:
- In-memory `PersistentStore` fake for auth pipeline and order workflow tests.
- App/client fixtures backed by a per-test SQLite file with seeded users/parts.
- Bearer header factory for self-issued test tokens.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Collection
from datetime import UTC, datetime, timedelta

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI

from parts_market.api.app import create_app
from parts_market.auth.jwt import JwtConfig, issue_token
from parts_market.db.models import Part, User
from parts_market.db.records import (
    NewOrder,
    OrderItemRecord,
    OrderRecord,
    PartRecord,
    UserRecord,
)
from parts_market.db.store import StoreWriteError
from parts_market.settings import Settings

TEST_SECRET = "test-secret-for-hs256-at-least-32-bytes"


class InMemoryStore:
    """
    `PersistentStore` fake. Every call yields to the event loop once so concurrent
    placements interleave the way they would against a real database.
    """

    def __init__(self) -> None:
        self.users: dict[int, UserRecord] = {}
        self.parts: dict[int, PartRecord] = {}
        self.orders: list[OrderRecord] = []
        self.user_lookups = 0
        self.part_lookups = 0
        self.commit_error: Exception | None = None
        self._next_order_id = 1
        self._next_item_id = 1

    def add_user(
        self,
        user_id: int,
        *,
        role: str,
        email: str | None = None,
        external_id: str | None = None,
    ) -> UserRecord:
        user = UserRecord(
            id=user_id,
            email=email or f"user{user_id}@example.com",
            role=role,
            name=f"User {user_id}",
            external_id=external_id,
        )
        self.users[user_id] = user
        return user

    def add_part(
        self,
        part_id: int,
        *,
        price: float = 10.0,
        in_stock: bool = True,
        created_by: int | None = None,
    ) -> PartRecord:
        part = PartRecord(
            id=part_id,
            name=f"Part {part_id}",
            price=price,
            in_stock=in_stock,
            created_by=created_by,
        )
        self.parts[part_id] = part
        return part

    async def find_user_by_id(self, user_id: int) -> UserRecord | None:
        self.user_lookups += 1
        await asyncio.sleep(0)
        return self.users.get(user_id)

    async def find_user_by_external_id(self, external_id: str) -> UserRecord | None:
        self.user_lookups += 1
        await asyncio.sleep(0)
        return next((u for u in self.users.values() if u.external_id == external_id), None)

    async def find_parts_by_ids(
        self, part_ids: Collection[int], *, available_only: bool = True
    ) -> list[PartRecord]:
        self.part_lookups += 1
        await asyncio.sleep(0)
        found = [self.parts[pid] for pid in part_ids if pid in self.parts]
        return [p for p in found if p.in_stock or not available_only]

    async def find_order_by_idempotency_key(
        self, *, user_id: int, key: str
    ) -> OrderRecord | None:
        await asyncio.sleep(0)
        return next(
            (o for o in self.orders if o.user_id == user_id and o.idempotency_key == key),
            None,
        )

    async def create_order_with_items(self, new_order: NewOrder) -> OrderRecord:
        await asyncio.sleep(0)
        if self.commit_error is not None:
            raise self.commit_error
        if new_order.idempotency_key is not None and any(
            o.user_id == new_order.user_id and o.idempotency_key == new_order.idempotency_key
            for o in self.orders
        ):
            raise StoreWriteError("unique constraint: orders.user_id, orders.idempotency_key")
        if any(line.part_id not in self.parts for line in new_order.lines):
            raise StoreWriteError("foreign key constraint: order_items.part_id")

        items = []
        for line in new_order.lines:
            items.append(
                OrderItemRecord(
                    id=self._next_item_id,
                    part_id=line.part_id,
                    quantity=line.quantity,
                    part=self.parts[line.part_id],
                )
            )
            self._next_item_id += 1
        order = OrderRecord(
            id=self._next_order_id,
            user_id=new_order.user_id,
            status="Placed",
            address=new_order.address,
            phone_number=new_order.phone_number,
            created_at=datetime.now(tz=UTC),
            idempotency_key=new_order.idempotency_key,
            items=tuple(items),
        )
        self._next_order_id += 1
        self.orders.append(order)
        return order


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        jwt_secret=TEST_SECRET,
        auth_mode="self_issued",
    )


@pytest_asyncio.fixture
async def app(settings: Settings) -> AsyncIterator[FastAPI]:
    app = create_app(settings=settings)
    # httpx ASGITransport does not run lifespan events; drive them explicitly.
    async with app.router.lifespan_context(app):
        yield app


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest_asyncio.fixture
async def seeded(app: FastAPI) -> dict[str, int]:
    """
    Users: two admins, a customer, two sellers.
    Parts: #5 (in stock, 100.0) and #6 (out of stock) by `seller`, #7 by `other_seller`.
    """

    async with app.state.sessionmaker() as session:
        admin = User(name="Ada Admin", email="admin@example.com", role="admin")
        other_admin = User(name="Otto Admin", email="admin2@example.com", role="admin")
        customer = User(name="Cara Customer", email="customer@example.com", role="customer")
        seller = User(name="Sam Seller", email="seller@example.com", role="seller")
        other_seller = User(name="Sol Seller", email="seller2@example.com", role="seller")
        session.add_all([admin, other_admin, customer, seller, other_seller])
        await session.flush()

        common = {"category": "Brakes", "car_name": "Civic", "model": "EX", "year": 2018}
        session.add_all(
            [
                Part(id=5, name="Brake pad", price=100.0, created_by=seller.id, **common),
                Part(
                    id=6, name="Rotor", price=80.0, in_stock=False, created_by=seller.id, **common
                ),
                Part(id=7, name="Caliper", price=150.0, created_by=other_seller.id, **common),
            ]
        )
        await session.commit()
        return {
            "admin": admin.id,
            "other_admin": other_admin.id,
            "customer": customer.id,
            "seller": seller.id,
            "other_seller": other_seller.id,
        }


@pytest.fixture
def auth_headers(settings: Settings) -> Callable[..., dict[str, str]]:
    cfg = JwtConfig.from_settings(settings)

    def _make(
        subject: int | str,
        *,
        role: str | None = None,
        email: str | None = None,
        ttl: timedelta = timedelta(hours=1),
        now: datetime | None = None,
    ) -> dict[str, str]:
        token = issue_token(
            cfg=cfg, subject=str(subject), email=email, role=role, ttl=ttl, now=now
        )
        return {"Authorization": f"Bearer {token}"}

    return _make
