"""
parts_market.db.store

Persistent store boundary used by the auth pipeline and the order workflow.

Responsibilities:
- Define the `PersistentStore` protocol (the only collaborator the core needs).
- Implement it over an `AsyncSession` via the repositories.
- Map ORM rows to immutable records.
- Write an order and all of its lines in one transaction.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from parts_market.db.models import Order, Part, User
from parts_market.db.records import NewOrder, OrderItemRecord, OrderRecord, PartRecord, UserRecord
from parts_market.db.repositories.orders import OrderRepo
from parts_market.db.repositories.parts import PartRepo
from parts_market.db.repositories.users import UserRepo
from parts_market.observability.logging import get_logger

log = get_logger(__name__)


class StoreWriteError(Exception):
    """
    A write was rejected by the store (constraint violation, lost connection...).
    Nothing from the failed write is visible afterwards.
    """


class PersistentStore(Protocol):
    async def find_user_by_id(self, user_id: int) -> UserRecord | None: ...

    async def find_user_by_external_id(self, external_id: str) -> UserRecord | None: ...

    async def find_parts_by_ids(
        self, part_ids: Collection[int], *, available_only: bool = True
    ) -> list[PartRecord]: ...

    async def find_order_by_idempotency_key(
        self, *, user_id: int, key: str
    ) -> OrderRecord | None: ...

    async def create_order_with_items(self, new_order: NewOrder) -> OrderRecord: ...


def user_record(user: User) -> UserRecord:
    return UserRecord(
        id=user.id,
        email=user.email,
        role=(user.role or "").lower(),
        name=user.name,
        external_id=user.external_id,
        phone_number=user.phone_number,
    )


def part_record(part: Part) -> PartRecord:
    return PartRecord(
        id=part.id,
        name=part.name,
        price=float(part.price),
        in_stock=bool(part.in_stock),
        created_by=part.created_by,
        category=part.category,
        car_name=part.car_name,
        model=part.model,
        year=part.year,
        image_url=part.image_url,
    )


def order_record(order: Order) -> OrderRecord:
    return OrderRecord(
        id=order.id,
        user_id=order.user_id,
        status=str(order.status),
        address=order.address,
        phone_number=order.phone_number,
        created_at=order.created_at,
        idempotency_key=order.idempotency_key,
        items=tuple(
            OrderItemRecord(
                id=i.id,
                part_id=i.part_id,
                quantity=i.quantity,
                part=part_record(i.part) if i.part is not None else None,
            )
            for i in order.items
        ),
    )


def staged_order_record(order: Order) -> OrderRecord:
    # Built from the in-memory rows written by this session; part details are not loaded.
    return OrderRecord(
        id=order.id,
        user_id=order.user_id,
        status=str(order.status),
        address=order.address,
        phone_number=order.phone_number,
        created_at=order.created_at,
        idempotency_key=order.idempotency_key,
        items=tuple(
            OrderItemRecord(id=i.id, part_id=i.part_id, quantity=i.quantity)
            for i in order.items
        ),
    )


class SqlAlchemyStore:
    """
    Request-scoped store over one `AsyncSession`.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._users = UserRepo(session)
        self._parts = PartRepo(session)
        self._orders = OrderRepo(session)

    async def find_user_by_id(self, user_id: int) -> UserRecord | None:
        user = await self._users.get(user_id)
        return user_record(user) if user is not None else None

    async def find_user_by_external_id(self, external_id: str) -> UserRecord | None:
        user = await self._users.get_by_external_id(external_id)
        return user_record(user) if user is not None else None

    async def find_parts_by_ids(
        self, part_ids: Collection[int], *, available_only: bool = True
    ) -> list[PartRecord]:
        parts = await self._parts.by_ids(part_ids, available_only=available_only)
        return [part_record(p) for p in parts]

    async def find_order_by_idempotency_key(
        self, *, user_id: int, key: str
    ) -> OrderRecord | None:
        order = await self._orders.get_by_idempotency_key(user_id=user_id, key=key)
        return order_record(order) if order is not None else None

    async def create_order_with_items(self, new_order: NewOrder) -> OrderRecord:
        order = self._orders.add_with_items(new_order)
        try:
            # One commit covers the order row and every line: all or nothing.
            await self._session.commit()
        except SQLAlchemyError as e:
            await self._session.rollback()
            raise StoreWriteError(str(e.__class__.__name__)) from e
        except BaseException:
            # Driver-level failures (e.g. OverflowError binding a parameter) bypass
            # SQLAlchemy's wrapping; the staged order must not stay in the session.
            await self._session.rollback()
            raise

        # The order is committed from here on; a failed reload must not report failure.
        try:
            created = await self._orders.get(order.id)
        except SQLAlchemyError as e:
            log.warning("order_reload_failed", order_id=order.id, error=type(e).__name__)
            # Snapshot before rollback, which expires every loaded instance.
            staged = staged_order_record(order)
            await self._session.rollback()
            return staged
        if created is None:
            return staged_order_record(order)
        return order_record(created)


# --- Module Notes -----------------------------------------------------------
# The store never raises application errors; the order workflow decides how a
# StoreWriteError surfaces (idempotent re-read or CommitFailed).
