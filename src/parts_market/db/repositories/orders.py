from __future__ import annotations

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from parts_market.db.models import Order, OrderItem, OrderStatus
from parts_market.db.records import NewOrder


def _with_lines(stmt):
    # Async sessions cannot lazy-load; always pull lines and their parts eagerly.
    # populate_existing refreshes orders already in the identity map (e.g. just committed).
    return stmt.execution_options(populate_existing=True).options(
        selectinload(Order.items).selectinload(OrderItem.part),
        selectinload(Order.user),
    )


class OrderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, order_id: int) -> Order | None:
        stmt = _with_lines(select(Order).where(Order.id == order_id))
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_idempotency_key(self, *, user_id: int, key: str) -> Order | None:
        stmt = _with_lines(
            select(Order).where(Order.user_id == user_id, Order.idempotency_key == key)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_for_user(self, user_id: int) -> list[Order]:
        stmt = _with_lines(
            select(Order).where(Order.user_id == user_id).order_by(desc(Order.created_at))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_all(self) -> list[Order]:
        stmt = _with_lines(select(Order).order_by(desc(Order.created_at), desc(Order.id)))
        return list((await self._session.execute(stmt)).scalars().all())

    def add_with_items(self, new_order: NewOrder) -> Order:
        # Staged only; the caller owns the flush/commit that makes it one unit.
        order = Order(
            user_id=new_order.user_id,
            status=OrderStatus.placed,
            address=new_order.address,
            phone_number=new_order.phone_number,
            idempotency_key=new_order.idempotency_key,
            items=[
                OrderItem(part_id=line.part_id, quantity=line.quantity)
                for line in new_order.lines
            ],
        )
        self._session.add(order)
        return order

    async def set_status(self, order: Order, status: OrderStatus) -> Order:
        order.status = status
        await self._session.flush()
        return order
