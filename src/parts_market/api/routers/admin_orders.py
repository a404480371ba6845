"""
parts_market.api.routers.admin_orders

Admin order management.

Responsibilities:
- List every order with its buyer summary and total.
- Move an order between Placed/Shipped/Cancelled.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from parts_market.api.deps import db_session
from parts_market.api.schemas import AdminOrderOut, CamelModel, OrderOut, UserSummary
from parts_market.auth.deps import require_roles
from parts_market.db.models import Order, OrderStatus
from parts_market.db.repositories.orders import OrderRepo
from parts_market.db.store import order_record
from parts_market.errors import InvalidStatus, NotFound

router = APIRouter(
    prefix="/api/admin/orders",
    tags=["admin"],
    dependencies=[Depends(require_roles("admin"))],
)


class StatusUpdate(CamelModel):
    status: str


def _admin_view(order: Order) -> AdminOrderOut:
    base = OrderOut.model_validate(order_record(order))
    user = UserSummary.model_validate(order.user) if order.user is not None else None
    return AdminOrderOut(**base.model_dump(), user=user)


@router.get("", response_model=list[AdminOrderOut])
async def list_orders(session: AsyncSession = Depends(db_session)) -> list[AdminOrderOut]:
    return [_admin_view(o) for o in await OrderRepo(session).list_all()]


@router.put("/{order_id}/status", response_model=AdminOrderOut)
async def update_order_status(
    order_id: int,
    body: StatusUpdate,
    session: AsyncSession = Depends(db_session),
) -> AdminOrderOut:
    try:
        status = OrderStatus(body.status)
    except ValueError as e:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise InvalidStatus(f"Invalid status, expected one of: {allowed}") from e

    repo = OrderRepo(session)
    order = await repo.get(order_id)
    if order is None:
        raise NotFound("Order not found")
    await repo.set_status(order, status)
    await session.commit()
    return _admin_view(order)
