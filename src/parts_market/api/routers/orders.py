"""
parts_market.api.routers.orders

Customer-facing order endpoints.

Responsibilities:
- Place an order through the idempotent order workflow.
- List the caller's own orders.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_200_OK, HTTP_201_CREATED

from parts_market.api.deps import db_session, settings_dep, store_dep
from parts_market.api.schemas import CamelModel, OrderOut
from parts_market.auth.deps import require_roles
from parts_market.auth.models import Identity
from parts_market.db.repositories.orders import OrderRepo
from parts_market.db.store import PersistentStore, order_record
from parts_market.services.order_workflow import OrderWorkflow
from parts_market.settings import Settings

router = APIRouter(prefix="/api/orders", tags=["orders"])

ORDERING_ROLES = ("customer", "seller", "admin")


class PlaceOrderResponse(CamelModel):
    message: str
    order: OrderOut


@router.post("", response_model=PlaceOrderResponse, status_code=HTTP_201_CREATED)
async def place_order(
    response: Response,
    body: dict[str, Any] = Body(...),
    identity: Identity = Depends(require_roles(*ORDERING_ROLES)),
    store: PersistentStore = Depends(store_dep),
    settings: Settings = Depends(settings_dep),
) -> PlaceOrderResponse:
    # Body shape is checked by the workflow so every failure maps to {error, message}.
    workflow = OrderWorkflow(store=store, phone_number_digits=settings.phone_number_digits)
    result = await workflow.place_order(identity, body)
    if not result.created:
        response.status_code = HTTP_200_OK
        message = "Order already placed"
    else:
        message = "Order placed successfully"
    return PlaceOrderResponse(message=message, order=OrderOut.model_validate(result.order))


@router.get("", response_model=list[OrderOut])
async def list_my_orders(
    identity: Identity = Depends(require_roles(*ORDERING_ROLES)),
    session: AsyncSession = Depends(db_session),
) -> list[OrderOut]:
    orders = await OrderRepo(session).list_for_user(identity.id)
    return [OrderOut.model_validate(order_record(o)) for o in orders]


# --- Module Notes -----------------------------------------------------------
# A replayed idempotency key answers 200 with the original order instead of 201.
