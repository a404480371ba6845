"""
parts_market.api.schemas

Response (and shared request) models for the HTTP API.

Responsibilities:
- Serialize records and ORM rows with camelCase keys.
- Keep one representation per resource across routers.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class MessageResponse(CamelModel):
    message: str


class PartOut(CamelModel):
    id: int
    name: str
    description: str | None = None
    price: float
    in_stock: bool
    category: str | None = None
    car_name: str | None = None
    model: str | None = None
    year: int | None = None
    image_url: str | None = None
    created_by: int | None = None
    created_at: datetime | None = None


class OrderItemOut(CamelModel):
    id: int
    part_id: int
    quantity: int
    part: PartOut | None = None


class UserSummary(CamelModel):
    id: int
    name: str
    email: str


class OrderOut(CamelModel):
    id: int
    user_id: int
    status: str
    address: str
    phone_number: str
    idempotency_key: str | None = None
    created_at: datetime
    items: list[OrderItemOut]
    total: float


class AdminOrderOut(OrderOut):
    user: UserSummary | None = None


class UserOut(CamelModel):
    id: int
    name: str
    email: str
    role: str
    phone_number: str | None = None
    created_at: datetime | None = None


# --- Module Notes -----------------------------------------------------------
# `from_attributes=True` lets the same models read both records (`db.records`) and
# ORM rows; attributes a source lacks fall back to the field default.
