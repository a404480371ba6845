"""
parts_market.db.records

Plain, immutable records exchanged across the persistent store boundary.

Responsibilities:
- Decouple the auth pipeline and order workflow from ORM sessions.
- Give in-memory test stores and the SQL store one shared vocabulary.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True, slots=True)
class UserRecord:
    id: int
    email: str
    role: str
    name: str = ""
    external_id: str | None = None
    phone_number: str | None = None


@dataclass(frozen=True, slots=True)
class PartRecord:
    id: int
    name: str
    price: float
    in_stock: bool
    created_by: int | None = None
    category: str | None = None
    car_name: str | None = None
    model: str | None = None
    year: int | None = None
    image_url: str | None = None


@dataclass(frozen=True, slots=True)
class OrderLine:
    """
    A validated (partId, quantity) pair, before it is persisted.
    """

    part_id: int
    quantity: int


@dataclass(frozen=True, slots=True)
class NewOrder:
    user_id: int
    address: str
    phone_number: str
    lines: tuple[OrderLine, ...]
    idempotency_key: str | None = None


@dataclass(frozen=True, slots=True)
class OrderItemRecord:
    id: int
    part_id: int
    quantity: int
    part: PartRecord | None = None

    @property
    def subtotal(self) -> float:
        return self.part.price * self.quantity if self.part is not None else 0.0


@dataclass(frozen=True, slots=True)
class OrderRecord:
    id: int
    user_id: int
    status: str
    address: str
    phone_number: str
    created_at: datetime
    idempotency_key: str | None = None
    items: tuple[OrderItemRecord, ...] = field(default_factory=tuple)

    @property
    def total(self) -> float:
        return sum(i.subtotal for i in self.items)


# --- Module Notes -----------------------------------------------------------
# Records are snapshots: mutating an order goes through a repository, never
# through a record.
