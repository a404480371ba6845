"""
parts_market.db.repositories.parts

Repository for `Part` entities.

Responsibilities:
- Catalog queries (public filters, per-seller listing).
- Availability lookup used by the order workflow's stock check.
- Create/update/delete for sellers and admins.
"""

from __future__ import annotations

from collections.abc import Collection
from typing import Any

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from parts_market.db.models import Part


class PartRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, part_id: int) -> Part | None:
        return await self._session.get(Part, part_id)

    async def by_ids(
        self, part_ids: Collection[int], *, available_only: bool = False
    ) -> list[Part]:
        if not part_ids:
            return []
        stmt = select(Part).where(Part.id.in_(list(part_ids)))
        if available_only:
            stmt = stmt.where(Part.in_stock.is_(True))
        return list((await self._session.execute(stmt)).scalars().all())

    async def search(
        self,
        *,
        car_name: str | None = None,
        model: str | None = None,
        year: int | None = None,
        category: str | None = None,
    ) -> list[Part]:
        stmt = select(Part)
        # Text filters are case-insensitive exact matches.
        if car_name:
            stmt = stmt.where(func.lower(Part.car_name) == car_name.lower())
        if model:
            stmt = stmt.where(func.lower(Part.model) == model.lower())
        if category:
            stmt = stmt.where(func.lower(Part.category) == category.lower())
        if year is not None:
            stmt = stmt.where(Part.year == year)
        stmt = stmt.order_by(desc(Part.created_at), desc(Part.id))
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_for_seller(self, seller_id: int) -> list[Part]:
        stmt = (
            select(Part)
            .where(Part.created_by == seller_id)
            .order_by(desc(Part.created_at), desc(Part.id))
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def create(self, *, created_by: int, fields: dict[str, Any]) -> Part:
        part = Part(created_by=created_by, **fields)
        self._session.add(part)
        await self._session.flush()
        return part

    async def update(self, part: Part, fields: dict[str, Any]) -> Part:
        for k, v in fields.items():
            setattr(part, k, v)
        await self._session.flush()
        return part

    async def delete(self, part_id: int) -> None:
        await self._session.execute(delete(Part).where(Part.id == part_id))


# --- Module Notes -----------------------------------------------------------
# `in_stock` is a point-in-time flag; nothing here reserves stock.
