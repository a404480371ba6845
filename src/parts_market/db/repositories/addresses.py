from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from parts_market.db.models import Address


class AddressRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def count_for_user(self, user_id: int) -> int:
        stmt = select(func.count()).select_from(Address).where(Address.user_id == user_id)
        return int((await self._session.execute(stmt)).scalar_one())

    async def list_for_user(self, user_id: int) -> list[Address]:
        stmt = select(Address).where(Address.user_id == user_id).order_by(Address.id)
        return list((await self._session.execute(stmt)).scalars().all())

    async def add(self, *, user_id: int, address: str) -> Address:
        row = Address(user_id=user_id, address=address)
        self._session.add(row)
        await self._session.flush()
        return row

    async def delete_for_user(self, *, address_id: int, user_id: int) -> bool:
        # Scoped by owner: another user's address id behaves like a missing one.
        result = await self._session.execute(
            delete(Address).where(Address.id == address_id, Address.user_id == user_id)
        )
        return bool(result.rowcount)
