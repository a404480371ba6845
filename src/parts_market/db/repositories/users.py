"""
parts_market.db.repositories.users

Repository for `User` entities.

Responsibilities:
- Look up users by internal id, identity-provider subject or email.
- Create users, change roles, delete accounts.
"""

from __future__ import annotations

from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from parts_market.db.models import User


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: int) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_external_id(self, external_id: str) -> User | None:
        stmt = select(User).where(User.external_id == external_id)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_all(self) -> list[User]:
        stmt = select(User).order_by(desc(User.created_at), desc(User.id))
        return list((await self._session.execute(stmt)).scalars().all())

    async def create(
        self,
        *,
        name: str,
        email: str,
        role: str,
        external_id: str | None = None,
    ) -> User:
        user = User(name=name, email=email, role=role.lower(), external_id=external_id)
        self._session.add(user)
        await self._session.flush()
        return user

    async def set_role(self, user: User, role: str) -> User:
        user.role = role.lower()
        await self._session.flush()
        return user

    async def set_phone_number(self, user: User, phone_number: str) -> User:
        user.phone_number = phone_number
        await self._session.flush()
        return user

    async def delete(self, user_id: int) -> None:
        # Core delete: addresses cascade in the database; orders/parts block it.
        await self._session.execute(delete(User).where(User.id == user_id))
