"""
parts_market.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and the store.
- Encapsulate app.state access patterns (settings/engine/sessionmaker).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from parts_market.db.store import PersistentStore, SqlAlchemyStore
from parts_market.settings import Settings


def settings_dep(request: Request) -> Settings:
    # Set by `parts_market.api.app.create_app`.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Handlers and the store commit explicitly.
    async with session_factory() as session:
        yield session


def store_dep(session: AsyncSession = Depends(db_session)) -> PersistentStore:
    return SqlAlchemyStore(session)


# --- Module Notes -----------------------------------------------------------
# `store_dep` and `db_session` share one session per request (FastAPI caches
# dependency results), so the auth lookup and handler writes see the same data.
