"""
parts_market.api.routers.admin_users

Admin user management.

Responsibilities:
- List, create, re-role and delete user accounts.
- Protect other admins' accounts from modification and all admin accounts
  from deletion.
"""

from __future__ import annotations

import re

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from parts_market.api.deps import db_session
from parts_market.api.schemas import CamelModel, MessageResponse, UserOut
from parts_market.auth.deps import require_roles
from parts_market.auth.gate import ensure_can_delete_user, ensure_can_modify_user
from parts_market.auth.models import Identity, Role
from parts_market.db.models import User
from parts_market.db.repositories.users import UserRepo
from parts_market.db.store import user_record
from parts_market.errors import Conflict, InvalidRole, InvalidUser, NotFound

router = APIRouter(prefix="/api/admin/users", tags=["admin"])

_EMAIL_RE = re.compile(r"\S+@\S+\.\S+")


class UserCreate(CamelModel):
    name: str = Field(min_length=1, max_length=256)
    email: str = Field(min_length=3, max_length=320)
    role: str
    external_id: str | None = Field(default=None, max_length=256)


class RoleUpdate(CamelModel):
    role: str


def parse_role(raw: str) -> Role:
    try:
        return Role(raw.strip().lower())
    except ValueError as e:
        raise InvalidRole(f"Invalid role: {raw}") from e


async def _load_user(user_id: int, session: AsyncSession) -> User:
    user = await UserRepo(session).get(user_id)
    if user is None:
        raise NotFound("User not found")
    return user


@router.get("", response_model=list[UserOut])
async def list_users(
    _: Identity = Depends(require_roles("admin")),
    session: AsyncSession = Depends(db_session),
) -> list[User]:
    return await UserRepo(session).list_all()


@router.post("", response_model=UserOut, status_code=HTTP_201_CREATED)
async def create_user(
    body: UserCreate,
    _: Identity = Depends(require_roles("admin")),
    session: AsyncSession = Depends(db_session),
) -> User:
    role = parse_role(body.role)
    if not _EMAIL_RE.fullmatch(body.email):
        raise InvalidUser("Invalid email format")

    repo = UserRepo(session)
    if await repo.get_by_email(body.email) is not None:
        raise Conflict("User with this email already exists")
    try:
        user = await repo.create(
            name=body.name, email=body.email, role=role, external_id=body.external_id
        )
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise Conflict("User already exists") from e
    return user


@router.put("/{user_id}", response_model=UserOut)
async def update_user_role(
    user_id: int,
    body: RoleUpdate,
    identity: Identity = Depends(require_roles("admin")),
    session: AsyncSession = Depends(db_session),
) -> User:
    role = parse_role(body.role)
    user = await _load_user(user_id, session)
    ensure_can_modify_user(identity, user_record(user))
    await UserRepo(session).set_role(user, role)
    await session.commit()
    return user


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: int,
    identity: Identity = Depends(require_roles("admin")),
    session: AsyncSession = Depends(db_session),
) -> MessageResponse:
    user = await _load_user(user_id, session)
    ensure_can_delete_user(identity, user_record(user))
    try:
        await UserRepo(session).delete(user_id)
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise Conflict("User still owns orders or parts") from e
    return MessageResponse(message="User deleted successfully")


# --- Module Notes -----------------------------------------------------------
# Role values are stored lower-case; the identity resolver lower-cases again on read.
