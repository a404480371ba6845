"""
parts_market.api.routers.parts

Catalog endpoints.

Responsibilities:
- Public catalog search.
- Create/update/delete for sellers (own parts only) and admins (any part).
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from pydantic import Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from parts_market.api.deps import db_session
from parts_market.api.schemas import CamelModel, MessageResponse, PartOut
from parts_market.auth.deps import require_roles
from parts_market.auth.gate import ensure_part_owner
from parts_market.auth.models import Identity
from parts_market.db.models import Part
from parts_market.db.repositories.parts import PartRepo
from parts_market.errors import Conflict, NotFound

router = APIRouter(prefix="/api/parts", tags=["parts"])

MIN_YEAR = 1900


class PartIn(CamelModel):
    name: str = Field(min_length=1, max_length=256)
    description: str | None = None
    price: float = Field(ge=0)
    in_stock: bool = True
    category: str = Field(min_length=1, max_length=128)
    car_name: str = Field(min_length=1, max_length=128)
    model: str = Field(min_length=1, max_length=128)
    year: int
    image_url: str | None = Field(default=None, max_length=1024)

    @field_validator("year")
    @classmethod
    def _year_in_range(cls, v: int) -> int:
        if v < MIN_YEAR or v > date.today().year + 1:
            raise ValueError("Valid year required")
        return v


async def load_part(part_id: int, session: AsyncSession) -> Part:
    part = await PartRepo(session).get(part_id)
    if part is None:
        raise NotFound("Part not found")
    return part


@router.get("", response_model=list[PartOut])
async def search_parts(
    car_name: str | None = Query(default=None, alias="carName"),
    model: str | None = Query(default=None),
    year: int | None = Query(default=None),
    category: str | None = Query(default=None),
    session: AsyncSession = Depends(db_session),
) -> list[Part]:
    return await PartRepo(session).search(
        car_name=car_name, model=model, year=year, category=category
    )


@router.post("", response_model=PartOut, status_code=HTTP_201_CREATED)
async def create_part(
    body: PartIn,
    identity: Identity = Depends(require_roles("seller", "admin")),
    session: AsyncSession = Depends(db_session),
) -> Part:
    part = await PartRepo(session).create(created_by=identity.id, fields=body.model_dump())
    await session.commit()
    return part


@router.put("/{part_id}", response_model=PartOut)
async def update_part(
    part_id: int,
    body: PartIn,
    identity: Identity = Depends(require_roles("seller", "admin")),
    session: AsyncSession = Depends(db_session),
) -> Part:
    part = await load_part(part_id, session)
    ensure_part_owner(identity, part.created_by, action="edit")
    await PartRepo(session).update(part, body.model_dump())
    await session.commit()
    return part


@router.delete("/{part_id}", response_model=MessageResponse)
async def delete_part(
    part_id: int,
    identity: Identity = Depends(require_roles("seller", "admin")),
    session: AsyncSession = Depends(db_session),
) -> MessageResponse:
    part = await load_part(part_id, session)
    ensure_part_owner(identity, part.created_by, action="delete")
    try:
        await PartRepo(session).delete(part_id)
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise Conflict("Part is referenced by existing orders; mark it out of stock instead") from e
    return MessageResponse(message="Part deleted successfully")


# --- Module Notes -----------------------------------------------------------
# Ownership is checked after the role gate: the gate admits sellers and admins,
# `ensure_part_owner` narrows sellers to their own listings.
