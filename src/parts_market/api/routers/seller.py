from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from parts_market.api.deps import db_session
from parts_market.api.routers.parts import PartIn, create_part, update_part
from parts_market.api.schemas import PartOut
from parts_market.auth.deps import require_roles
from parts_market.auth.models import Identity
from parts_market.db.models import Part
from parts_market.db.repositories.parts import PartRepo

router = APIRouter(prefix="/api/seller", tags=["seller"])

SELLER_ROLES = ("seller", "admin")


@router.get("/parts", response_model=list[PartOut])
async def list_own_parts(
    identity: Identity = Depends(require_roles(*SELLER_ROLES)),
    session: AsyncSession = Depends(db_session),
) -> list[Part]:
    return await PartRepo(session).list_for_seller(identity.id)


# Seller dashboard paths; same rules as /api/parts.
@router.post("/parts", response_model=PartOut, status_code=HTTP_201_CREATED)
async def create_own_part(
    body: PartIn,
    identity: Identity = Depends(require_roles(*SELLER_ROLES)),
    session: AsyncSession = Depends(db_session),
) -> Part:
    return await create_part(body, identity=identity, session=session)


@router.put("/parts/{part_id}", response_model=PartOut)
async def update_own_part(
    part_id: int,
    body: PartIn,
    identity: Identity = Depends(require_roles(*SELLER_ROLES)),
    session: AsyncSession = Depends(db_session),
) -> Part:
    return await update_part(part_id, body, identity=identity, session=session)
