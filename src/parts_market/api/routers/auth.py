"""
parts_market.api.routers.auth

Account endpoints for the authenticated caller.

Responsibilities:
- Return the caller's own profile.
- Register the user record for a token subject that has none yet.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_201_CREATED

from parts_market.api.deps import db_session, settings_dep
from parts_market.api.schemas import CamelModel, UserOut
from parts_market.auth.deps import get_claims, get_identity, identity_resolver
from parts_market.auth.jwt import Claims
from parts_market.auth.models import Identity, Role
from parts_market.auth.resolver import IdentityResolver
from parts_market.db.models import User
from parts_market.db.repositories.users import UserRepo
from parts_market.errors import Conflict, InvalidRole, InvalidUser, NotFound, UnknownIdentity
from parts_market.settings import Settings

router = APIRouter(prefix="/api/auth", tags=["auth"])

# Self-registration can never grant admin.
SELF_SERVICE_ROLES = (Role.customer, Role.seller)


class RegisterRequest(CamelModel):
    name: str = Field(min_length=1, max_length=256)
    email: str | None = Field(default=None, max_length=320)
    role: str = Role.customer


class RegisterResponse(CamelModel):
    message: str
    user: UserOut


@router.get("/me", response_model=UserOut)
async def me(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(db_session),
) -> User:
    user = await UserRepo(session).get(identity.id)
    if user is None:
        raise NotFound("User not found")
    return user


@router.post("/register", response_model=RegisterResponse, status_code=HTTP_201_CREATED)
async def register(
    body: RegisterRequest,
    claims: Claims = Depends(get_claims),
    resolver: IdentityResolver = Depends(identity_resolver),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> RegisterResponse:
    if settings.auth_mode != "external":
        # Self-issued subjects are already user ids; accounts come from admins.
        raise NotFound("Not found")

    role = body.role.strip().lower()
    if role not in SELF_SERVICE_ROLES:
        raise InvalidRole("Role must be customer or seller")
    email = body.email or claims.email
    if not email:
        raise InvalidUser("Email is required")

    try:
        await resolver.resolve(claims)
    except UnknownIdentity:
        pass
    else:
        raise Conflict("User already registered")

    repo = UserRepo(session)
    if await repo.get_by_email(email) is not None:
        raise Conflict("Email already registered")
    try:
        user = await repo.create(
            name=body.name, email=email, role=role, external_id=claims.subject
        )
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise Conflict("User already registered") from e
    return RegisterResponse(
        message="User registered successfully", user=UserOut.model_validate(user)
    )
