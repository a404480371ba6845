"""
parts_market.api.routers.user

Profile and address book for the authenticated caller.

Responsibilities:
- Save a phone number together with a new delivery address (bounded count).
- List and delete the caller's own addresses.
- Return the caller's profile wrapped as `{user}`.
"""

from __future__ import annotations

import re
from datetime import datetime

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from parts_market.api.deps import db_session, settings_dep
from parts_market.api.schemas import CamelModel, UserOut
from parts_market.auth.deps import get_identity
from parts_market.auth.models import Identity
from parts_market.db.repositories.addresses import AddressRepo
from parts_market.db.repositories.users import UserRepo
from parts_market.errors import InvalidAddress, InvalidPhone, InvalidRequest, NotFound
from parts_market.settings import Settings

router = APIRouter(prefix="/api/user", tags=["user"])


class AddressOut(CamelModel):
    id: int
    address: str
    phone_number: str | None = None
    created_at: datetime | None = None


class AddressesResponse(CamelModel):
    addresses: list[AddressOut]


class SavePhoneAndAddressRequest(CamelModel):
    phone_number: str | None = None
    address: str | None = None


class SavePhoneAndAddressResponse(CamelModel):
    message: str
    user: UserOut
    address: AddressOut


class DeleteAddressResponse(CamelModel):
    message: str


class ProfileResponse(CamelModel):
    user: UserOut


@router.get("/me", response_model=ProfileResponse)
async def profile(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(db_session),
) -> ProfileResponse:
    user = await UserRepo(session).get(identity.id)
    if user is None:
        raise NotFound("User not found")
    return ProfileResponse(user=UserOut.model_validate(user))


@router.get("/addresses", response_model=AddressesResponse)
async def list_addresses(
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(db_session),
) -> AddressesResponse:
    user = await UserRepo(session).get(identity.id)
    phone = user.phone_number if user is not None else None
    rows = await AddressRepo(session).list_for_user(identity.id)
    return AddressesResponse(
        addresses=[
            AddressOut(id=r.id, address=r.address, phone_number=phone, created_at=r.created_at)
            for r in rows
        ]
    )


@router.post("/save-phone-and-address", response_model=SavePhoneAndAddressResponse)
async def save_phone_and_address(
    body: SavePhoneAndAddressRequest,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> SavePhoneAndAddressResponse:
    digits = settings.phone_number_digits
    if body.phone_number is None or not re.fullmatch(rf"[0-9]{{{digits}}}", body.phone_number):
        raise InvalidPhone(f"Phone number must be exactly {digits} digits")
    if body.address is None or not body.address.strip():
        raise InvalidAddress()

    addresses = AddressRepo(session)
    if await addresses.count_for_user(identity.id) >= settings.max_saved_addresses:
        raise InvalidRequest(f"You can only save up to {settings.max_saved_addresses} addresses")

    users = UserRepo(session)
    user = await users.get(identity.id)
    if user is None:
        raise NotFound("User not found")
    await users.set_phone_number(user, body.phone_number)
    row = await addresses.add(user_id=identity.id, address=body.address.strip())
    await session.commit()

    return SavePhoneAndAddressResponse(
        message="Phone number and address saved successfully",
        user=UserOut.model_validate(user),
        address=AddressOut(
            id=row.id,
            address=row.address,
            phone_number=user.phone_number,
            created_at=row.created_at,
        ),
    )


@router.delete("/delete-address/{address_id}", response_model=DeleteAddressResponse)
async def delete_address(
    address_id: int,
    identity: Identity = Depends(get_identity),
    session: AsyncSession = Depends(db_session),
) -> DeleteAddressResponse:
    deleted = await AddressRepo(session).delete_for_user(
        address_id=address_id, user_id=identity.id
    )
    if not deleted:
        raise NotFound("Address not found")
    await session.commit()
    return DeleteAddressResponse(message="Address deleted successfully")
