from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends
from pydantic import Field

from parts_market.api.deps import settings_dep
from parts_market.api.schemas import CamelModel
from parts_market.auth.jwt import JwtConfig, issue_token
from parts_market.errors import NotFound
from parts_market.settings import Settings

router = APIRouter(prefix="/api/dev", tags=["dev"])


class DevTokenRequest(CamelModel):
    user_id: int = Field(ge=1)
    email: str | None = None
    # Carried for parity with legacy tokens; the server ignores it for authorization.
    role: str | None = None
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class DevTokenResponse(CamelModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/token", response_model=DevTokenResponse)
async def mint_dev_token(
    body: DevTokenRequest,
    settings: Settings = Depends(settings_dep),
) -> DevTokenResponse:
    # Token issuance belongs to the identity provider everywhere except local dev/test.
    if settings.env == "prod" or settings.auth_mode != "self_issued":
        raise NotFound("Not found")

    token = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=str(body.user_id),
        email=body.email,
        role=body.role,
        ttl=timedelta(minutes=body.ttl_minutes),
    )
    return DevTokenResponse(access_token=token)
