"""
parts_market.auth.deps

FastAPI dependency functions for authentication and authorization.

Responsibilities:
- Run the pipeline: bearer header -> Claims -> Identity -> role gate.
- Expose `require_roles(...)` as the per-endpoint capability declaration.
"""

from __future__ import annotations

import structlog
from fastapi import Depends
from fastapi.security import APIKeyHeader

from parts_market.api.deps import settings_dep, store_dep
from parts_market.auth.gate import authorize
from parts_market.auth.jwt import Claims, JwtConfig, TokenValidator, parse_bearer_header
from parts_market.auth.models import CapabilitySet, Identity
from parts_market.auth.resolver import IdentityResolver
from parts_market.db.store import PersistentStore
from parts_market.errors import Unauthenticated
from parts_market.observability.logging import get_logger
from parts_market.settings import Settings

log = get_logger(__name__)

# Raw header access: the scheme check is ours (exactly "Bearer <token>").
_authorization = APIKeyHeader(name="Authorization", auto_error=False, scheme_name="BearerToken")


def token_validator(settings: Settings = Depends(settings_dep)) -> TokenValidator:
    return TokenValidator(JwtConfig.from_settings(settings))


def identity_resolver(
    store: PersistentStore = Depends(store_dep),
    settings: Settings = Depends(settings_dep),
) -> IdentityResolver:
    return IdentityResolver(store=store, mode=settings.auth_mode)


def validate_request_token(header: str | None, validator: TokenValidator) -> Claims:
    try:
        return validator.validate(parse_bearer_header(header))
    except Unauthenticated as e:
        log.info("auth_rejected", reason=e.code)
        raise


async def authenticate_request(
    header: str | None,
    *,
    validator: TokenValidator,
    resolver: IdentityResolver,
) -> Identity:
    claims = validate_request_token(header, validator)
    try:
        identity = await resolver.resolve(claims)
    except Unauthenticated as e:
        log.info("auth_rejected", reason=e.code)
        raise
    structlog.contextvars.bind_contextvars(user_id=identity.id)
    return identity


def get_claims(
    header: str | None = Depends(_authorization),
    validator: TokenValidator = Depends(token_validator),
) -> Claims:
    # Token only, no user record required (e.g. first-time registration).
    return validate_request_token(header, validator)


async def get_identity(
    header: str | None = Depends(_authorization),
    validator: TokenValidator = Depends(token_validator),
    resolver: IdentityResolver = Depends(identity_resolver),
) -> Identity:
    return await authenticate_request(header, validator=validator, resolver=resolver)


def require_roles(*roles: str):
    required = CapabilitySet.of(*roles)

    async def _dep(identity: Identity = Depends(get_identity)) -> Identity:
        authorize(identity, required)
        return identity

    return _dep


# --- Module Notes -----------------------------------------------------------
# Expired/forged/missing credentials surface as 401; a valid identity without
# the required role surfaces as 403 (see `parts_market.errors`).
