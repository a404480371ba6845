"""
parts_market.auth.resolver

Maps verified token claims to an application identity.

Responsibilities:
- Look the token subject up in the persistent store.
- Take the role from the user record only, never from the token.
"""

from __future__ import annotations

from parts_market.auth.jwt import Claims
from parts_market.auth.models import Identity
from parts_market.db.records import UserRecord
from parts_market.db.store import PersistentStore
from parts_market.errors import UnknownIdentity
from parts_market.observability.logging import get_logger
from parts_market.settings import AuthMode

log = get_logger(__name__)


class IdentityResolver:
    def __init__(self, *, store: PersistentStore, mode: AuthMode) -> None:
        self._store = store
        self._mode = mode

    async def resolve(self, claims: Claims) -> Identity:
        user = await self._lookup(claims.subject)
        if user is None:
            raise UnknownIdentity()

        role = (user.role or "").lower()
        if claims.claimed_role is not None and claims.claimed_role.lower() != role:
            log.warning(
                "role_claim_ignored",
                user_id=user.id,
                claimed_role=claims.claimed_role,
                role=role,
            )
        return Identity(id=user.id, role=role, email=user.email or claims.email)

    async def _lookup(self, subject: str) -> UserRecord | None:
        if self._mode == "external":
            return await self._store.find_user_by_external_id(subject)
        # Self-issued subjects are application user ids.
        if not (subject.isascii() and subject.isdigit()):
            return None
        return await self._store.find_user_by_id(int(subject))


# --- Module Notes -----------------------------------------------------------
# Skipping this lookup is not an optimisation: a role read from the token would
# let any holder of a signed token claim admin.
