"""
parts_market.auth.gate

Access control checks.

Responsibilities:
- Generic role gate (`authorize`) applied to every protected endpoint.
- Ownership-scoped checks layered after the gate by specific handlers.
"""

from __future__ import annotations

from parts_market.auth.models import CapabilitySet, Identity, Role
from parts_market.db.records import UserRecord
from parts_market.errors import AccessDenied
from parts_market.observability.logging import get_logger

log = get_logger(__name__)


def authorize(identity: Identity, required: CapabilitySet) -> None:
    if identity.role not in required:
        log.info(
            "access_denied",
            user_id=identity.id,
            role=identity.role,
            required=list(required),
        )
        raise AccessDenied()


def ensure_part_owner(identity: Identity, owner_id: int | None, *, action: str = "edit") -> None:
    # Admins manage any listing; sellers only their own.
    if identity.is_admin:
        return
    if owner_id is None or owner_id != identity.id:
        raise AccessDenied(f"You can only {action} your own parts")


def ensure_can_modify_user(actor: Identity, target: UserRecord) -> None:
    if target.role == Role.admin and target.id != actor.id:
        raise AccessDenied("Cannot modify another admin account")


def ensure_can_delete_user(actor: Identity, target: UserRecord) -> None:
    if target.role == Role.admin:
        raise AccessDenied("Cannot delete admin accounts")
