"""
parts_market.auth.models

Auth domain models.

Responsibilities:
- Define the resolved caller identity (`Identity`) injected into endpoints.
- Define the role requirement attached to an endpoint (`CapabilitySet`).
"""

from __future__ import annotations

import enum
from collections.abc import Iterator
from dataclasses import dataclass


class Role(enum.StrEnum):
    customer = "customer"
    seller = "seller"
    admin = "admin"


@dataclass(frozen=True, slots=True)
class Identity:
    """
    Authenticated caller. `role` always comes from the user record, lower-cased.
    """

    id: int
    role: str
    email: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin

    @property
    def is_seller(self) -> bool:
        return self.role == Role.seller


@dataclass(frozen=True, slots=True)
class CapabilitySet:
    """
    Ordered, case-insensitive set of role names required by an endpoint.
    """

    roles: tuple[str, ...]

    @classmethod
    def of(cls, *roles: str) -> CapabilitySet:
        seen: dict[str, None] = {}
        for r in roles:
            seen.setdefault(r.strip().lower(), None)
        return cls(roles=tuple(seen))

    def __contains__(self, role: object) -> bool:
        return isinstance(role, str) and role.lower() in self.roles

    def __iter__(self) -> Iterator[str]:
        return iter(self.roles)


# --- Module Notes -----------------------------------------------------------
# Tokens may still carry a `role` claim (legacy self-issued tokens); it is never
# copied into `Identity`.
