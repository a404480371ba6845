"""
parts_market.errors

Application error taxonomy.

Responsibilities:
- Define one exception hierarchy for auth, validation and workflow failures.
- Carry the HTTP status and stable machine-readable code for each failure so the
  API layer renders them uniformly as `{error, message}`.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, ClassVar


class AppError(Exception):
    """
    Base class for failures scoped to a single request.
    """

    status_code: ClassVar[int] = 500
    code: ClassVar[str] = "internal"
    default_message: ClassVar[str] = "Internal server error"

    def __init__(self, message: str | None = None, *, details: dict[str, Any] | None = None):
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.code, "message": self.message}
        if self.details:
            body["details"] = self.details
        return body


class Internal(AppError):
    pass


# --- Authentication (401) ---------------------------------------------------


class Unauthenticated(AppError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Not authenticated"


class MissingCredential(Unauthenticated):
    code = "missing_credential"
    default_message = "Authorization header missing or malformed"


class InvalidSignature(Unauthenticated):
    code = "invalid_token"
    default_message = "Invalid token"


class Expired(Unauthenticated):
    code = "token_expired"
    default_message = "Token expired"


class UntrustedIssuer(Unauthenticated):
    code = "untrusted_issuer"
    default_message = "Token issuer is not trusted"


class MalformedClaims(Unauthenticated):
    code = "malformed_claims"
    default_message = "Token claims are malformed"


class UnknownIdentity(Unauthenticated):
    code = "unknown_identity"
    default_message = "User not found"


# --- Authorization (403) ----------------------------------------------------


class AccessDenied(AppError):
    status_code = 403
    code = "access_denied"
    default_message = "Access denied"


# --- Request validation (400) -----------------------------------------------


class InvalidRequest(AppError):
    status_code = 400
    code = "invalid_request"
    default_message = "Invalid request"


class InvalidItems(InvalidRequest):
    code = "invalid_items"
    default_message = "Order items are invalid"

    def __init__(self, message: str | None = None, *, problems: Sequence[dict[str, Any]] = ()):
        super().__init__(message, details={"items": list(problems)} if problems else None)
        self.problems = list(problems)


class InvalidAddress(InvalidRequest):
    code = "invalid_address"
    default_message = "Address is required"


class InvalidPhone(InvalidRequest):
    code = "invalid_phone"
    default_message = "Invalid phone number"


class InvalidIdempotencyKey(InvalidRequest):
    code = "invalid_idempotency_key"
    default_message = "Invalid idempotency key"


class InvalidStatus(InvalidRequest):
    code = "invalid_status"
    default_message = "Invalid status"


class InvalidRole(InvalidRequest):
    code = "invalid_role"
    default_message = "Invalid role"


class InvalidPart(InvalidRequest):
    code = "invalid_part"
    default_message = "Invalid part"


class InvalidUser(InvalidRequest):
    code = "invalid_user"
    default_message = "Invalid user"


class UnavailableItems(AppError):
    status_code = 400
    code = "unavailable_items"
    default_message = "Some items are unavailable"

    def __init__(self, part_ids: Sequence[int], message: str | None = None):
        self.part_ids = list(part_ids)
        joined = ", ".join(str(p) for p in self.part_ids)
        super().__init__(
            message or f"Parts not available: {joined}",
            details={"partIds": self.part_ids},
        )


# --- Resource state ---------------------------------------------------------


class NotFound(AppError):
    status_code = 404
    code = "not_found"
    default_message = "Not found"


class Conflict(AppError):
    status_code = 409
    code = "conflict"
    default_message = "Conflict"


class CommitFailed(AppError):
    # Retryable: the order write was rolled back as a unit.
    status_code = 503
    code = "commit_failed"
    default_message = "Failed to place order, please retry"


# --- Module Notes -----------------------------------------------------------
# Handlers in `parts_market.api.errors` translate these into HTTP responses.
# Services and the auth pipeline raise them; they never build HTTP responses.
