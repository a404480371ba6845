"""
parts_market.auth.jwt

Bearer token parsing, validation and (dev) issuing.

Responsibilities:
- Extract the raw credential from an `Authorization: Bearer <token>` header.
- Verify signature, expiry, issuer and subject; produce typed `Claims`.
- Support self-issued and identity-provider tokens behind one validator.
- Issue self-issued tokens for local development and tests.

Note:
- Validation is a pure function of (credential, now, key material); no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt import ExpiredSignatureError, InvalidTokenError, MissingRequiredClaimError

from parts_market.errors import (
    Expired,
    InvalidSignature,
    MalformedClaims,
    MissingCredential,
    UntrustedIssuer,
)
from parts_market.settings import AuthMode, Settings

BEARER_SCHEME = "Bearer"


@dataclass(frozen=True, slots=True)
class JwtConfig:
    mode: AuthMode
    alg: str
    secret: str
    public_key: str | None = None
    issuer: str = "parts-market"
    issuer_prefix: str | None = None
    audience: str | None = None
    leeway_seconds: int = 0

    @classmethod
    def from_settings(cls, settings: Settings) -> JwtConfig:
        return cls(
            mode=settings.auth_mode,
            alg=settings.jwt_alg,
            secret=settings.jwt_secret,
            public_key=settings.jwt_public_key,
            issuer=settings.jwt_issuer,
            issuer_prefix=settings.jwt_issuer_prefix,
            audience=settings.jwt_audience,
            leeway_seconds=settings.jwt_leeway_seconds,
        )

    @property
    def verification_key(self) -> str:
        # HMAC algorithms share the secret; asymmetric ones need the IdP public key.
        if self.alg.upper().startswith("HS"):
            return self.secret
        if not self.public_key:
            raise ValueError(f"jwt_public_key is required for {self.alg}")
        return self.public_key


@dataclass(frozen=True, slots=True)
class Claims:
    """
    Decoded and verified token payload. Lives for one request.
    """

    subject: str
    expires_at: datetime
    email: str | None = None
    issuer: str | None = None
    issued_at: datetime | None = None
    # Legacy convenience claim. Never used for authorization.
    claimed_role: str | None = None


def parse_bearer_header(header: str | None) -> str:
    if not header:
        raise MissingCredential("Authorization header missing")
    parts = header.split(" ")
    if len(parts) != 2 or parts[0] != BEARER_SCHEME or not parts[1]:
        raise MissingCredential("Invalid Authorization header format")
    return parts[1]


class TokenValidator:
    def __init__(self, cfg: JwtConfig) -> None:
        self._cfg = cfg

    @property
    def mode(self) -> AuthMode:
        return self._cfg.mode

    def validate(self, credential: str, *, now: datetime | None = None) -> Claims:
        cfg = self._cfg
        now = now or datetime.now(tz=UTC)

        try:
            # Signature (and audience, when configured) is verified by PyJWT; time-based
            # and issuer checks run below against the injected `now`.
            payload: dict[str, Any] = jwt.decode(
                credential,
                cfg.verification_key,
                algorithms=[cfg.alg],
                audience=cfg.audience,
                options={
                    "require": ["exp"],
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                    "verify_iss": False,
                    "verify_aud": cfg.audience is not None,
                    "verify_sub": False,
                },
            )
        except MissingRequiredClaimError as e:
            raise MalformedClaims(str(e)) from e
        except ExpiredSignatureError as e:
            raise Expired() from e
        except InvalidTokenError as e:
            raise InvalidSignature() from e

        expires_at = _timestamp(payload, "exp")
        if expires_at is None:
            raise MalformedClaims("exp must be a numeric timestamp")
        leeway = timedelta(seconds=cfg.leeway_seconds)
        if now >= expires_at + leeway:
            raise Expired()
        not_before = _timestamp(payload, "nbf")
        if not_before is not None and now + leeway < not_before:
            raise InvalidSignature("Token not yet valid")

        issuer = payload.get("iss")
        if cfg.issuer_prefix is not None:
            if not isinstance(issuer, str) or not issuer.startswith(cfg.issuer_prefix):
                raise UntrustedIssuer()

        subject = self._subject(payload)
        if not subject:
            raise MalformedClaims("Token subject is missing")

        email = payload.get("email")
        role = payload.get("role") if cfg.mode == "self_issued" else None
        return Claims(
            subject=subject,
            expires_at=expires_at,
            email=email if isinstance(email, str) and email else None,
            issuer=issuer if isinstance(issuer, str) else None,
            issued_at=_timestamp(payload, "iat"),
            claimed_role=role if isinstance(role, str) else None,
        )

    def _subject(self, payload: dict[str, Any]) -> str:
        raw = payload.get("sub")
        if raw is None and self._cfg.mode == "self_issued":
            # Older self-issued tokens carry the numeric user id as `id`.
            raw = payload.get("id")
        if isinstance(raw, bool) or not isinstance(raw, str | int):
            return ""
        return str(raw).strip()


def _timestamp(payload: dict[str, Any], claim: str) -> datetime | None:
    value = payload.get(claim)
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return datetime.fromtimestamp(value, tz=UTC)


def issue_token(
    *,
    cfg: JwtConfig,
    subject: str,
    email: str | None = None,
    role: str | None = None,
    ttl: timedelta = timedelta(hours=1),
    now: datetime | None = None,
) -> str:
    """
    Mint an HMAC-signed self-issued token (dev/test only).
    """

    now = now or datetime.now(tz=UTC)
    payload: dict[str, Any] = {
        "iss": cfg.issuer,
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int((now + ttl).timestamp()),
    }
    if cfg.audience is not None:
        payload["aud"] = cfg.audience
    if email is not None:
        payload["email"] = email
    if role is not None:
        payload["role"] = role
    return jwt.encode(payload, cfg.secret, algorithm=cfg.alg)


# --- Module Notes -----------------------------------------------------------
# Expired and forged tokens fail with different error codes so clients can tell
# "log in again" from "credential rejected".
