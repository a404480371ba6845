"""
parts_market.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Select the token validation mode (self-issued vs. identity-provider tokens).
- Hide key material from repr/logging.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

AuthMode = Literal["self_issued", "external"]


class Settings(BaseSettings):
    """
    Env-driven configuration (prefix `PARTS_`).

    The app factory stores the instance on `app.state.settings`; request
    dependencies read it from there so tests can run several apps side by side.
    """

    model_config = SettingsConfigDict(env_prefix="PARTS_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "parts-market"
    log_level: str = "INFO"
    log_json: bool = True

    api_host: str = "0.0.0.0"
    api_port: int = 4000

    # Auth
    # self_issued: subject is the numeric user id; external: subject is the IdP user id.
    auth_mode: AuthMode = "self_issued"
    jwt_alg: str = "HS256"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    jwt_public_key: str | None = Field(default=None, repr=False)
    jwt_issuer: str = "parts-market"
    jwt_issuer_prefix: str | None = None
    jwt_audience: str | None = None
    jwt_leeway_seconds: int = Field(default=0, ge=0)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./parts_market.db"

    # Orders / profile
    phone_number_digits: int = Field(default=10, ge=1)
    max_saved_addresses: int = Field(default=4, ge=1)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


# --- Module Notes -----------------------------------------------------------
# `auth_mode` is the single switch between token flavours; both end in the same
# Claims -> Identity pipeline (see `parts_market.auth`).
