"""
tenant_dashboard.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide strongly-typed, env-driven settings for all layers.
- Hide secrets from repr/logging (JWT secret, internal API secret).
- Offer a cached settings instance for dependency injection.
"""

from __future__ import annotations

import enum
from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(enum.StrEnum):
    dev = "dev"
    test = "test"
    prod = "prod"


class QuotaSettings(BaseModel):
    limit: int = Field(ge=1)
    window_seconds: int = Field(default=60, ge=1)


class Settings(BaseSettings):
    """
    Env-driven settings; defaults are safe for local development.
    Nested quota values use `__` as delimiter (e.g. TD_RATE_LIMIT_PUBLIC__LIMIT=30).
    """

    model_config = SettingsConfigDict(
        env_prefix="TD_", env_nested_delimiter="__", case_sensitive=False
    )

    # Environment controls CSP/CORS/same-origin strictness and dev-only routes.
    env: Environment = Environment.dev
    service_name: str = "tenant-dashboard"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 8080

    # Session tokens
    jwt_alg: str = "HS256"
    jwt_issuer: str = "tenant-dashboard"
    jwt_audience: str = "tenant-dashboard-web"
    jwt_secret: str = Field(default="dev-secret-change-me", repr=False)
    session_cookie_name: str = "td_session"
    session_ttl_minutes: int = Field(default=60 * 12, ge=1)

    # Persistence
    database_url: str = "sqlite+aiosqlite:///./tenant_dashboard.db"

    # Tenant identification inputs; every call site reads these names from here.
    tenant_header: str = "X-Tenant-Id"
    tenant_query_param: str = "tenant_id"
    tenant_selector_sentinel: str = "tenant-selector"

    # Machine credentials
    api_key_header: str = "X-API-Key"
    internal_api_secret: str | None = Field(default=None, repr=False)

    # Edge gate quotas and ceilings
    rate_limit_public: QuotaSettings = QuotaSettings(limit=20, window_seconds=60)
    rate_limit_internal: QuotaSettings = QuotaSettings(limit=50, window_seconds=60)
    rate_limit_upload: QuotaSettings = QuotaSettings(limit=200, window_seconds=60)
    max_upload_bytes: int = 10 * 1024 * 1024
    max_api_body_bytes: int = 1024 * 1024

    cors_allowed_origins: list[str] = Field(default_factory=list)
    trust_forwarded_for: bool = False

    @property
    def is_production(self) -> bool:
        return self.env == Environment.prod


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    # Cache avoids re-parsing env vars for each request dependency.
    return Settings()


# --- Module Notes -----------------------------------------------------------
# Header/query names are configuration, but must stay identical between the
# tenant resolver, the CORS allowlist, and every client of the API.
