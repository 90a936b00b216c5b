"""Fake access stores and ASGI request builders shared by the test modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import httpx
from fastapi import FastAPI
from starlette.requests import Request

from tenant_dashboard.access.credentials import CredentialValidator
from tenant_dashboard.access.engine import AccessDecisionEngine
from tenant_dashboard.access.membership import MembershipAuthority
from tenant_dashboard.access.tenant_resolver import TenantResolver
from tenant_dashboard.auth.jwt import JwtConfig, issue_session_token
from tenant_dashboard.auth.models import CallerIdentity
from tenant_dashboard.settings import Settings

TENANT_A = "0b7f3c1e-5a2d-4c8e-9f10-6d2b8a4e1c01"
TENANT_B = "7e4a9d22-1c3b-4f5e-8a60-2b9c7d1e3f02"
USER_ID = "3c2d1b0a-9e8f-4a7b-8c6d-5e4f3a2b1c00"
SESSION_TOKEN = "session-token-for-tests"


def make_request(
    path: str = "/api/internal/settings",
    *,
    method: str = "GET",
    headers: dict[str, str] | None = None,
    query: str = "",
) -> Request:
    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": method,
        "scheme": "http",
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 50000),
        "root_path": "",
        "path": path,
        "raw_path": path.encode(),
        "query_string": query.encode(),
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
    }
    return Request(scope)


class FakeIdentityProvider:
    def __init__(self, identities: dict[str, CallerIdentity], *, error: Exception | None = None):
        self.identities = identities
        self.error = error

    async def get_current_identity(self, token: str) -> CallerIdentity | None:
        if self.error is not None:
            raise self.error
        return self.identities.get(token)


class FakeApiKeyStore:
    def __init__(self, keys: dict[str, str], *, error: Exception | None = None):
        self.keys = keys
        self.error = error

    async def find_tenant_by_api_key(self, key: str) -> str | None:
        if self.error is not None:
            raise self.error
        return self.keys.get(key)


@dataclass
class FakeMembershipStore:
    members: set[tuple[str, str]] = field(default_factory=set)
    error: Exception | None = None
    calls: list[tuple[str, str]] = field(default_factory=list)

    async def is_member(self, user_id: str, tenant_id: str) -> bool:
        self.calls.append((user_id, tenant_id))
        if self.error is not None:
            raise self.error
        return (user_id, tenant_id) in self.members


@dataclass
class EngineParts:
    engine: AccessDecisionEngine
    identities: FakeIdentityProvider
    api_keys: FakeApiKeyStore
    membership: FakeMembershipStore


def build_engine(
    *,
    identity_error: Exception | None = None,
    api_key_error: Exception | None = None,
    membership_error: Exception | None = None,
) -> EngineParts:
    identities = FakeIdentityProvider(
        {SESSION_TOKEN: CallerIdentity(id=USER_ID, email="ana@example.com")},
        error=identity_error,
    )
    api_keys = FakeApiKeyStore({"tenant_key_a": TENANT_A}, error=api_key_error)
    membership = FakeMembershipStore(members={(USER_ID, TENANT_A)}, error=membership_error)
    engine = AccessDecisionEngine(
        credentials=CredentialValidator(
            identity_provider=identities,
            api_keys=api_keys,
            session_cookie_name="td_session",
            api_key_header="X-API-Key",
        ),
        resolver=TenantResolver(
            header_name="X-Tenant-Id", query_param="tenant_id", sentinel="tenant-selector"
        ),
        membership=MembershipAuthority(membership),
    )
    return EngineParts(
        engine=engine, identities=identities, api_keys=api_keys, membership=membership
    )


def make_settings(tmp_path: Path, **overrides: object) -> Settings:
    values: dict[str, object] = {
        "env": "test",
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'td.db'}",
        "jwt_secret": "test-secret",
    }
    values.update(overrides)
    return Settings(**values)


@dataclass
class Seeded:
    app: FastAPI
    client: httpx.AsyncClient
    settings: Settings
    user_id: str
    other_user_id: str
    tenant_a: str
    tenant_b: str
    api_key_a: str

    def token_for(self, user_id: str) -> str:
        return issue_session_token(cfg=JwtConfig.from_settings(self.settings), subject=user_id)

    def auth(self, user_id: str | None = None, **extra: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token_for(user_id or self.user_id)}", **extra}
