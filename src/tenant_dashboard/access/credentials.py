"""
tenant_dashboard.access.credentials

Credential validation.

Responsibilities:
- Extract a bearer credential from the request: a session token (cookie or
  `Authorization: Bearer`) or a tenant API key (API key header or `Authorization: Bearer`).
- Resolve it to a `CallerIdentity` through the identity provider or the API-key store.
- Keep "bad credential" and "auth infrastructure down" apart.

Nothing is cached between requests; every request re-validates.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Protocol

from starlette.requests import Request

from tenant_dashboard.access.errors import StoreUnavailable
from tenant_dashboard.access.verdict import (
    AUTH_REQUIRED,
    AUTH_UNAVAILABLE,
    INVALID_API_KEY,
    AccessErrorKind,
    api_key_required_message,
)
from tenant_dashboard.auth.models import CallerIdentity
from tenant_dashboard.auth.provider import IdentityProvider
from tenant_dashboard.observability.logging import get_logger

log = get_logger(__name__)


class CredentialKind(enum.StrEnum):
    session = "session"
    api_key = "api_key"


class ApiKeyStore(Protocol):
    async def find_tenant_by_api_key(self, key: str) -> str | None: ...


@dataclass(frozen=True, slots=True)
class CredentialResult:
    is_valid: bool
    identity: CallerIdentity | None = None
    error_kind: AccessErrorKind | None = None
    error: str | None = None

    @classmethod
    def valid(cls, identity: CallerIdentity) -> CredentialResult:
        return cls(is_valid=True, identity=identity)

    @classmethod
    def invalid(cls, message: str) -> CredentialResult:
        return cls(is_valid=False, error_kind=AccessErrorKind.unauthenticated, error=message)

    @classmethod
    def unavailable(cls) -> CredentialResult:
        return cls(
            is_valid=False, error_kind=AccessErrorKind.service_unavailable, error=AUTH_UNAVAILABLE
        )


def bearer_token(request: Request) -> str | None:
    raw = request.headers.get("authorization") or ""
    scheme, _, value = raw.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return value.strip() or None


class CredentialValidator:
    def __init__(
        self,
        *,
        identity_provider: IdentityProvider,
        api_keys: ApiKeyStore,
        session_cookie_name: str,
        api_key_header: str,
    ) -> None:
        self._identity_provider = identity_provider
        self._api_keys = api_keys
        self._session_cookie_name = session_cookie_name
        self._api_key_header = api_key_header

    async def validate(
        self, request: Request, kind: CredentialKind = CredentialKind.session
    ) -> CredentialResult:
        if kind == CredentialKind.api_key:
            return await self._validate_api_key(request)
        return await self._validate_session(request)

    async def _validate_session(self, request: Request) -> CredentialResult:
        token = request.cookies.get(self._session_cookie_name) or bearer_token(request)
        if not token:
            return CredentialResult.invalid(AUTH_REQUIRED)

        try:
            identity = await self._identity_provider.get_current_identity(token)
        except StoreUnavailable:
            log.warning("identity_lookup_failed", exc_info=True)
            return CredentialResult.unavailable()
        except Exception:
            log.exception("identity_lookup_failed")
            return CredentialResult.unavailable()

        if identity is None:
            log.info("credential_rejected", credential="session")
            return CredentialResult.invalid(AUTH_REQUIRED)
        return CredentialResult.valid(identity)

    async def _validate_api_key(self, request: Request) -> CredentialResult:
        key = (request.headers.get(self._api_key_header) or bearer_token(request) or "").strip()
        if not key:
            return CredentialResult.invalid(api_key_required_message(self._api_key_header))

        try:
            tenant_id = await self._api_keys.find_tenant_by_api_key(key)
        except StoreUnavailable:
            log.warning("api_key_lookup_failed", exc_info=True)
            return CredentialResult.unavailable()
        except Exception:
            log.exception("api_key_lookup_failed")
            return CredentialResult.unavailable()

        if not tenant_id:
            log.info("credential_rejected", credential="api_key")
            return CredentialResult.invalid(INVALID_API_KEY)
        return CredentialResult.valid(CallerIdentity.for_api_key(tenant_id.lower()))
