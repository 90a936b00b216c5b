"""
tenant_dashboard.access.deps

FastAPI dependency functions for access control.

Responsibilities:
- Build the access decision engine over the app's stores.
- Turn a failed verdict into `AccessDenied` (rendered as `{"error": ...}`).
- Enforce payload/tenant agreement for write endpoints.
"""

from __future__ import annotations

import uuid

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tenant_dashboard.access.credentials import CredentialKind, CredentialValidator
from tenant_dashboard.access.engine import AccessDecisionEngine, check_payload_tenant
from tenant_dashboard.access.errors import AccessDenied
from tenant_dashboard.access.membership import MembershipAuthority
from tenant_dashboard.access.stores import SqlApiKeyStore, SqlMembershipStore, SqlUserDirectory
from tenant_dashboard.access.tenant_resolver import RouteKind, TenantResolver
from tenant_dashboard.access.verdict import INVALID_TENANT_FORMAT, AccessErrorKind, AccessVerdict
from tenant_dashboard.api.deps import app_state
from tenant_dashboard.auth.jwt import JwtConfig
from tenant_dashboard.auth.provider import SessionIdentityProvider
from tenant_dashboard.settings import Settings


def build_access_engine(
    settings: Settings, session_factory: async_sessionmaker[AsyncSession]
) -> AccessDecisionEngine:
    provider = SessionIdentityProvider(
        cfg=JwtConfig.from_settings(settings), users=SqlUserDirectory(session_factory)
    )
    return AccessDecisionEngine(
        credentials=CredentialValidator(
            identity_provider=provider,
            api_keys=SqlApiKeyStore(session_factory),
            session_cookie_name=settings.session_cookie_name,
            api_key_header=settings.api_key_header,
        ),
        resolver=TenantResolver.from_settings(settings),
        membership=MembershipAuthority(SqlMembershipStore(session_factory)),
    )


def access_engine(request: Request) -> AccessDecisionEngine:
    return app_state(request, "access_engine")


def require_access(
    *,
    require_tenant: bool = True,
    credential: CredentialKind = CredentialKind.session,
    route_kind: RouteKind = RouteKind.api,
):
    async def _dep(
        request: Request, engine: AccessDecisionEngine = Depends(access_engine)
    ) -> AccessVerdict:
        verdict = await engine.decide(
            request, require_tenant=require_tenant, credential=credential, route_kind=route_kind
        )
        raise_for_verdict(verdict)
        return verdict

    return _dep


def raise_for_verdict(verdict: AccessVerdict) -> None:
    if not verdict.is_valid:
        raise AccessDenied(verdict.error_kind, verdict.error or "")  # type: ignore[arg-type]


def enforce_payload_tenant(verdict: AccessVerdict, payload_tenant_id: str | None) -> None:
    raise_for_verdict(check_payload_tenant(verdict, payload_tenant_id))


def tenant_uuid(verdict: AccessVerdict) -> uuid.UUID:
    # The tenant-selector sentinel is a valid verdict but names no data partition.
    try:
        return uuid.UUID(verdict.tenant_id or "")
    except ValueError as e:
        raise AccessDenied(AccessErrorKind.tenant_format_invalid, INVALID_TENANT_FORMAT) from e


# --- Module Notes -----------------------------------------------------------
# Typical use:
#   verdict: AccessVerdict = Depends(require_access())                      # session + tenant
#   verdict: AccessVerdict = Depends(require_access(require_tenant=False))  # user-scoped
#   verdict: AccessVerdict = Depends(require_access(credential=CredentialKind.api_key))
