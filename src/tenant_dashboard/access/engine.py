"""
tenant_dashboard.access.engine

Access decision engine.

Responsibilities:
- Orchestrate credential validation, tenant resolution, and membership into one verdict.
- Serve both user-session flows and tenant API-key flows behind the same contract.
- Check that a tenant id carried in a request payload agrees with the resolved tenant.

Order of checks (first failure wins, later steps do not run):
1. credential -> Unauthenticated / ServiceUnavailable
2. (require_tenant=False stops here with an identity-only verdict)
3. tenant resolution -> TenantFormatInvalid / TenantMissing
4. membership -> Forbidden
Each sub-check runs exactly once; retries belong to callers above this layer.
"""

from __future__ import annotations

from starlette.requests import Request

from tenant_dashboard.access.credentials import CredentialKind, CredentialValidator
from tenant_dashboard.access.membership import MembershipAuthority
from tenant_dashboard.access.tenant_resolver import (
    ResolutionStatus,
    RouteKind,
    TenantResolver,
    normalize_tenant_id,
)
from tenant_dashboard.access.verdict import (
    ACCESS_DENIED,
    INVALID_TENANT_FORMAT,
    TENANT_MISMATCH,
    AccessErrorKind,
    AccessVerdict,
    tenant_required_message,
)
from tenant_dashboard.auth.models import CallerIdentity
from tenant_dashboard.observability.logging import get_logger

log = get_logger(__name__)


class AccessDecisionEngine:
    def __init__(
        self,
        *,
        credentials: CredentialValidator,
        resolver: TenantResolver,
        membership: MembershipAuthority,
    ) -> None:
        self._credentials = credentials
        self._resolver = resolver
        self._membership = membership

    async def decide(
        self,
        request: Request,
        *,
        require_tenant: bool = True,
        credential: CredentialKind = CredentialKind.session,
        route_kind: RouteKind = RouteKind.api,
    ) -> AccessVerdict:
        cred = await self._credentials.validate(request, credential)
        if not cred.is_valid or cred.identity is None:
            return AccessVerdict.fail(
                cred.error_kind or AccessErrorKind.unauthenticated, cred.error or "Unauthorized"
            )
        identity = cred.identity

        if not require_tenant:
            return AccessVerdict.ok(identity)

        resolution = self._resolver.resolve(request, route_kind)
        if resolution.status == ResolutionStatus.selector:
            # The tenant picker precedes any tenant choice; membership is not consulted.
            return AccessVerdict.ok(identity, resolution.tenant_id)
        if resolution.status == ResolutionStatus.malformed:
            log.info("tenant_id_malformed", source=resolution.source)
            return AccessVerdict.fail(AccessErrorKind.tenant_format_invalid, INVALID_TENANT_FORMAT)
        if resolution.status == ResolutionStatus.missing or resolution.tenant_id is None:
            log.info("tenant_id_missing")
            return AccessVerdict.fail(
                AccessErrorKind.tenant_missing,
                tenant_required_message(self._resolver.header_name, self._resolver.query_param),
            )

        tenant_id = resolution.tenant_id
        if not await self._authorize(identity, tenant_id):
            return AccessVerdict.fail(AccessErrorKind.forbidden, ACCESS_DENIED)

        return AccessVerdict.ok(identity, tenant_id)

    async def _authorize(self, identity: CallerIdentity, tenant_id: str) -> bool:
        if identity.is_service:
            # An API key is bound to its own tenant and nothing else.
            allowed = identity.tenant_id == tenant_id
            if not allowed:
                log.info("api_key_tenant_denied", tenant_id=tenant_id)
            return allowed
        return await self._membership.has_membership(identity, tenant_id)


def check_payload_tenant(verdict: AccessVerdict, payload_tenant_id: str | None) -> AccessVerdict:
    """
    Reject a payload tagged for a tenant other than the one the request was authorized for.
    An absent payload tenant id is not a mismatch.
    """

    if not verdict.is_valid or not payload_tenant_id:
        return verdict
    if normalize_tenant_id(payload_tenant_id) != verdict.tenant_id:
        log.warning("tenant_mismatch", resolved_tenant_id=verdict.tenant_id)
        return AccessVerdict.fail(AccessErrorKind.tenant_mismatch, TENANT_MISMATCH)
    return verdict
