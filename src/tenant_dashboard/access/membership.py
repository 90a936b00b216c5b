"""
tenant_dashboard.access.membership

Membership authority.

Responsibilities:
- Decide whether a user identity may act within a tenant by asking the membership store.
- Fail closed: a lookup error is a denial, never an "unknown".

No results are cached, so a revoked membership takes effect on the next request.
"""

from __future__ import annotations

from typing import Protocol

from tenant_dashboard.access.errors import StoreUnavailable, TenantAccessDenied
from tenant_dashboard.auth.models import CallerIdentity
from tenant_dashboard.observability.logging import get_logger

log = get_logger(__name__)


class MembershipStore(Protocol):
    async def is_member(self, user_id: str, tenant_id: str) -> bool: ...


class MembershipAuthority:
    def __init__(self, store: MembershipStore) -> None:
        self._store = store

    async def has_membership(self, identity: CallerIdentity, tenant_id: str) -> bool:
        try:
            allowed = await self._store.is_member(identity.id, tenant_id)
        except StoreUnavailable:
            # Outage vs. denial is only visible here; the caller sees a plain denial.
            log.warning(
                "membership_lookup_failed", user_id=identity.id, tenant_id=tenant_id, exc_info=True
            )
            return False
        except Exception:
            log.exception("membership_lookup_failed", user_id=identity.id, tenant_id=tenant_id)
            return False

        if not allowed:
            log.info("membership_denied", user_id=identity.id, tenant_id=tenant_id)
        return allowed is True

    async def require_membership(self, identity: CallerIdentity, tenant_id: str) -> None:
        if not await self.has_membership(identity, tenant_id):
            raise TenantAccessDenied(tenant_id)
