"""
tenant_dashboard.auth.models

Auth domain models.

Responsibilities:
- Define the authenticated identity type (`CallerIdentity`) handed to route handlers.
- Define the minimal user record returned by the user store.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime


class IdentityKind(enum.StrEnum):
    user = "user"
    # Machine caller authenticated by a tenant API key; bound to exactly one tenant.
    service = "service"


@dataclass(frozen=True, slots=True)
class CallerIdentity:
    """
    Authenticated principal, constructed fresh per request and never persisted.
    """

    id: str
    kind: IdentityKind = IdentityKind.user
    email: str | None = None
    issued_at: datetime | None = None
    expires_at: datetime | None = None
    tenant_id: str | None = None

    @property
    def is_service(self) -> bool:
        return self.kind == IdentityKind.service

    @classmethod
    def for_api_key(cls, tenant_id: str) -> CallerIdentity:
        return cls(id=f"tenant-api-key:{tenant_id}", kind=IdentityKind.service, tenant_id=tenant_id)


@dataclass(frozen=True, slots=True)
class UserRecord:
    id: str
    email: str
