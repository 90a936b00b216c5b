"""
tenant_dashboard.access.errors

Exceptions raised across the access layer.
"""

from __future__ import annotations

from tenant_dashboard.access.verdict import ACCESS_DENIED, AccessErrorKind


class StoreUnavailable(Exception):
    """A backing store (users, tenants, memberships) could not be reached."""


class AccessDenied(Exception):
    """
    Raised by FastAPI dependencies for a failed verdict; rendered by the app as
    `{"error": message}` with the kind's status code.
    """

    def __init__(self, kind: AccessErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def status_code(self) -> int:
        return self.kind.status_code


class TenantAccessDenied(AccessDenied):
    def __init__(self, tenant_id: str) -> None:
        super().__init__(AccessErrorKind.forbidden, ACCESS_DENIED)
        self.tenant_id = tenant_id
