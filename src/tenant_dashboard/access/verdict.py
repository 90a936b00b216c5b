"""
tenant_dashboard.access.verdict

Access verdict and error taxonomy.

Responsibilities:
- Enumerate every way an access decision can fail, with its HTTP status.
- Define `AccessVerdict`, the single artifact the decision engine produces.

A verdict is never partially valid: it either carries a resolved identity (and
tenant, when one was required) or exactly one failure cause.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from tenant_dashboard.auth.models import CallerIdentity

AUTH_REQUIRED = "Authentication required. Please log in."
AUTH_UNAVAILABLE = "Authentication service unavailable"
INVALID_API_KEY = "Invalid API key"
INVALID_TENANT_FORMAT = "Invalid tenant ID format"
ACCESS_DENIED = "Access denied to this tenant"
TENANT_MISMATCH = "Tenant ID mismatch"


def api_key_required_message(header_name: str) -> str:
    return f"API key is required. Provide {header_name} header or Authorization: Bearer token."


def tenant_required_message(header_name: str, query_param: str) -> str:
    return (
        f"Tenant ID is required. Provide {header_name} header, {query_param} query parameter, "
        "or access via tenant route."
    )


class AccessErrorKind(enum.StrEnum):
    unauthenticated = "UNAUTHENTICATED"
    # Auth infrastructure failure; 401-class but distinguishable from bad input.
    service_unavailable = "SERVICE_UNAVAILABLE"
    tenant_format_invalid = "TENANT_FORMAT_INVALID"
    tenant_missing = "TENANT_MISSING"
    forbidden = "FORBIDDEN"
    tenant_mismatch = "TENANT_MISMATCH"

    @property
    def status_code(self) -> int:
        return _STATUS[self]

    @property
    def is_authentication_failure(self) -> bool:
        return self in (AccessErrorKind.unauthenticated, AccessErrorKind.service_unavailable)


_STATUS: dict[AccessErrorKind, int] = {
    AccessErrorKind.unauthenticated: 401,
    AccessErrorKind.service_unavailable: 401,
    AccessErrorKind.tenant_format_invalid: 400,
    AccessErrorKind.tenant_missing: 400,
    AccessErrorKind.forbidden: 403,
    AccessErrorKind.tenant_mismatch: 403,
}


@dataclass(frozen=True, slots=True)
class AccessVerdict:
    is_valid: bool
    identity: CallerIdentity | None = None
    tenant_id: str | None = None
    error_kind: AccessErrorKind | None = None
    error: str | None = None

    def __post_init__(self) -> None:
        if self.is_valid:
            if self.identity is None or self.error_kind is not None or self.error is not None:
                raise ValueError("a valid verdict carries an identity and no error")
        elif (
            self.error_kind is None
            or not self.error
            or self.identity is not None
            or self.tenant_id is not None
        ):
            raise ValueError("a failed verdict carries exactly one error and nothing else")

    @classmethod
    def ok(cls, identity: CallerIdentity, tenant_id: str | None = None) -> AccessVerdict:
        return cls(is_valid=True, identity=identity, tenant_id=tenant_id)

    @classmethod
    def fail(cls, kind: AccessErrorKind, message: str) -> AccessVerdict:
        return cls(is_valid=False, error_kind=kind, error=message)

    @property
    def status_code(self) -> int:
        return 200 if self.is_valid else self.error_kind.status_code  # type: ignore[union-attr]
