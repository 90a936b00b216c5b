"""
tenant_dashboard.auth.provider

Session identity provider.

Responsibilities:
- Resolve a session credential (JWT) to a `CallerIdentity`.
- Confirm the subject still exists in the user store, so deleted users lose
  access on their next request.

Contract:
- Returns None when the credential is invalid, expired, or names no user.
- Lets `StoreUnavailable` escape when the user store cannot be reached; the
  access layer maps that to "service unavailable" rather than "bad credential".
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol

from tenant_dashboard.auth.jwt import JwtConfig, JwtValidationError, decode_and_validate
from tenant_dashboard.auth.models import CallerIdentity, UserRecord
from tenant_dashboard.observability.logging import get_logger

log = get_logger(__name__)


class UserDirectory(Protocol):
    async def find_user(self, user_id: str) -> UserRecord | None: ...


class IdentityProvider(Protocol):
    async def get_current_identity(self, token: str) -> CallerIdentity | None: ...


class SessionIdentityProvider:
    def __init__(self, *, cfg: JwtConfig, users: UserDirectory) -> None:
        self._cfg = cfg
        self._users = users

    async def get_current_identity(self, token: str) -> CallerIdentity | None:
        try:
            claims = decode_and_validate(cfg=self._cfg, token=token)
        except JwtValidationError as e:
            log.info("session_token_rejected", reason=str(e))
            return None

        subject = str(claims.get("sub") or "")
        if not subject:
            return None

        user = await self._users.find_user(subject)
        if user is None:
            log.info("session_user_unknown", user_id=subject)
            return None

        return CallerIdentity(
            id=user.id,
            email=user.email,
            issued_at=_ts(claims.get("iat")),
            expires_at=_ts(claims.get("exp")),
        )


def _ts(value: object) -> datetime | None:
    if isinstance(value, int | float):
        return datetime.fromtimestamp(value, tz=UTC)
    return None
