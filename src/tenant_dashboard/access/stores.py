"""
tenant_dashboard.access.stores

SQL-backed implementations of the stores the access layer consumes.

Responsibilities:
- `SqlUserDirectory`: user id -> user record (session identity provider).
- `SqlApiKeyStore`: API key -> tenant id, exact match.
- `SqlMembershipStore`: (user id, tenant id) -> bool, exact match.

Each lookup opens its own short session so access checks never share a
transaction with the route handler. Driver/DB failures surface as `StoreUnavailable`.
"""

from __future__ import annotations

import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tenant_dashboard.access.errors import StoreUnavailable
from tenant_dashboard.auth.models import UserRecord
from tenant_dashboard.db.repositories.memberships import MembershipRepo
from tenant_dashboard.db.repositories.tenants import TenantRepo
from tenant_dashboard.db.repositories.users import UserRepo


def _as_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(value)
    except ValueError:
        return None


class SqlUserDirectory:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_user(self, user_id: str) -> UserRecord | None:
        uid = _as_uuid(user_id)
        if uid is None:
            return None
        try:
            async with self._session_factory() as session:
                user = await UserRepo(session).get(uid)
        except (SQLAlchemyError, OSError) as e:
            raise StoreUnavailable("user store unavailable") from e
        if user is None:
            return None
        return UserRecord(id=str(user.id), email=user.email)


class SqlApiKeyStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def find_tenant_by_api_key(self, key: str) -> str | None:
        try:
            async with self._session_factory() as session:
                tenant = await TenantRepo(session).get_by_api_key(key)
        except (SQLAlchemyError, OSError) as e:
            raise StoreUnavailable("tenant store unavailable") from e
        return None if tenant is None else str(tenant.tenant_id)


class SqlMembershipStore:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def is_member(self, user_id: str, tenant_id: str) -> bool:
        uid, tid = _as_uuid(user_id), _as_uuid(tenant_id)
        if uid is None or tid is None:
            return False
        try:
            async with self._session_factory() as session:
                return await MembershipRepo(session).exists(user_id=uid, tenant_id=tid)
        except (SQLAlchemyError, OSError) as e:
            raise StoreUnavailable("membership store unavailable") from e
