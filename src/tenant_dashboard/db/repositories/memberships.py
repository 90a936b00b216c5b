"""
tenant_dashboard.db.repositories.memberships

Repository for `UserTenant` membership facts.

Responsibilities:
- Exact (user, tenant) existence checks for the membership authority.
- Listing a user's tenants for the tenant-permissions endpoint.
- Granting and revoking membership.
"""

from __future__ import annotations

import uuid

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenant_dashboard.db.models import UserTenant


class MembershipRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def exists(self, *, user_id: uuid.UUID, tenant_id: uuid.UUID) -> bool:
        stmt = (
            select(UserTenant.id)
            .where(UserTenant.user_id == user_id, UserTenant.tenant_id == tenant_id)
            .limit(1)
        )
        return (await self._session.execute(stmt)).first() is not None

    async def tenant_ids_for_user(self, user_id: uuid.UUID) -> list[uuid.UUID]:
        stmt = select(UserTenant.tenant_id).where(UserTenant.user_id == user_id)
        return list((await self._session.execute(stmt)).scalars().all())

    async def grant(self, *, user_id: uuid.UUID, tenant_id: uuid.UUID) -> UserTenant:
        membership = UserTenant(user_id=user_id, tenant_id=tenant_id)
        self._session.add(membership)
        await self._session.flush()
        return membership

    async def revoke(self, *, user_id: uuid.UUID, tenant_id: uuid.UUID) -> bool:
        stmt = delete(UserTenant).where(
            UserTenant.user_id == user_id, UserTenant.tenant_id == tenant_id
        )
        result = await self._session.execute(stmt)
        return (result.rowcount or 0) > 0
