from __future__ import annotations

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tenant_dashboard.db.models import Tenant, generate_api_key


class TenantRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(
        self, *, name: str, api_key: str | None = None, tenant_id: uuid.UUID | None = None
    ) -> Tenant:
        tenant = Tenant(
            tenant_id=tenant_id or uuid.uuid4(),
            name=name,
            api_key=api_key or generate_api_key(),
        )
        self._session.add(tenant)
        await self._session.flush()
        return tenant

    async def get(self, tenant_id: uuid.UUID) -> Tenant | None:
        return await self._session.get(Tenant, tenant_id)

    async def get_by_api_key(self, api_key: str) -> Tenant | None:
        # Exact match only; callers pass the key exactly as presented (trimmed).
        stmt = select(Tenant).where(Tenant.api_key == api_key)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def list_all(self) -> list[Tenant]:
        stmt = select(Tenant).order_by(Tenant.name)
        return list((await self._session.execute(stmt)).scalars().all())
