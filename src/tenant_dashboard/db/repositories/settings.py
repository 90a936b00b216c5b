from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tenant_dashboard.db.models import TenantSetting


class SettingRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_for_tenant(self, tenant_id: uuid.UUID) -> list[TenantSetting]:
        stmt = (
            select(TenantSetting)
            .where(TenantSetting.tenant_id == tenant_id)
            .order_by(TenantSetting.key)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def get(self, *, tenant_id: uuid.UUID, key: str) -> TenantSetting | None:
        stmt = select(TenantSetting).where(
            TenantSetting.tenant_id == tenant_id, TenantSetting.key == key
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def upsert(self, *, tenant_id: uuid.UUID, key: str, value: str) -> TenantSetting:
        setting = await self.get(tenant_id=tenant_id, key=key)
        if setting is None:
            setting = TenantSetting(tenant_id=tenant_id, key=key, value=value)
            self._session.add(setting)
        else:
            setting.value = value
            setting.updated_at = datetime.utcnow()
        await self._session.flush()
        return setting

    async def delete(self, *, tenant_id: uuid.UUID, key: str) -> bool:
        setting = await self.get(tenant_id=tenant_id, key=key)
        if setting is None:
            return False
        await self._session.delete(setting)
        await self._session.flush()
        return True
