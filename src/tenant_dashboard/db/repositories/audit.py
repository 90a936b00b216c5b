"""
tenant_dashboard.db.repositories.audit

Repository for `AuditEvent` entities: an append-only, tenant-partitioned trail
of machine uploads and settings changes.
"""

from __future__ import annotations

import enum
import uuid
from typing import Any

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenant_dashboard.db.models import AuditEvent


class AuditEventType(enum.StrEnum):
    xml_upload_received = "XML_UPLOAD_RECEIVED"
    setting_written = "SETTING_WRITTEN"
    setting_deleted = "SETTING_DELETED"


class AuditRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(
        self,
        *,
        tenant_id: uuid.UUID,
        actor: str,
        event_type: AuditEventType,
        details: dict[str, Any],
    ) -> AuditEvent:
        ev = AuditEvent(
            tenant_id=tenant_id, actor=actor, event_type=str(event_type), details=details
        )
        self._session.add(ev)
        await self._session.flush()
        return ev

    async def list_for_tenant(
        self,
        tenant_id: uuid.UUID,
        *,
        event_type: AuditEventType | None = None,
        limit: int = 200,
    ) -> list[AuditEvent]:
        stmt = select(AuditEvent).where(AuditEvent.tenant_id == tenant_id)
        if event_type is not None:
            stmt = stmt.where(AuditEvent.event_type == str(event_type))
        stmt = stmt.order_by(desc(AuditEvent.created_at)).limit(limit)
        return list((await self._session.execute(stmt)).scalars().all())
