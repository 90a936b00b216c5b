"""
tenant_dashboard.api.routers.internal.settings

Tenant-scoped settings CRUD.

Responsibilities:
- List/write/delete key-value settings for the verdict's tenant only.
- Reject writes whose body names a different tenant ("Tenant ID mismatch").
- Record every change in the audit trail.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_404_NOT_FOUND

from tenant_dashboard.access.deps import enforce_payload_tenant, require_access, tenant_uuid
from tenant_dashboard.access.verdict import AccessVerdict
from tenant_dashboard.api.deps import db_session
from tenant_dashboard.db.models import TenantSetting
from tenant_dashboard.db.repositories.audit import AuditEventType, AuditRepo
from tenant_dashboard.db.repositories.settings import SettingRepo

router = APIRouter()

_KEY_PATTERN = r"^[A-Za-z0-9_.-]+$"


class SettingValueRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    value: str = Field(default="", max_length=10_000)
    tenant_id: str | None = Field(default=None, alias="tenantId")


class SettingWriteRequest(SettingValueRequest):
    key: str = Field(min_length=1, max_length=128, pattern=_KEY_PATTERN)


class SettingResponse(BaseModel):
    key: str
    value: str
    tenant_id: str
    updated_at: datetime

    @classmethod
    def of(cls, setting: TenantSetting) -> SettingResponse:
        return cls(
            key=setting.key,
            value=setting.value,
            tenant_id=str(setting.tenant_id),
            updated_at=setting.updated_at,
        )


@router.get("", response_model=list[SettingResponse])
async def list_settings(
    verdict: AccessVerdict = Depends(require_access()),
    session: AsyncSession = Depends(db_session),
) -> list[SettingResponse]:
    settings = await SettingRepo(session).list_for_tenant(tenant_uuid(verdict))
    return [SettingResponse.of(s) for s in settings]


@router.post("", response_model=SettingResponse)
async def create_setting(
    body: SettingWriteRequest,
    verdict: AccessVerdict = Depends(require_access()),
    session: AsyncSession = Depends(db_session),
) -> SettingResponse:
    enforce_payload_tenant(verdict, body.tenant_id)
    return await _write(session, verdict, key=body.key, value=body.value)


@router.put("/{key}", response_model=SettingResponse)
async def update_setting(
    key: str,
    body: SettingValueRequest,
    verdict: AccessVerdict = Depends(require_access()),
    session: AsyncSession = Depends(db_session),
) -> SettingResponse:
    enforce_payload_tenant(verdict, body.tenant_id)
    return await _write(session, verdict, key=key, value=body.value)


@router.delete("/{key}")
async def delete_setting(
    key: str,
    verdict: AccessVerdict = Depends(require_access()),
    session: AsyncSession = Depends(db_session),
) -> dict[str, str]:
    tenant_id = tenant_uuid(verdict)
    if not await SettingRepo(session).delete(tenant_id=tenant_id, key=key):
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Setting not found")
    await AuditRepo(session).add(
        tenant_id=tenant_id,
        actor=verdict.identity.id,  # type: ignore[union-attr]
        event_type=AuditEventType.setting_deleted,
        details={"key": key},
    )
    await session.commit()
    return {"status": "deleted", "key": key}


async def _write(
    session: AsyncSession, verdict: AccessVerdict, *, key: str, value: str
) -> SettingResponse:
    tenant_id = tenant_uuid(verdict)
    setting = await SettingRepo(session).upsert(tenant_id=tenant_id, key=key, value=value)
    await AuditRepo(session).add(
        tenant_id=tenant_id,
        actor=verdict.identity.id,  # type: ignore[union-attr]
        event_type=AuditEventType.setting_written,
        details={"key": key},
    )
    await session.commit()
    return SettingResponse.of(setting)
