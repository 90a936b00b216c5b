"""
tenant_dashboard.api.routers.internal.tenant_permissions

User-scoped (not tenant-scoped) permission listing.

The UI calls this after login to learn which tenants the user may open; any
retry/backoff around it is the UI's business.
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_403_FORBIDDEN

from tenant_dashboard.access.deps import require_access
from tenant_dashboard.access.verdict import AccessVerdict
from tenant_dashboard.api.deps import db_session
from tenant_dashboard.db.repositories.memberships import MembershipRepo

router = APIRouter()


class TenantPermissionsRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId", min_length=1, max_length=64)


class TenantPermissionsResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tenant_access: dict[str, bool] = Field(serialization_alias="tenantAccess")
    message: str


@router.post("", response_model=TenantPermissionsResponse, response_model_by_alias=True)
async def tenant_permissions(
    body: TenantPermissionsRequest,
    verdict: AccessVerdict = Depends(require_access(require_tenant=False)),
    session: AsyncSession = Depends(db_session),
) -> TenantPermissionsResponse:
    identity = verdict.identity
    if identity is None or identity.is_service or body.user_id != identity.id:
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Forbidden")

    tenant_ids = await MembershipRepo(session).tenant_ids_for_user(uuid.UUID(identity.id))
    return TenantPermissionsResponse(
        tenant_access={str(t): True for t in tenant_ids},
        message=f"Found access to {len(tenant_ids)} tenants",
    )
