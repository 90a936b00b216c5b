"""
tenant_dashboard.api.routers.public

Unauthenticated public API (tight quota class at the edge gate).
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from tenant_dashboard.api.deps import db_session
from tenant_dashboard.db.repositories.tenants import TenantRepo

router = APIRouter(prefix="/api/public", tags=["public"])


class PublicTenant(BaseModel):
    tenant_id: str
    name: str


@router.get("/tenants", response_model=list[PublicTenant])
async def list_tenants(session: AsyncSession = Depends(db_session)) -> list[PublicTenant]:
    # Never expose api_key here.
    tenants = await TenantRepo(session).list_all()
    return [PublicTenant(tenant_id=str(t.tenant_id), name=t.name) for t in tenants]
