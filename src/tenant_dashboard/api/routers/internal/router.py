"""
tenant_dashboard.api.routers.internal.router

Internal API router aggregator.

Responsibilities:
- Mount internal routers under `/api/internal` (internal quota class, method
  allowlist, and production same-origin checks apply at the edge gate).
"""

from __future__ import annotations

from fastapi import APIRouter

from tenant_dashboard.api.routers.internal import settings, tenant_permissions

router = APIRouter(prefix="/api/internal", tags=["internal"])

router.include_router(tenant_permissions.router, prefix="/tenant-permissions")
router.include_router(settings.router, prefix="/settings")
