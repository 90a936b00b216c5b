"""
tenant_dashboard.api.routers.health

Liveness and readiness probes (public allowlist; no quota class at the gate).

Readiness means access decisions can actually be made: the access engine is
built and the database holding users, tenants, and memberships answers.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_503_SERVICE_UNAVAILABLE

from tenant_dashboard.api.deps import db_session

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(request: Request, session: AsyncSession = Depends(db_session)) -> dict[str, str]:
    if getattr(request.app.state, "access_engine", None) is None:
        raise HTTPException(
            status_code=HTTP_503_SERVICE_UNAVAILABLE, detail="Access engine not ready"
        )
    await session.execute(text("SELECT 1"))
    return {"status": "ready"}
