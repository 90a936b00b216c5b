from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_404_NOT_FOUND

from tenant_dashboard.access.deps import require_access
from tenant_dashboard.access.verdict import AccessVerdict
from tenant_dashboard.api.deps import db_session, settings_dep
from tenant_dashboard.auth.jwt import JwtConfig, issue_session_token
from tenant_dashboard.db.repositories.users import UserRepo
from tenant_dashboard.settings import Settings

router = APIRouter(tags=["auth"])


class DevLoginRequest(BaseModel):
    email: str = Field(min_length=3, max_length=320, pattern=r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
    ttl_minutes: int | None = Field(default=None, ge=1, le=24 * 60)


class DevLoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str


class MeResponse(BaseModel):
    id: str
    email: str | None


@router.get("/auth/login")
async def login_page(next_path: str = Query(default="/", alias="next")) -> dict[str, str]:
    return {"page": "login", "next": next_path}


@router.post("/api/auth/dev-login", response_model=DevLoginResponse)
async def dev_login(
    body: DevLoginRequest,
    response: Response,
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> DevLoginResponse:
    if settings.is_production:
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")

    user = await UserRepo(session).get_or_create(email=body.email)
    await session.commit()

    ttl = timedelta(minutes=body.ttl_minutes or settings.session_ttl_minutes)
    token = issue_session_token(
        cfg=JwtConfig.from_settings(settings), subject=str(user.id), email=user.email, ttl=ttl
    )
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=int(ttl.total_seconds()),
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
    return DevLoginResponse(access_token=token, user_id=str(user.id))


@router.post("/api/auth/logout")
async def logout(response: Response, settings: Settings = Depends(settings_dep)) -> dict[str, str]:
    response.delete_cookie(settings.session_cookie_name)
    return {"status": "ok"}


@router.get("/api/auth/me", response_model=MeResponse)
async def me(verdict: AccessVerdict = Depends(require_access(require_tenant=False))) -> MeResponse:
    identity = verdict.identity  # always set on a valid verdict
    return MeResponse(id=identity.id, email=identity.email)  # type: ignore[union-attr]
