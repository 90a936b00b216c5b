"""
tenant_dashboard.api.routers.pages

Server-side page guard for tenant pages.

Responsibilities:
- Gate /{tenantId}/... pages on the same access verdict the APIs use.
- Turn failures into navigation: no session -> login page; no membership ->
  home page with an access_denied marker; unusable tenant id -> home.
- Serve the tenant selector, reachable by any signed-in user.

Pages return a JSON page context; rendering is the UI's concern.
"""

from __future__ import annotations

import uuid
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response

from tenant_dashboard.access.deps import access_engine
from tenant_dashboard.access.engine import AccessDecisionEngine
from tenant_dashboard.access.tenant_resolver import (
    RouteKind,
    first_path_segment,
    normalize_tenant_id,
)
from tenant_dashboard.access.verdict import AccessErrorKind, AccessVerdict
from tenant_dashboard.api.deps import db_session
from tenant_dashboard.db.repositories.memberships import MembershipRepo
from tenant_dashboard.db.repositories.tenants import TenantRepo
from tenant_dashboard.observability.logging import get_logger

log = get_logger(__name__)

router = APIRouter(tags=["pages"])

LOGIN_PATH = "/auth/login"


def redirect_for(verdict: AccessVerdict, request: Request) -> RedirectResponse:
    kind = verdict.error_kind
    if kind is not None and kind.is_authentication_failure:
        return RedirectResponse(f"{LOGIN_PATH}?{urlencode({'next': request.url.path})}", 307)
    if kind == AccessErrorKind.forbidden:
        return access_denied_redirect(request)
    return RedirectResponse("/", status_code=307)


def access_denied_redirect(request: Request) -> RedirectResponse:
    tenant = first_path_segment(request.url.path)
    query = urlencode({"error": "access_denied", "tenant": tenant})
    return RedirectResponse(f"/?{query}", status_code=307)


async def _page(request: Request, engine: AccessDecisionEngine, page: str) -> Response:
    verdict = await engine.decide(request, route_kind=RouteKind.tenant_page)
    if not verdict.is_valid:
        return redirect_for(verdict, request)
    url_tenant = normalize_tenant_id(first_path_segment(request.url.path))
    if verdict.tenant_id != url_tenant:
        # A header or query override may not stand in for the tenant named in the URL.
        log.warning("page_tenant_override_rejected", tenant_id=url_tenant)
        return access_denied_redirect(request)
    identity = verdict.identity
    return JSONResponse(
        {
            "page": page,
            "tenantId": verdict.tenant_id,
            "user": {"id": identity.id, "email": identity.email},  # type: ignore[union-attr]
        }
    )


@router.get("/")
async def home(request: Request) -> dict[str, object]:
    return {
        "page": "home",
        "error": request.query_params.get("error"),
        "tenant": request.query_params.get("tenant"),
    }


@router.get("/tenant-selector")
async def tenant_selector(
    request: Request,
    engine: AccessDecisionEngine = Depends(access_engine),
    session: AsyncSession = Depends(db_session),
) -> Response:
    verdict = await engine.decide(request, route_kind=RouteKind.tenant_page)
    if not verdict.is_valid:
        return redirect_for(verdict, request)
    identity = verdict.identity

    tenants = []
    if identity is not None and not identity.is_service:
        tenant_ids = await MembershipRepo(session).tenant_ids_for_user(uuid.UUID(identity.id))
        repo = TenantRepo(session)
        for tenant_id in tenant_ids:
            tenant = await repo.get(tenant_id)
            if tenant is not None:
                tenants.append({"tenantId": str(tenant.tenant_id), "name": tenant.name})

    return JSONResponse({"page": "tenant-selector", "tenants": tenants})


@router.get("/{tenant_id}")
async def tenant_home(
    request: Request, tenant_id: str, engine: AccessDecisionEngine = Depends(access_engine)
) -> Response:
    return await _page(request, engine, "tenant-home")


@router.get("/{tenant_id}/dashboard")
async def dashboard(
    request: Request, tenant_id: str, engine: AccessDecisionEngine = Depends(access_engine)
) -> Response:
    return await _page(request, engine, "dashboard")


@router.get("/{tenant_id}/manage")
async def manage(
    request: Request, tenant_id: str, engine: AccessDecisionEngine = Depends(access_engine)
) -> Response:
    return await _page(request, engine, "manage")


@router.get("/{tenant_id}/tv-mode")
async def tv_mode(
    request: Request, tenant_id: str, engine: AccessDecisionEngine = Depends(access_engine)
) -> Response:
    return await _page(request, engine, "tv-mode")


@router.get("/{tenant_id}/api-docs")
async def api_docs(
    request: Request, tenant_id: str, engine: AccessDecisionEngine = Depends(access_engine)
) -> Response:
    return await _page(request, engine, "api-docs")
