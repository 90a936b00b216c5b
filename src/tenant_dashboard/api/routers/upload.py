"""
tenant_dashboard.api.routers.upload

Machine-to-machine XML upload endpoint.

Responsibilities:
- Authenticate with the tenant API key (not a user session).
- Require the target tenant explicitly and check it against the key's tenant.
- Accept the raw body and record the upload in the audit trail.

XML-to-JSON conversion and file storage live outside this service's access layer.
"""

from __future__ import annotations

import re

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_400_BAD_REQUEST

from tenant_dashboard.access.credentials import CredentialKind
from tenant_dashboard.access.deps import require_access, tenant_uuid
from tenant_dashboard.access.verdict import AccessVerdict
from tenant_dashboard.api.deps import db_session
from tenant_dashboard.db.repositories.audit import AuditEventType, AuditRepo
from tenant_dashboard.observability.logging import get_logger

log = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["upload"])

_DATA_TYPE = re.compile(r"^[a-zA-Z0-9\s_()-]{1,100}$")


@router.post("/upload-xml")
async def upload_xml(
    request: Request,
    verdict: AccessVerdict = Depends(require_access(credential=CredentialKind.api_key)),
    session: AsyncSession = Depends(db_session),
) -> dict[str, object]:
    data_type = (request.headers.get("X-Data-Type") or "").strip()
    if not data_type:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Missing X-Data-Type header")
    if not _DATA_TYPE.match(data_type):
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="Invalid X-Data-Type header")

    dashboard_id = request.headers.get("X-Dashboard-Id")
    dashboard_title = request.headers.get("X-Dashboard-Title")
    if dashboard_id and dashboard_title:
        raise HTTPException(
            status_code=HTTP_400_BAD_REQUEST,
            detail="Provide either X-Dashboard-Id OR X-Dashboard-Title, not both",
        )

    body = await request.body()
    if not body.strip():
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="No XML data provided")

    tenant_id = tenant_uuid(verdict)
    await AuditRepo(session).add(
        tenant_id=tenant_id,
        actor=verdict.identity.id,  # type: ignore[union-attr]
        event_type=AuditEventType.xml_upload_received,
        details={
            "data_type": data_type,
            "bytes": len(body),
            "dashboard_id": dashboard_id,
            "dashboard_title": dashboard_title,
        },
    )
    await session.commit()
    log.info("xml_upload_received", tenant_id=str(tenant_id), bytes=len(body))

    return {
        "success": True,
        "tenantId": str(tenant_id),
        "dataType": data_type,
        "bytesReceived": len(body),
    }
