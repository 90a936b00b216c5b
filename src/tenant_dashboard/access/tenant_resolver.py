"""
tenant_dashboard.access.tenant_resolver

Tenant identifier resolution.

Responsibilities:
- Read a tenant candidate from the request with fixed precedence:
  header, then query parameter, then (tenant page routes only) the first path segment.
- Validate the candidate's UUID shape and normalize it.
- Recognize the reserved tenant-selector sentinel, only as the path of the selector page
  itself; in a header or query parameter it is just a malformed tenant id.

The first *non-empty* source wins and sources are never merged. An empty header
value counts as "not provided" and defers to the query parameter.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

from starlette.requests import Request

from tenant_dashboard.settings import Settings

# Canonical 8-4-4-4-12 hex form; any version nibble, either letter case.
TENANT_ID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE
)


def is_tenant_id(value: str | None) -> bool:
    return bool(value) and TENANT_ID_PATTERN.match(value) is not None  # type: ignore[arg-type]


def normalize_tenant_id(value: str) -> str:
    return value.strip().lower()


def first_path_segment(path: str) -> str:
    parts = path.split("/")
    return parts[1] if len(parts) > 1 else ""


class RouteKind(enum.StrEnum):
    api = "api"
    # Routes shaped /{tenantId}/...; the path itself is an (implicit) tenant signal.
    tenant_page = "tenant_page"


class TenantSource(enum.StrEnum):
    header = "header"
    query = "query"
    path = "path"


class ResolutionStatus(enum.StrEnum):
    found = "found"
    selector = "selector"
    missing = "missing"
    malformed = "malformed"


@dataclass(frozen=True, slots=True)
class TenantResolution:
    status: ResolutionStatus
    tenant_id: str | None = None
    source: TenantSource | None = None


class TenantResolver:
    def __init__(self, *, header_name: str, query_param: str, sentinel: str) -> None:
        self.header_name = header_name
        self.query_param = query_param
        self.sentinel = sentinel

    @classmethod
    def from_settings(cls, settings: Settings) -> TenantResolver:
        return cls(
            header_name=settings.tenant_header,
            query_param=settings.tenant_query_param,
            sentinel=settings.tenant_selector_sentinel,
        )

    def candidate(self, request: Request, route_kind: RouteKind) -> tuple[TenantSource, str] | None:
        header = (request.headers.get(self.header_name) or "").strip()
        if header:
            return TenantSource.header, header

        query = (request.query_params.get(self.query_param) or "").strip()
        if query:
            return TenantSource.query, query

        if route_kind == RouteKind.tenant_page:
            segment = first_path_segment(request.url.path).strip()
            if segment:
                return TenantSource.path, segment

        return None

    def resolve(self, request: Request, route_kind: RouteKind = RouteKind.api) -> TenantResolution:
        found = self.candidate(request, route_kind)
        if found is None:
            return TenantResolution(status=ResolutionStatus.missing)

        source, raw = found
        if raw == self.sentinel and source == TenantSource.path:
            return TenantResolution(status=ResolutionStatus.selector, tenant_id=raw, source=source)
        if not is_tenant_id(raw):
            return TenantResolution(status=ResolutionStatus.malformed, source=source)
        return TenantResolution(
            status=ResolutionStatus.found, tenant_id=normalize_tenant_id(raw), source=source
        )
