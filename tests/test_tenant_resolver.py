from __future__ import annotations

import pytest

from support import TENANT_A, TENANT_B, make_request
from tenant_dashboard.access.tenant_resolver import (
    ResolutionStatus,
    RouteKind,
    TenantResolver,
    TenantSource,
    first_path_segment,
    is_tenant_id,
)

resolver = TenantResolver(
    header_name="X-Tenant-Id", query_param="tenant_id", sentinel="tenant-selector"
)


def test_header_wins_over_query_and_path() -> None:
    req = make_request(
        f"/{TENANT_B}/dashboard", headers={"X-Tenant-Id": TENANT_A}, query=f"tenant_id={TENANT_B}"
    )
    res = resolver.resolve(req, RouteKind.tenant_page)
    assert res.status == ResolutionStatus.found
    assert res.tenant_id == TENANT_A
    assert res.source == TenantSource.header


def test_query_used_when_header_absent() -> None:
    res = resolver.resolve(make_request(query=f"tenant_id={TENANT_B}"))
    assert (res.status, res.tenant_id, res.source) == (
        ResolutionStatus.found,
        TENANT_B,
        TenantSource.query,
    )


def test_empty_header_defers_to_query() -> None:
    req = make_request(headers={"X-Tenant-Id": "  "}, query=f"tenant_id={TENANT_A}")
    res = resolver.resolve(req)
    assert res.tenant_id == TENANT_A
    assert res.source == TenantSource.query


def test_malformed_header_is_not_rescued_by_valid_query() -> None:
    req = make_request(headers={"X-Tenant-Id": "admin"}, query=f"tenant_id={TENANT_A}")
    assert resolver.resolve(req).status == ResolutionStatus.malformed


def test_uppercase_tenant_id_is_normalized() -> None:
    res = resolver.resolve(make_request(headers={"X-Tenant-Id": TENANT_A.upper()}))
    assert res.status == ResolutionStatus.found
    assert res.tenant_id == TENANT_A


def test_path_segment_only_counts_for_tenant_pages() -> None:
    path = f"/{TENANT_A}/dashboard"
    assert resolver.resolve(make_request(path), RouteKind.api).status == ResolutionStatus.missing

    res = resolver.resolve(make_request(path), RouteKind.tenant_page)
    assert res.status == ResolutionStatus.found
    assert res.source == TenantSource.path


def test_non_uuid_path_segment_on_tenant_page_is_malformed() -> None:
    res = resolver.resolve(make_request("/admin/dashboard"), RouteKind.tenant_page)
    assert res.status == ResolutionStatus.malformed


def test_nothing_supplied_is_missing() -> None:
    res = resolver.resolve(make_request("/api/internal/settings"))
    assert res.status == ResolutionStatus.missing
    assert res.tenant_id is None


def test_selector_sentinel_is_recognized_as_page_path() -> None:
    res = resolver.resolve(make_request("/tenant-selector"), RouteKind.tenant_page)
    assert res.status == ResolutionStatus.selector
    assert res.tenant_id == "tenant-selector"
    assert res.source == TenantSource.path


@pytest.mark.parametrize(
    "req",
    [
        make_request(f"/{TENANT_B}/dashboard", headers={"X-Tenant-Id": "tenant-selector"}),
        make_request(f"/{TENANT_B}/dashboard", query="tenant_id=tenant-selector"),
        make_request("/api/internal/settings", headers={"X-Tenant-Id": "tenant-selector"}),
    ],
)
def test_selector_sentinel_outside_the_path_is_malformed(req) -> None:
    assert resolver.resolve(req, RouteKind.tenant_page).status == ResolutionStatus.malformed
    assert resolver.resolve(req, RouteKind.api).status == ResolutionStatus.malformed


def test_selector_path_on_api_route_is_missing() -> None:
    res = resolver.resolve(make_request("/tenant-selector"), RouteKind.api)
    assert res.status == ResolutionStatus.missing


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (TENANT_A, True),
        (TENANT_A.upper(), True),
        ("00000000-0000-0000-0000-000000000000", True),
        ("admin", False),
        (TENANT_A[:-1], False),
        (TENANT_A.replace("-", ""), False),
        ("", False),
        (None, False),
    ],
)
def test_is_tenant_id(value, expected) -> None:
    assert is_tenant_id(value) is expected


def test_first_path_segment() -> None:
    assert first_path_segment(f"/{TENANT_A}/manage") == TENANT_A
    assert first_path_segment("/") == ""
    assert first_path_segment("") == ""
