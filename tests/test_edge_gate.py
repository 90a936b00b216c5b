"""
tests.test_edge_gate

Edge gate middleware over a bare FastAPI app (no database): route shape,
quotas, body ceilings, method allowlist, same-origin, and response headers.
"""

from __future__ import annotations

import httpx
import pytest
from fastapi import FastAPI, Request

from support import TENANT_A, make_request, make_settings
from tenant_dashboard.edge.gate import (
    EdgeGate,
    EdgeGateConfig,
    RouteClass,
    classify_path,
    client_ip,
)
from tenant_dashboard.edge.headers import security_headers
from tenant_dashboard.edge.rate_limit import InMemoryRateLimitStore, QuotaClass
from tenant_dashboard.settings import Environment


def gate_config(env: Environment = Environment.dev, **overrides: object) -> EdgeGateConfig:
    values: dict[str, object] = {
        "env": env,
        "public_quota": QuotaClass("public", 20, 60),
        "internal_quota": QuotaClass("internal", 50, 60),
        "upload_quota": QuotaClass("upload", 200, 60),
        "max_upload_bytes": 64,
        "max_api_body_bytes": 16,
        "internal_api_secret": "internal-secret",
    }
    values.update(overrides)
    return EdgeGateConfig(**values)  # type: ignore[arg-type]


def gated_app(config: EdgeGateConfig) -> FastAPI:
    app = FastAPI()
    app.add_middleware(EdgeGate, config=config, store=InMemoryRateLimitStore())

    @app.get("/")
    async def home() -> dict[str, str]:
        return {"page": "home"}

    @app.get("/api/public/ping")
    async def public_ping() -> dict[str, str]:
        return {"ok": "public"}

    @app.api_route("/api/internal/ping", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
    async def internal_ping() -> dict[str, str]:
        return {"ok": "internal"}

    @app.post("/api/upload-xml")
    async def upload(request: Request) -> dict[str, int]:
        return {"bytes": len(await request.body())}

    @app.get("/{tenant_id}/dashboard")
    async def dashboard(tenant_id: str) -> dict[str, str]:
        return {"tenant": tenant_id}

    return app


def client_for(config: EdgeGateConfig) -> httpx.AsyncClient:
    transport = httpx.ASGITransport(app=gated_app(config))
    return httpx.AsyncClient(transport=transport, base_url="http://test")


SECURITY_HEADERS = (
    "x-frame-options",
    "x-content-type-options",
    "referrer-policy",
    "x-xss-protection",
    "strict-transport-security",
    "content-security-policy",
    "permissions-policy",
)


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("/", RouteClass.public),
        ("/auth/login", RouteClass.public),
        ("/static/app.js", RouteClass.public),
        ("/logo.svg", RouteClass.public),
        ("/tenant-selector", RouteClass.public),
        ("/healthz", RouteClass.public),
        ("/api/public/tenants", RouteClass.public_api),
        ("/api/auth/me", RouteClass.public_api),
        ("/api/internal/settings", RouteClass.internal_api),
        ("/api/upload-xml", RouteClass.upload_api),
        ("/api/other", RouteClass.other_api),
        (f"/{TENANT_A}/dashboard", RouteClass.tenant_page),
        (f"/{TENANT_A.upper()}", RouteClass.tenant_page),
        ("/not-a-uuid/dashboard", RouteClass.malformed_page),
        ("/admin", RouteClass.malformed_page),
    ],
)
def test_classify_path(path: str, expected: RouteClass) -> None:
    assert classify_path(path) == expected


def test_client_ip_prefers_first_forwarded_entry_when_trusted() -> None:
    req = make_request(headers={"X-Forwarded-For": "203.0.113.7, 10.0.0.1"})
    assert client_ip(req, trust_forwarded_for=True) == "203.0.113.7"
    assert client_ip(req, trust_forwarded_for=False) == "127.0.0.1"


@pytest.mark.asyncio
async def test_malformed_tenant_page_redirects_home_with_headers() -> None:
    async with client_for(gate_config()) as client:
        r = await client.get("/not-a-uuid/dashboard")
    assert r.status_code == 307
    assert r.headers["location"] == "/"
    for name in SECURITY_HEADERS:
        assert name in r.headers


@pytest.mark.asyncio
async def test_tenant_page_and_unknown_routes_get_security_headers() -> None:
    async with client_for(gate_config()) as client:
        page = await client.get(f"/{TENANT_A}/dashboard")
        missing = await client.get("/api/other")
    assert page.status_code == 200
    assert missing.status_code == 404
    for r in (page, missing):
        assert r.headers["x-frame-options"] == "DENY"
        assert r.headers["x-content-type-options"] == "nosniff"


@pytest.mark.asyncio
async def test_public_quota_refuses_twenty_first_request() -> None:
    async with client_for(gate_config()) as client:
        responses = [await client.get("/api/public/ping") for _ in range(21)]

    assert all(r.status_code == 200 for r in responses[:20])
    assert [int(r.headers["x-ratelimit-remaining"]) for r in responses[:20]] == list(
        range(19, -1, -1)
    )
    last = responses[20]
    assert last.status_code == 429
    assert last.json() == {"error": "Too many requests"}
    assert last.headers["x-ratelimit-limit"] == "20"
    assert last.headers["x-ratelimit-remaining"] == "0"
    assert last.headers["x-frame-options"] == "DENY"


@pytest.mark.asyncio
async def test_quota_is_per_client_ip() -> None:
    config = gate_config(public_quota=QuotaClass("public", 1, 60), trust_forwarded_for=True)
    async with client_for(config) as client:
        first = await client.get("/api/public/ping", headers={"X-Forwarded-For": "198.51.100.1"})
        second = await client.get("/api/public/ping", headers={"X-Forwarded-For": "198.51.100.2"})
        again = await client.get("/api/public/ping", headers={"X-Forwarded-For": "198.51.100.1"})
    assert (first.status_code, second.status_code, again.status_code) == (200, 200, 429)


@pytest.mark.asyncio
async def test_forwarded_for_is_ignored_by_default() -> None:
    async with client_for(gate_config()) as client:
        responses = [
            await client.get("/api/public/ping", headers={"X-Forwarded-For": f"198.51.100.{i}"})
            for i in range(21)
        ]
    assert [r.status_code for r in responses].count(429) == 1
    assert responses[-1].status_code == 429


@pytest.mark.asyncio
async def test_routes_outside_quota_classes_have_no_rate_headers() -> None:
    async with client_for(gate_config()) as client:
        r = await client.get("/")
    assert "x-ratelimit-limit" not in r.headers


@pytest.mark.asyncio
async def test_body_ceilings() -> None:
    async with client_for(gate_config()) as client:
        too_big = await client.post("/api/internal/ping", content=b"x" * 17)
        fits = await client.post("/api/internal/ping", content=b"x" * 16)
        upload = await client.post("/api/upload-xml", content=b"x" * 64)
        upload_too_big = await client.post("/api/upload-xml", content=b"x" * 65)
    assert too_big.status_code == 413
    assert too_big.json() == {"error": "Payload too large"}
    assert fits.status_code == 200
    assert upload.status_code == 200
    assert upload.json() == {"bytes": 64}
    assert upload_too_big.status_code == 413


async def chunks(total: int, size: int = 8):
    for start in range(0, total, size):
        yield b"x" * min(size, total - start)


@pytest.mark.asyncio
async def test_streamed_body_without_content_length_is_bounded() -> None:
    async with client_for(gate_config()) as client:
        too_big = await client.post("/api/internal/ping", content=chunks(4096))
        upload_too_big = await client.post("/api/upload-xml", content=chunks(65))
    assert "content-length" not in too_big.request.headers
    assert too_big.status_code == 413
    assert too_big.json() == {"error": "Payload too large"}
    assert upload_too_big.status_code == 413
    assert upload_too_big.headers["x-frame-options"] == "DENY"


@pytest.mark.asyncio
async def test_streamed_body_within_ceiling_reaches_route_intact() -> None:
    async with client_for(gate_config()) as client:
        r = await client.post("/api/upload-xml", content=chunks(60, size=7))
    assert r.status_code == 200
    assert r.json() == {"bytes": 60}


@pytest.mark.asyncio
async def test_unparseable_content_length_is_rejected() -> None:
    async with client_for(gate_config()) as client:
        r = await client.get("/api/public/ping", headers={"Content-Length": "lots"})
    assert r.status_code == 400
    assert r.json() == {"error": "Invalid Content-Length"}


@pytest.mark.asyncio
async def test_internal_method_allowlist() -> None:
    async with client_for(gate_config()) as client:
        r = await client.request("OPTIONS", "/api/internal/ping")
        ok = await client.patch("/api/internal/ping")
    assert r.status_code == 405
    assert r.json() == {"error": "Method not allowed"}
    assert ok.status_code == 200


@pytest.mark.asyncio
async def test_cross_origin_internal_call_rejected_in_production_only() -> None:
    headers = {"Origin": "https://evil.example"}
    async with client_for(gate_config(Environment.prod)) as prod:
        rejected = await prod.post("/api/internal/ping", headers=headers)
        via_referer = await prod.post(
            "/api/internal/ping", headers={"Referer": "https://evil.example/page"}
        )
    async with client_for(gate_config(Environment.dev)) as dev:
        allowed_in_dev = await dev.post("/api/internal/ping", headers=headers)

    assert rejected.status_code == 403
    assert rejected.json() == {"error": "Cross-origin request rejected"}
    assert via_referer.status_code == 403
    assert allowed_in_dev.status_code == 200


@pytest.mark.asyncio
async def test_same_origin_and_trusted_callers_pass_in_production() -> None:
    config = gate_config(Environment.prod, cors_allowed_origins=frozenset({"https://app.example"}))
    async with client_for(config) as client:
        same_host = await client.post("/api/internal/ping", headers={"Origin": "http://test"})
        configured = await client.post(
            "/api/internal/ping", headers={"Origin": "https://app.example"}
        )
        no_origin = await client.post("/api/internal/ping")
        with_secret = await client.post(
            "/api/internal/ping",
            headers={"Origin": "https://evil.example", "X-API-Key": "internal-secret"},
        )
        wrong_secret = await client.post(
            "/api/internal/ping",
            headers={"Origin": "https://evil.example", "X-API-Key": "guess"},
        )
    assert [r.status_code for r in (same_host, configured, no_origin, with_secret)] == [200] * 4
    assert wrong_secret.status_code == 403


@pytest.mark.asyncio
async def test_csp_differs_between_environments() -> None:
    async with client_for(gate_config(Environment.prod)) as prod:
        prod_csp = (await prod.get("/")).headers["content-security-policy"]
    async with client_for(gate_config(Environment.dev)) as dev:
        dev_csp = (await dev.get("/")).headers["content-security-policy"]
    assert "'unsafe-eval'" not in prod_csp
    assert "'unsafe-eval'" in dev_csp
    assert "frame-ancestors 'none'" in prod_csp


@pytest.mark.parametrize("env", [Environment.dev, Environment.prod])
@pytest.mark.asyncio
async def test_security_headers_identical_across_outcomes(env: Environment) -> None:
    expected = {name.lower(): value for name, value in security_headers(env).items()}
    config = gate_config(env, public_quota=QuotaClass("public", 1, 60))
    async with client_for(config) as client:
        responses = [
            await client.get("/"),
            await client.get("/not-a-uuid/dashboard"),
            await client.get("/api/other"),
            await client.post("/api/internal/ping", content=b"x" * 17),
            await client.get("/api/public/ping"),
            await client.get("/api/public/ping"),
        ]
    assert [r.status_code for r in responses] == [200, 307, 404, 413, 200, 429]
    for r in responses:
        assert {name: r.headers.get(name) for name in SECURITY_HEADERS} == expected


@pytest.mark.asyncio
async def test_cors_echoes_only_allowlisted_origins() -> None:
    async with client_for(gate_config(Environment.dev)) as dev:
        local = await dev.get("/api/public/ping", headers={"Origin": "http://localhost:3000"})
        stranger = await dev.get("/api/public/ping", headers={"Origin": "https://evil.example"})
        internal = await dev.get("/api/internal/ping", headers={"Origin": "http://localhost:3000"})
    async with client_for(gate_config(Environment.prod)) as prod:
        prod_local = await prod.get("/api/public/ping", headers={"Origin": "http://localhost:3000"})

    assert local.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert local.headers["vary"] == "Origin"
    assert "authorization" in local.headers["access-control-allow-headers"].lower()
    assert "access-control-allow-origin" not in stranger.headers
    assert "access-control-allow-origin" not in internal.headers
    assert "access-control-allow-origin" not in prod_local.headers


@pytest.mark.asyncio
async def test_preflight_on_cors_route_short_circuits() -> None:
    async with client_for(gate_config(Environment.dev)) as client:
        r = await client.request(
            "OPTIONS", "/api/upload-xml", headers={"Origin": "http://localhost:3000"}
        )
    assert r.status_code == 204
    assert r.headers["access-control-allow-origin"] == "http://localhost:3000"
    assert "POST" in r.headers["access-control-allow-methods"]


def test_config_from_settings_allows_tenant_and_key_headers(tmp_path) -> None:
    config = EdgeGateConfig.from_settings(make_settings(tmp_path, env="prod"))
    assert config.production
    assert "X-Tenant-Id" in config.cors_allow_headers
    assert "X-API-Key" in config.cors_allow_headers
    assert config.public_quota == QuotaClass("public", 20, 60)
    assert config.upload_quota == QuotaClass("upload", 200, 60)
    assert config.allowed_origins == frozenset()
    assert config.trust_forwarded_for is False
