"""
tenant_dashboard.edge.headers

Response header policy.

Responsibilities:
- Compose the hardening headers applied to every response.
- Compose CORS headers for origins on the allowlist.

Only the CSP varies by environment; production drops 'unsafe-eval' and local
websocket/connect sources.
"""

from __future__ import annotations

from tenant_dashboard.settings import Environment

_CSP_BASE: dict[str, str] = {
    "default-src": "'self'",
    "script-src": "'self' 'unsafe-inline'",
    "style-src": "'self' 'unsafe-inline'",
    "img-src": "'self' data: blob:",
    "font-src": "'self'",
    "connect-src": "'self'",
    "object-src": "'none'",
    "base-uri": "'self'",
    "form-action": "'self'",
    "frame-ancestors": "'none'",
}

_CSP_DEV_OVERRIDES: dict[str, str] = {
    "script-src": "'self' 'unsafe-inline' 'unsafe-eval'",
    "connect-src": "'self' ws: http://localhost:* http://127.0.0.1:*",
}

_PERMISSIONS_POLICY = "camera=(), microphone=(), geolocation=(), payment=()"

CORS_ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
CORS_MAX_AGE = "86400"

DEV_ORIGINS = frozenset(
    {
        "http://localhost:3000",
        "https://localhost:3000",
        "http://localhost:8080",
        "http://127.0.0.1:8080",
    }
)


def content_security_policy(env: Environment) -> str:
    directives = dict(_CSP_BASE)
    if env != Environment.prod:
        directives.update(_CSP_DEV_OVERRIDES)
    return "; ".join(f"{name} {value}" for name, value in directives.items())


def security_headers(env: Environment) -> dict[str, str]:
    return {
        "X-Frame-Options": "DENY",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "X-XSS-Protection": "1; mode=block",
        "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
        "Content-Security-Policy": content_security_policy(env),
        "Permissions-Policy": _PERMISSIONS_POLICY,
    }


def cors_headers(origin: str, *, allow_headers: str) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": CORS_ALLOW_METHODS,
        "Access-Control-Allow-Headers": allow_headers,
        "Access-Control-Max-Age": CORS_MAX_AGE,
        "Vary": "Origin",
    }
