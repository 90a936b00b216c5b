"""
tenant_dashboard.edge.gate

Edge gate middleware.

Responsibilities (applied in this order):
1. Public allowlist: static assets, auth pages, shared dashboards, health/docs pass untouched.
2. Tenant-route shape: an unknown top-level segment that is not a UUID redirects to `/`.
3. Quota classes per client IP (public API, internal API, upload), with
   `X-RateLimit-*` headers on every response in the class.
4. Body ceilings (413), checked against Content-Length and again while the body
   streams in, and the internal API method allowlist (405).
5. Same-origin enforcement for internal APIs (production only).
6. Security headers on every response, including redirects and rejections.
7. CORS headers for tenant routes and the externally callable APIs.
"""

from __future__ import annotations

import enum
import hmac
from dataclasses import dataclass
from urllib.parse import urlsplit

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from tenant_dashboard.access.tenant_resolver import first_path_segment, is_tenant_id
from tenant_dashboard.edge.headers import DEV_ORIGINS, cors_headers, security_headers
from tenant_dashboard.edge.rate_limit import InMemoryRateLimitStore, QuotaClass, RateLimitStore
from tenant_dashboard.observability.logging import get_logger
from tenant_dashboard.settings import Environment, Settings

log = get_logger(__name__)

ALLOWED_INTERNAL_METHODS = frozenset({"GET", "POST", "PUT", "PATCH", "DELETE"})

# Top-level segments that coexist with /{tenantId}/... routes.
KNOWN_SEGMENTS = frozenset(
    {
        "api",
        "auth",
        "shared",
        "static",
        "_next",
        "healthz",
        "readyz",
        "docs",
        "redoc",
        "openapi.json",
        "favicon.ico",
        "tenant-selector",
    }
)

_STATIC_SUFFIXES = (".svg", ".png", ".jpg", ".jpeg", ".gif", ".webp", ".ico")

TOO_MANY_REQUESTS = "Too many requests"
PAYLOAD_TOO_LARGE = "Payload too large"


class BodyTooLarge(Exception):
    def __init__(self, received: int, ceiling: int) -> None:
        super().__init__(f"request body exceeded {ceiling} bytes")
        self.received = received
        self.ceiling = ceiling


class RouteClass(enum.StrEnum):
    public = "public"
    public_api = "public_api"
    internal_api = "internal_api"
    upload_api = "upload_api"
    other_api = "other_api"
    tenant_page = "tenant_page"
    malformed_page = "malformed_page"


_CORS_ROUTES = frozenset({RouteClass.tenant_page, RouteClass.public_api, RouteClass.upload_api})


def _under(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def classify_path(path: str) -> RouteClass:
    if path in ("", "/"):
        return RouteClass.public
    if path.lower().endswith(_STATIC_SUFFIXES):
        return RouteClass.public

    segment = first_path_segment(path)
    if segment == "api":
        if _under(path, "/api/public") or _under(path, "/api/auth"):
            return RouteClass.public_api
        if _under(path, "/api/internal"):
            return RouteClass.internal_api
        if _under(path, "/api/upload-xml"):
            return RouteClass.upload_api
        return RouteClass.other_api
    if segment in KNOWN_SEGMENTS:
        return RouteClass.public
    if is_tenant_id(segment):
        return RouteClass.tenant_page
    return RouteClass.malformed_page


def client_ip(request: Request, *, trust_forwarded_for: bool) -> str:
    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for") or ""
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else "unknown"


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code)


def bounded_receive(receive: Receive, ceiling: int) -> Receive:
    """Wrap an ASGI receive so a body larger than `ceiling` raises `BodyTooLarge`."""
    received = 0

    async def wrapped() -> Message:
        nonlocal received
        message = await receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > ceiling:
                raise BodyTooLarge(received, ceiling)
        return message

    return wrapped


@dataclass(frozen=True, slots=True)
class EdgeGateConfig:
    env: Environment
    public_quota: QuotaClass
    internal_quota: QuotaClass
    upload_quota: QuotaClass
    max_upload_bytes: int
    max_api_body_bytes: int
    cors_allowed_origins: frozenset[str] = frozenset()
    cors_allow_headers: str = "Content-Type, Authorization"
    api_key_header: str = "X-API-Key"
    internal_api_secret: str | None = None
    trust_forwarded_for: bool = False

    @classmethod
    def from_settings(cls, settings: Settings) -> EdgeGateConfig:
        return cls(
            env=settings.env,
            public_quota=QuotaClass("public", **settings.rate_limit_public.model_dump()),
            internal_quota=QuotaClass("internal", **settings.rate_limit_internal.model_dump()),
            upload_quota=QuotaClass("upload", **settings.rate_limit_upload.model_dump()),
            max_upload_bytes=settings.max_upload_bytes,
            max_api_body_bytes=settings.max_api_body_bytes,
            cors_allowed_origins=frozenset(settings.cors_allowed_origins),
            cors_allow_headers=", ".join(
                [
                    "Content-Type",
                    "Authorization",
                    settings.api_key_header,
                    settings.tenant_header,
                    "X-Dashboard-Id",
                    "X-Data-Type",
                ]
            ),
            api_key_header=settings.api_key_header,
            internal_api_secret=settings.internal_api_secret,
            trust_forwarded_for=settings.trust_forwarded_for,
        )

    @property
    def production(self) -> bool:
        return self.env == Environment.prod

    @property
    def allowed_origins(self) -> frozenset[str]:
        if self.production:
            return self.cors_allowed_origins
        return self.cors_allowed_origins | DEV_ORIGINS


class EdgeGate(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        *,
        config: EdgeGateConfig,
        store: RateLimitStore | None = None,
    ) -> None:
        super().__init__(app)
        self.config = config
        self.store = store or InMemoryRateLimitStore()
        self._security_headers = security_headers(config.env)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http":
            ceiling = self._ceiling_for(classify_path(scope["path"]))
            if ceiling is not None:
                receive = bounded_receive(receive, ceiling)
        await super().__call__(scope, receive, send)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        route = classify_path(request.url.path)
        response = await self._gate(request, route, call_next)

        if route in _CORS_ROUTES:
            self._apply_cors(request, response)
        for name, value in self._security_headers.items():
            response.headers[name] = value
        return response

    async def _gate(
        self, request: Request, route: RouteClass, call_next: RequestResponseEndpoint
    ) -> Response:
        if route == RouteClass.public:
            return await call_next(request)

        if route == RouteClass.malformed_page:
            # Mistyped navigation, not a security event.
            log.info("navigation_redirect", segment=first_path_segment(request.url.path))
            return RedirectResponse("/", status_code=307)

        quota_headers: dict[str, str] = {}
        quota = self._quota_for(route)
        if quota is not None:
            ip = client_ip(request, trust_forwarded_for=self.config.trust_forwarded_for)
            state = await self.store.hit(
                f"{quota.name}:{ip}", limit=quota.limit, window_seconds=quota.window_seconds
            )
            quota_headers = state.headers()
            if not state.allowed:
                log.warning("rate_limited", quota=quota.name, ip=ip)
                return _with_headers(error_response(429, TOO_MANY_REQUESTS), quota_headers)

        rejection = (
            self._check_body_size(request, route)
            or self._check_method(request, route)
            or self._check_same_origin(request, route)
        )
        if rejection is None:
            rejection = await self._read_body_within_ceiling(request, route)
        if rejection is not None:
            return _with_headers(rejection, quota_headers)

        if request.method == "OPTIONS" and route in _CORS_ROUTES:
            response: Response = Response(status_code=204)
        else:
            response = await call_next(request)
        return _with_headers(response, quota_headers)

    def _quota_for(self, route: RouteClass) -> QuotaClass | None:
        if route == RouteClass.public_api:
            return self.config.public_quota
        if route == RouteClass.internal_api:
            return self.config.internal_quota
        if route == RouteClass.upload_api:
            return self.config.upload_quota
        return None

    def _ceiling_for(self, route: RouteClass) -> int | None:
        if route in (RouteClass.public, RouteClass.tenant_page, RouteClass.malformed_page):
            return None
        if route == RouteClass.upload_api:
            return self.config.max_upload_bytes
        return self.config.max_api_body_bytes

    def _check_body_size(self, request: Request, route: RouteClass) -> Response | None:
        ceiling = self._ceiling_for(route)
        if ceiling is None:
            return None
        raw = request.headers.get("content-length")
        if raw is None:
            return None
        try:
            size = int(raw)
        except ValueError:
            return error_response(400, "Invalid Content-Length")

        if size > ceiling:
            log.warning("payload_too_large", size=size, ceiling=ceiling)
            return error_response(413, PAYLOAD_TOO_LARGE)
        return None

    async def _read_body_within_ceiling(
        self, request: Request, route: RouteClass
    ) -> Response | None:
        # Chunked or understated bodies are counted as they arrive; the buffered
        # body is replayed to the route, so it never exceeds the ceiling in memory.
        if self._ceiling_for(route) is None:
            return None
        try:
            await request.body()
        except BodyTooLarge as exc:
            log.warning("payload_too_large", size=exc.received, ceiling=exc.ceiling)
            return error_response(413, PAYLOAD_TOO_LARGE)
        return None

    def _check_method(self, request: Request, route: RouteClass) -> Response | None:
        if route == RouteClass.internal_api and request.method not in ALLOWED_INTERNAL_METHODS:
            return error_response(405, "Method not allowed")
        return None

    def _check_same_origin(self, request: Request, route: RouteClass) -> Response | None:
        if route != RouteClass.internal_api or not self.config.production:
            return None

        origin = request.headers.get("origin") or _origin_of(request.headers.get("referer"))
        if not origin:
            # No browser origin information: not a cross-site cookie replay.
            return None

        host = request.headers.get("host", "")
        allowed = {f"https://{host}", f"http://{host}"} | self.config.cors_allowed_origins
        if origin in allowed:
            return None

        secret = self.config.internal_api_secret
        presented = request.headers.get(self.config.api_key_header)
        if secret and presented and hmac.compare_digest(presented, secret):
            return None

        log.warning("cross_origin_rejected", origin=origin, host=host)
        return error_response(403, "Cross-origin request rejected")

    def _apply_cors(self, request: Request, response: Response) -> None:
        origin = request.headers.get("origin")
        if not origin or origin not in self.config.allowed_origins:
            return
        for name, value in cors_headers(
            origin, allow_headers=self.config.cors_allow_headers
        ).items():
            response.headers[name] = value


def _origin_of(url: str | None) -> str | None:
    if not url:
        return None
    parts = urlsplit(url)
    if not parts.scheme or not parts.netloc:
        return None
    return f"{parts.scheme}://{parts.netloc}"


def _with_headers(response: Response, headers: dict[str, str]) -> Response:
    for name, value in headers.items():
        response.headers[name] = value
    return response
