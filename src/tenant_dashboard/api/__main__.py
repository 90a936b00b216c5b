"""
tenant_dashboard.api.__main__

`python -m tenant_dashboard.api` (or the `tenant-dashboard` script): serve the app with uvicorn.
"""

from __future__ import annotations

import uvicorn

from tenant_dashboard.api.app import create_app
from tenant_dashboard.settings import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        create_app(settings=settings),
        host=settings.api_host,
        port=settings.api_port,
        log_config=None,  # structlog owns log formatting
        # The gate's per-IP quotas read X-Forwarded-For only when this is trusted.
        proxy_headers=settings.trust_forwarded_for,
        forwarded_allow_ips="*" if settings.trust_forwarded_for else None,
    )


if __name__ == "__main__":
    main()
