"""
tenant_dashboard.api

HTTP API package (FastAPI).

Responsibilities:
- App factory and composition root.
- Routers for pages, public/internal APIs, and the machine upload path.
"""

# Package marker.
