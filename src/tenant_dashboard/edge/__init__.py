"""
tenant_dashboard.edge

Edge gate: coarse request gating that runs before any route handler.

Responsibilities:
- Public-path allowlisting and tenant-route URL-shape validation.
- Per-IP quota classes, body-size and method limits, same-origin enforcement.
- Security and CORS header injection.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The gate never decides identity or tenant authorization; handlers do that via
# `access.deps.require_access` after the gate has passed the request through.
