"""
tenant_dashboard.access

Tenant/authentication resolution and access control.

Responsibilities:
- Credential validation (session JWT or tenant API key).
- Tenant identifier resolution with fixed precedence.
- Membership decisions (fail-closed).
- The access decision engine producing one verdict per request.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Route handlers never call the sub-components directly; they go through
# `access.deps.require_access`, which wraps `AccessDecisionEngine.decide`.
