"""
tenant_dashboard.api.routers

Route modules. Each handler obtains its access verdict through
`access.deps.require_access` (or the page guard) rather than re-implementing checks.
"""
