"""
tenant_dashboard.api.routers.internal

Cookie-authenticated internal API used by the dashboard UI.
"""

# Package marker.
