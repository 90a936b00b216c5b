"""
tenant_dashboard.auth

Authentication primitives.

Responsibilities:
- Session JWT issuing and validation.
- Caller identity types.
- The session identity provider consulted by the access layer.
"""

# Package marker.
