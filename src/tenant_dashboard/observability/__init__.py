"""
tenant_dashboard.observability

Observability package.

Responsibilities:
- Structured logging configuration (with secret masking).
- Request context propagation for consistent log enrichment.
"""

# Package marker.
