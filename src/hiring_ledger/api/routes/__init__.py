"""API routers, one module per resource."""

from hiring_ledger.api.routes import admin, applications, health

__all__ = ["admin", "applications", "health"]
