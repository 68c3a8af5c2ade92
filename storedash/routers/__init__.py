"""API routers package."""

from storedash.routers import dashboard, reports

__all__ = ["dashboard", "reports"]
