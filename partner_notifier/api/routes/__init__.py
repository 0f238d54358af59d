"""API route modules."""

from . import health, notifications, partners

__all__ = ["health", "notifications", "partners"]
