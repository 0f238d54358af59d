"""HTTP API for Partner Notifier."""

from .server import create_app

__all__ = ["create_app"]
