"""HTTP API for the BI dashboard."""

from .main import app, configure

__all__ = ["app", "configure"]
