"""API module."""

from marquee.api.routes import router

__all__ = ["router"]
