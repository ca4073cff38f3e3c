"""API v1 endpoints package."""

from src.api.v1.endpoints import consents, cookies, websites

__all__ = ["consents", "cookies", "websites"]
