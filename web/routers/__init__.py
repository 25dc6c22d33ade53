"""Router modules for FastAPI web API."""

from web.routers import config, health, resources

__all__ = ["config", "health", "resources"]
