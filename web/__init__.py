"""FastAPI web application for Packer Provider.

The HTTP API is a host adapter: it stores resource state and calls the
lifecycle services in packer_provider/.
"""

from web.app import app, create_app

__all__ = ["app", "create_app"]
