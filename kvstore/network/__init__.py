"""Network module for KV-Store."""

from .http_server import HTTPServer, ListenerError
from .routes import counting, create_app

__all__ = ["HTTPServer", "ListenerError", "counting", "create_app"]
