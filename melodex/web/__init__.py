"""
Melodex Web Layer.

This package provides the HTTP/REST API layer for Melodex, used by the
browser page to onboard the user and drive the search session.

Components:
- WebServer: FastAPI application with all routes
- routes.api: REST endpoints under /api
"""

from melodex.web.server import WebServer

__all__ = [
    "WebServer",
]
