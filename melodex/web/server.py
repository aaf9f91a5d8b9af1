"""
Web Server Module for Melodex.

This module provides the WebServer class that creates and manages the
FastAPI application, registers all routes, and runs it under uvicorn on
the application's event loop.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from melodex import __version__
from melodex.web.routes.api import register_api_routes

if TYPE_CHECKING:
    from melodex.core.profile import ProfileGate
    from melodex.core.search import SearchController

logger = logging.getLogger(__name__)


class WebServer:
    """
    FastAPI-based web server for Melodex.

    Serves the JSON API the browser page talks to: onboarding form,
    session state and search actions.
    """

    def __init__(self, gate: ProfileGate, controller: SearchController) -> None:
        """
        Initialize the WebServer.

        Args:
            gate: Profile gate guarding the search routes
            controller: Search controller owning the session
        """
        self.gate = gate
        self.controller = controller

        self.app = FastAPI(
            title="Melodex",
            description="Music catalog search with one-time profile onboarding",
            version=__version__,
        )

        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["*"],
            allow_headers=["*"],
        )

        # Server state
        self._server: uvicorn.Server | None = None
        self._serve_task: asyncio.Task[None] | None = None
        self._host = "0.0.0.0"
        self._port = 9000

        self._register_routes()

    def _register_routes(self) -> None:
        """Register all routes with the FastAPI app."""

        @self.app.get("/health")
        async def health_check() -> dict[str, str]:
            """Health check endpoint."""
            return {"status": "ok", "server": "melodex"}

        register_api_routes(self.app, gate=self.gate, controller=self.controller)

    async def start(self, host: str = "0.0.0.0", port: int = 9000) -> None:
        """
        Start the web server.

        Args:
            host: Host address to bind to
            port: Port to listen on
        """
        self._host = host
        self._port = port

        config = uvicorn.Config(
            self.app,
            host=host,
            port=port,
            log_level="warning",
            access_log=False,
        )
        self._server = uvicorn.Server(config)

        # Serve in the background on the current loop
        self._serve_task = asyncio.create_task(self._server.serve())

        logger.info("Web server started on http://%s:%d", host, port)

    async def stop(self) -> None:
        """Stop the web server."""
        if self._server is not None:
            self._server.should_exit = True
            self._server = None

        if self._serve_task is not None:
            await asyncio.gather(self._serve_task, return_exceptions=True)
            self._serve_task = None

        logger.info("Web server stopped")

    @property
    def port(self) -> int:
        """Get the server port."""
        return self._port

    @property
    def host(self) -> str:
        """Get the server host."""
        return self._host
