"""
Melodex - Main Application Module

This module contains the MelodexApp class that wires the profile gate,
search controller, catalog client and web server together and manages the
application lifecycle.
"""

import asyncio
import logging
import signal
from pathlib import Path

from melodex.catalog.client import CatalogService
from melodex.config import MelodexConfig
from melodex.core.profile import ProfileGate, UserProfile
from melodex.core.search import PollingHandle, SearchController, SearchSession
from melodex.core.storage import LocalStorage
from melodex.web.server import WebServer

logger = logging.getLogger(__name__)


class MelodexApp:
    """
    Main Melodex application that coordinates all components.

    The application manages:
    - Local storage and the profile gate (onboarding)
    - Catalog client shared by both fetch paths
    - Search session and controller
    - Web server for the browser page

    Polling of popular tracks starts once the gate is Ready: immediately
    when a stored profile is found, otherwise on the first successful
    profile submission.
    """

    def __init__(
        self,
        config: MelodexConfig | None = None,
        *,
        catalog: CatalogService | None = None,
    ) -> None:
        """
        Initialize the application.

        Args:
            config: Loaded configuration (defaults when omitted).
            catalog: Optional preconfigured catalog client.
        """
        self.config = config or MelodexConfig()

        self.storage = LocalStorage(Path(self.config.storage.path))
        self.gate = ProfileGate(self.storage, key=self.config.storage.profile_key)

        self.catalog = catalog or CatalogService(
            self.config.catalog.base_url,
            timeout_seconds=self.config.catalog.timeout_seconds,
        )

        self.session = SearchSession()
        self.controller = SearchController(
            self.catalog,
            self.session,
            popular_limit=self.config.search.popular_limit,
            discard_stale_responses=self.config.search.discard_stale_responses,
        )

        self.web_server = WebServer(gate=self.gate, controller=self.controller)

        # App state
        self._running = False
        self._shutdown_event: asyncio.Event | None = None
        self._polling: PollingHandle | None = None

        self.gate.add_ready_listener(self._on_profile_ready)

    def _on_profile_ready(self, profile: UserProfile) -> None:
        logger.info("Profile ready for %s, search unlocked", profile.name)
        if self._running and self._polling is None:
            self._polling = self.controller.start_polling(self.config.search.poll_interval_ms)

    async def start(self, *, serve_http: bool = True) -> None:
        """
        Start all components.

        Args:
            serve_http: Bind the web server (tests drive the ASGI app directly).
        """
        logger.info("Starting Melodex")
        self._running = True
        self._shutdown_event = asyncio.Event()

        # A stored profile fires the ready listener, which starts polling
        if not self.gate.load().present:
            logger.info("No profile stored, waiting for onboarding")

        if serve_http:
            await self.web_server.start(host=self.config.web.host, port=self.config.web.port)

    async def stop(self) -> None:
        """Stop all components gracefully."""
        if not self._running:
            return

        logger.info("Stopping Melodex...")
        self._running = False

        if self._polling is not None:
            self.controller.stop_polling(self._polling)
            await self._polling.wait_closed()
            self._polling = None
        await self.controller.shutdown()

        await self.web_server.stop()
        await self.catalog.aclose()

        if self._shutdown_event:
            self._shutdown_event.set()

        logger.info("Melodex stopped")

    async def run(self) -> None:
        """
        Run until shutdown is requested.

        Starts all components and waits for SIGINT or SIGTERM.
        """
        await self.start()

        loop = asyncio.get_running_loop()

        def handle_signal() -> None:
            logger.info("Received shutdown signal")
            if self._shutdown_event:
                self._shutdown_event.set()

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, handle_signal)
            except NotImplementedError:
                # Signal handlers not supported on Windows
                pass

        if self._shutdown_event:
            await self._shutdown_event.wait()

        await self.stop()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_polling(self) -> bool:
        return self._polling is not None and not self._polling.cancelled
