"""
Search session controller for Melodex.

The controller owns the SearchSession state (query, results, loading flag)
and reconciles catalog responses into it:

- fetch_popular(): first N chart tracks, also run on a repeating timer
- fetch_by_search(): on-demand text search, toggles the loading flag
- start_polling()/stop_polling(): the popular-tracks timer

Failure policy: a catalog failure never propagates. It is logged and the
result list is cleared to empty.

Ordering: responses are applied in arrival order, so when a popular refresh
and a manual search overlap the last one to finish wins. Setting
``discard_stale_responses`` enables latest-wins by issue order instead:
every request takes a generation number and a response is applied only if
no newer request was issued meanwhile.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Coroutine
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from melodex.catalog.models import FetchResult, Track

if TYPE_CHECKING:
    from melodex.catalog.client import CatalogService

logger = logging.getLogger(__name__)

# Number of chart entries shown as popular tracks
POPULAR_LIMIT = 5

# Popular-tracks refresh interval
DEFAULT_POLL_INTERVAL_MS = 20_000


@dataclass
class SearchSession:
    """
    Mutable view state shared by the controller and its readers.

    ``results`` is always replaced wholesale, never mutated in place, so a
    reader never observes a partially applied response.
    """

    query: str = ""
    results: tuple[Track, ...] = ()
    is_loading: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "is_loading": self.is_loading,
            "count": len(self.results),
            "results": [track.to_dict() for track in self.results],
        }


class PollingHandle:
    """
    Capability to cancel a popular-tracks timer.

    Owns the first fetch, the timer task and the fetch tasks the timer
    spawned. Cancelling stops the timer and aborts timer fetches still in
    flight; the first fetch was issued by start_polling() and runs to
    completion. Cancelling is idempotent.
    """

    def __init__(self, interval_ms: int) -> None:
        self.interval_ms = interval_ms
        self._first_task: asyncio.Task[None] | None = None
        self._timer_task: asyncio.Task[None] | None = None
        self._inflight: set[asyncio.Task[None]] = set()
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    def cancel(self) -> bool:
        """Cancel the timer and its in-flight fetches. Returns False if already cancelled."""
        if self._cancelled:
            return False
        self._cancelled = True

        if self._timer_task is not None:
            self._timer_task.cancel()
        for task in list(self._inflight):
            task.cancel()
        return True

    async def wait_closed(self) -> None:
        """Wait for the first fetch and the cancelled timer tasks to unwind."""
        tasks = list(self._inflight)
        if self._first_task is not None:
            tasks.append(self._first_task)
        if self._timer_task is not None:
            tasks.append(self._timer_task)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)


class SearchController:
    """
    Drives catalog fetches and applies their outcomes to a SearchSession.

    Usage:
        session = SearchSession()
        controller = SearchController(catalog, session)

        handle = controller.start_polling(20_000)
        await controller.fetch_by_search("drake forever")
        controller.stop_polling(handle)

    All methods must be called from the event loop thread; the session is
    never touched concurrently, only interleaved between awaits.
    """

    def __init__(
        self,
        catalog: CatalogService,
        session: SearchSession,
        *,
        popular_limit: int = POPULAR_LIMIT,
        discard_stale_responses: bool = False,
    ) -> None:
        """
        Initialize the controller.

        Args:
            catalog: Catalog service used for both fetch paths.
            session: Session state this controller mutates.
            popular_limit: How many chart entries to keep.
            discard_stale_responses: Apply only the latest issued response.
        """
        self.catalog = catalog
        self.session = session
        self.popular_limit = popular_limit
        self.discard_stale_responses = discard_stale_responses

        # Generation of the most recently issued request (any kind)
        self._generation = 0
        # Generation of the most recently issued manual search
        self._search_generation = 0

        self._handles: set[PollingHandle] = set()

    # -------------------------------------------------------------------------
    # Fetches
    # -------------------------------------------------------------------------

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _is_stale(self, generation: int) -> bool:
        return self.discard_stale_responses and generation != self._generation

    def _apply(
        self,
        result: FetchResult,
        generation: int,
        what: str,
        limit: int | None = None,
    ) -> None:
        if self._is_stale(generation):
            logger.debug(
                "Discarding stale %s response (gen=%d, current gen=%d)",
                what,
                generation,
                self._generation,
            )
            return

        if result.ok:
            tracks = result.tracks if limit is None else result.tracks[:limit]
            self.session.results = tracks
        else:
            logger.warning("Error fetching %s: %s", what, result.reason)
            self.session.results = ()

    async def fetch_popular(self) -> None:
        """Replace results with the top chart tracks. Never raises."""
        generation = self._next_generation()
        result = await self.catalog.chart()
        self._apply(result, generation, "popular songs", limit=self.popular_limit)

    async def fetch_by_search(self, query: str | None = None) -> None:
        """
        Replace results with the full search response for ``query``.

        Args:
            query: Typed text. When given it becomes the session query;
                when omitted the current session query is searched.

        Blank queries are a no-op. Never raises.
        """
        if query is not None:
            self.session.query = query

        text = self.session.query
        if not text.strip():
            return

        generation = self._next_generation()
        self._search_generation = generation
        self.session.is_loading = True
        try:
            result = await self.catalog.search(text)
            self._apply(result, generation, f"search results for {text!r}")
        finally:
            # A newer search keeps the loading flag when stale responses are discarded
            if not self.discard_stale_responses or generation == self._search_generation:
                self.session.is_loading = False

    def set_query(self, text: str) -> None:
        """Record typed text without searching."""
        self.session.query = text

    def clear_query(self) -> None:
        """Reset the query text. Results are left as they are."""
        self.session.query = ""

    # -------------------------------------------------------------------------
    # Polling
    # -------------------------------------------------------------------------

    async def _poll(self, handle: PollingHandle) -> None:
        interval_s = handle.interval_ms / 1000.0
        while True:
            await asyncio.sleep(interval_s)
            # Ticks do not wait for the previous fetch to finish
            handle._spawn(self.fetch_popular())

    def start_polling(self, interval_ms: int = DEFAULT_POLL_INTERVAL_MS) -> PollingHandle:
        """
        Fetch popular tracks now and then every ``interval_ms``.

        Must be called with a running event loop.

        Returns:
            A handle to pass to stop_polling().
        """
        if interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {interval_ms}")

        handle = PollingHandle(interval_ms)
        handle._first_task = asyncio.create_task(self.fetch_popular())
        handle._timer_task = asyncio.create_task(self._poll(handle))
        self._handles.add(handle)
        logger.info("Polling popular tracks every %d ms", interval_ms)
        return handle

    def stop_polling(self, handle: PollingHandle | None) -> None:
        """Cancel a polling timer. Safe to call repeatedly or with a stale handle."""
        if handle is None:
            return
        self._handles.discard(handle)
        if handle.cancel():
            logger.info("Stopped polling popular tracks")

    @contextlib.asynccontextmanager
    async def polling(self, interval_ms: int = DEFAULT_POLL_INTERVAL_MS) -> AsyncIterator[PollingHandle]:
        """Poll popular tracks for the duration of the ``async with`` block."""
        handle = self.start_polling(interval_ms)
        try:
            yield handle
        finally:
            self.stop_polling(handle)
            await handle.wait_closed()

    @property
    def is_polling(self) -> bool:
        return bool(self._handles)

    async def shutdown(self) -> None:
        """Stop every active timer and wait for its tasks to finish."""
        handles = list(self._handles)
        for handle in handles:
            self.stop_polling(handle)
        for handle in handles:
            await handle.wait_closed()
