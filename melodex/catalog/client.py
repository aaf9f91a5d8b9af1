"""
Catalog service client (Deezer public API).

Two read-only endpoints are used:
- GET /chart             -> popularity chart, tracks at ``tracks.data``
- GET /search?q=<text>   -> text search, tracks at ``data``

Both calls return a FetchResult instead of raising, so callers apply their
own failure policy. Transport errors, non-2xx statuses, undecodable bodies,
missing track lists and Deezer's in-band ``{"error": {...}}`` replies all
come back as FetchFailure.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from melodex.catalog.models import FetchFailure, FetchResult, FetchSuccess, Track
from melodex.core import RemoteFetchError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.deezer.com"
DEFAULT_TIMEOUT_SECONDS = 5.0


def _parse_tracks(items: Any, where: str) -> tuple[Track, ...]:
    if not isinstance(items, list):
        raise RemoteFetchError(f"{where} is not a list")
    return tuple(Track.from_payload(item) for item in items)


class CatalogService:
    """
    Async HTTP client for the music catalog.

    Usage:
        catalog = CatalogService()
        result = await catalog.search("drake forever")
        if result.ok:
            ...
        await catalog.aclose()
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout_seconds: float | None = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            base_url: Catalog API root.
            timeout_seconds: Transport timeout per request (None disables it).
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_seconds,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def _get_json(self, path: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        try:
            response = await self._client.get(path, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RemoteFetchError(f"{path} returned HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise RemoteFetchError(f"{path} request failed: {e!r}") from e

        try:
            payload = response.json()
        except ValueError as e:
            raise RemoteFetchError(f"{path} returned invalid JSON") from e

        if not isinstance(payload, dict):
            raise RemoteFetchError(f"{path} returned a non-object body")

        # Deezer reports quota and parameter errors in-band with a 200 status
        error = payload.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else error
            raise RemoteFetchError(f"{path} returned error: {message}")

        return payload

    async def chart(self) -> FetchResult:
        """Fetch the popularity chart."""
        try:
            payload = await self._get_json("/chart")
            tracks_section = payload.get("tracks")
            if not isinstance(tracks_section, dict):
                raise RemoteFetchError("/chart has no tracks section")
            tracks = _parse_tracks(tracks_section.get("data"), "tracks.data")
        except RemoteFetchError as e:
            return FetchFailure(error=e)

        logger.debug("Chart returned %d tracks", len(tracks))
        return FetchSuccess(tracks=tracks)

    async def search(self, text: str) -> FetchResult:
        """Search tracks matching ``text``. Only the first page is returned."""
        try:
            payload = await self._get_json("/search", params={"q": text})
            tracks = _parse_tracks(payload.get("data"), "data")
        except RemoteFetchError as e:
            return FetchFailure(error=e)

        logger.debug("Search %r returned %d tracks", text, len(tracks))
        return FetchSuccess(tracks=tracks)

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()
