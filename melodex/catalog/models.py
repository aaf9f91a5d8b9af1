"""
Catalog data types.

Tracks are owned by the catalog service; we keep only the fields the
search view shows and restore the catalog's nested shape in ``to_dict``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, NewType

from melodex.core import RemoteFetchError

TrackId = NewType("TrackId", int)


@dataclass(frozen=True, slots=True)
class Track:
    id: TrackId
    title: str
    artist_name: str
    album_title: str
    album_cover: str
    duration: int  # seconds
    link: str

    @classmethod
    def from_payload(cls, data: Any) -> Track:
        """
        Parse one catalog track object.

        Raises:
            RemoteFetchError: If the object lacks a required field or a
                numeric field is not a finite number.
        """
        if not isinstance(data, Mapping):
            raise RemoteFetchError("track entry is not an object")

        artist = data.get("artist")
        album = data.get("album")
        if not isinstance(artist, Mapping) or not isinstance(album, Mapping):
            raise RemoteFetchError(f"track {data.get('id')!r} has no artist/album object")

        try:
            return cls(
                id=TrackId(int(data["id"])),
                title=str(data["title"]),
                artist_name=str(artist["name"]),
                album_title=str(album["title"]),
                album_cover=str(album.get("cover") or ""),
                duration=int(data.get("duration") or 0),
                link=str(data.get("link") or ""),
            )
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            raise RemoteFetchError(f"malformed track {data.get('id')!r}: {e!r}") from e

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "artist": {"name": self.artist_name},
            "album": {"title": self.album_title, "cover": self.album_cover},
            "duration": self.duration,
            "link": self.link,
        }


@dataclass(frozen=True, slots=True)
class FetchSuccess:
    """A catalog call that produced tracks (possibly none)."""

    tracks: tuple[Track, ...]

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class FetchFailure:
    """A catalog call that failed; ``error.reason`` says why."""

    error: RemoteFetchError

    @property
    def ok(self) -> bool:
        return False

    @property
    def reason(self) -> str:
        return self.error.reason


FetchResult = FetchSuccess | FetchFailure
