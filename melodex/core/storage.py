"""
Durable local storage for Melodex.

A tiny key/value store with the semantics of a browser's ``localStorage``:
keys and values are strings, and the whole store lives in one JSON file.
The profile gate keeps its single record here.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

# Default location, next to the working directory like other runtime caches
DEFAULT_STORAGE_PATH = Path("cache/local_storage.json")


class LocalStorage:
    """
    String key/value store persisted to a JSON file.

    The file is read lazily on first access and rewritten on every
    ``set_item``. A missing or corrupt file reads as an
    empty store; corruption is logged, never raised.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else DEFAULT_STORAGE_PATH
        self._items: dict[str, str] | None = None

    def _load(self) -> dict[str, str]:
        if self._items is not None:
            return self._items

        items: dict[str, str] = {}
        if self.path.exists():
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as e:
                logger.warning("Could not read local storage %s: %s", self.path, e)
                data = {}

            if isinstance(data, dict):
                items = {str(k): v for k, v in data.items() if isinstance(v, str)}
            else:
                logger.warning("Ignoring local storage %s: not a JSON object", self.path)

        self._items = items
        return items

    def _save(self, items: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)

        # Atomic replace via a sibling temp file
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            tmp_path.write_text(json.dumps(items, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise

    def get_item(self, key: str) -> str | None:
        """Return the stored string for ``key``, or None if absent."""
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, overwriting any previous value."""
        items = dict(self._load())
        items[key] = value
        self._save(items)
        self._items = items
        logger.debug("Stored %s in %s", key, self.path)

    def __contains__(self, key: str) -> bool:
        return key in self._load()

    def __len__(self) -> int:
        return len(self._load())
