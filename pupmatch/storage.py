"""Local record store backed by a disk cache.

Each collection lives under one named entry holding its JSON text, and is
read and written wholesale on every mutation.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from diskcache import Cache

from .config import STORAGE_KEYS, SYNC_KEY_SUFFIX, cache_dir

logger = logging.getLogger(__name__)


class LocalStore:
    """JSON collections persisted in a ``diskcache.Cache``.

    Any mapping exposing ``get``, ``__setitem__`` and ``pop`` can stand in
    for the cache, which keeps tests free of disk state when they want.
    """

    def __init__(self, cache=None):
        self.cache = cache if cache is not None else Cache(cache_dir())

    def read(self, key: str, default: Any = None) -> Any:
        """Return the decoded entry, or ``default`` when absent or corrupt.

        Args:
            key: Entry name.
            default: Value returned when the entry cannot be used.

        Returns:
            The decoded JSON value or ``default``.
        """
        try:
            raw = self.cache.get(key)
        except Exception as exc:
            logger.error(f"Failed to read {key} from local store: {exc}")
            return default
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as exc:
            logger.error(f"Discarding corrupt {key} entry: {exc}")
            return default

    def write(self, key: str, value: Any) -> None:
        self.cache[key] = json.dumps(value)

    def remove(self, key: str) -> None:
        self.cache.pop(key, None)

    def close(self) -> None:
        close = getattr(self.cache, "close", None)
        if callable(close):
            close()

    def clear(self) -> None:
        """Drop every PupMatch collection from the store."""
        for key in STORAGE_KEYS.values():
            self.remove(key)
            self.remove(key + SYNC_KEY_SUFFIX)
