"""Per-folder file listing cache with a fixed time-to-live."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from docvault.config import settings
from docvault.schemas.files import FileRecord

logger = logging.getLogger(__name__)

ALL_SCOPE = "ALL"

CacheListener = Callable[[str, "CacheEntry | None"], None]


@dataclass(frozen=True)
class CacheEntry:
    scope_key: str
    files: tuple[FileRecord, ...]
    fetched_at: float

    def age(self, now: float) -> float:
        return now - self.fetched_at


class FileCache:
    """Maps folder id -> CacheEntry.

    Entries are immutable and replaced as a whole, so a reader holding an
    entry keeps a consistent view across later puts. The cache only reports
    freshness; it never refreshes anything by itself.
    """

    def __init__(self, ttl_seconds: float | None = None):
        self._ttl = ttl_seconds if ttl_seconds is not None else settings.cache_ttl_seconds
        self._entries: dict[str, CacheEntry] = {}
        self._generations: dict[str, int] = {}
        self._listeners: list[CacheListener] = []

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, scope_key: str) -> CacheEntry | None:
        return self._entries.get(scope_key)

    def put(self, scope_key: str, files: Iterable[FileRecord], now: float) -> CacheEntry:
        """Replace the entry for ``scope_key`` stamped at ``now``."""
        if scope_key == ALL_SCOPE:
            raise ValueError("The merged ALL scope is computed, not cached")

        previous = self._entries.get(scope_key)
        # fetched_at never moves backwards for a scope
        fetched_at = max(now, previous.fetched_at) if previous else now
        entry = CacheEntry(scope_key=scope_key, files=tuple(files), fetched_at=fetched_at)
        self._entries[scope_key] = entry
        logger.debug("Cached %d files for %s", len(entry.files), scope_key)
        self._notify(scope_key, entry)
        return entry

    def invalidate(self, scope_key: str) -> bool:
        """Drop the entry so the next read refetches. Returns True if one existed."""
        # fetches started before this point must not repopulate the scope
        self._generations[scope_key] = self._generations.get(scope_key, 0) + 1
        removed = self._entries.pop(scope_key, None)
        if removed is None:
            return False
        logger.debug("Invalidated cache entry %s", scope_key)
        self._notify(scope_key, None)
        return True

    def generation(self, scope_key: str) -> int:
        """Counter bumped by every invalidation of ``scope_key``."""
        return self._generations.get(scope_key, 0)

    def is_fresh(self, entry: CacheEntry, now: float, ttl: float | None = None) -> bool:
        return now - entry.fetched_at < (self._ttl if ttl is None else ttl)

    def locate(self, file_id: str) -> str | None:
        """Return the folder whose cached listing contains ``file_id``."""
        for scope_key, entry in self._entries.items():
            if any(f.id == file_id for f in entry.files):
                return scope_key
        return None

    def scopes(self) -> list[str]:
        return list(self._entries)

    def add_listener(self, listener: CacheListener) -> None:
        """Call ``listener(scope_key, entry_or_None)`` after every change."""
        self._listeners.append(listener)

    def reset(self) -> None:
        """Drop every entry (teardown)."""
        for scope_key in list(self._entries):
            self.invalidate(scope_key)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, scope_key: object) -> bool:
        return scope_key in self._entries

    def _notify(self, scope_key: str, entry: CacheEntry | None) -> None:
        for listener in self._listeners:
            listener(scope_key, entry)
