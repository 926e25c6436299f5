"""Query coordinator — cached folder loads, fetch dedup, debounced reloads."""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Callable

from docvault.config import settings
from docvault.exceptions import DocumentError, translate_errors
from docvault.schemas.files import FileRecord
from docvault.services.file_cache import ALL_SCOPE, FileCache

if TYPE_CHECKING:
    from docvault.services.folder_registry import FolderRegistry
    from docvault.services.gateway import RecordsGateway

logger = logging.getLogger(__name__)

ALL_FILTER = "all"

ReloadListener = Callable[[str, list[FileRecord]], None]


class ScopeState(str, Enum):
    EMPTY = "empty"
    FETCHING = "fetching"
    FRESH = "fresh"
    STALE = "stale"


class QueryCoordinator:
    """Answers "which files does scope S have" with as little I/O as possible.

    - at most one gateway fetch in flight per folder; concurrent callers
      share its result
    - failed fetches leave the previous cache entry in place
    - the ALL view is merged from per-folder entries on every call
    - filter changes are debounced through a single pending timer handle
    """

    def __init__(
        self,
        cache: FileCache,
        gateway: RecordsGateway,
        registry: FolderRegistry,
        debounce_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._cache = cache
        self._gateway = gateway
        self._registry = registry
        self._debounce = (
            debounce_seconds if debounce_seconds is not None else settings.filter_debounce_seconds
        )
        self._clock = clock
        # folder id -> (cache generation at start, shared fetch)
        self._inflight: dict[str, tuple[int, asyncio.Future[tuple[FileRecord, ...]]]] = {}
        self._active_filter = ALL_FILTER
        self._pending_reload: asyncio.TimerHandle | None = None
        self._running_reloads: set[asyncio.Task] = set()
        self._reload_listeners: list[ReloadListener] = []
        self.last_reload_error: DocumentError | None = None
        self.last_load_errors: dict[str, DocumentError] = {}

    @property
    def active_filter(self) -> str:
        return self._active_filter

    @property
    def has_pending_reload(self) -> bool:
        return self._pending_reload is not None

    def scope_state(self, scope_key: str) -> ScopeState:
        if scope_key in self._inflight:
            return ScopeState.FETCHING
        entry = self._cache.get(scope_key)
        if entry is None:
            return ScopeState.EMPTY
        if self._cache.is_fresh(entry, self._clock()):
            return ScopeState.FRESH
        return ScopeState.STALE

    # --- loading ---

    async def load_folder(self, folder_id: str, force_refresh: bool = False) -> list[FileRecord]:
        """Files of one folder, from a fresh cache entry or the remote API."""
        if not force_refresh:
            entry = self._cache.get(folder_id)
            if entry is not None and self._cache.is_fresh(entry, self._clock()):
                return list(entry.files)

        generation = self._cache.generation(folder_id)
        inflight = self._inflight.get(folder_id)
        if inflight is None or inflight[0] != generation:
            # a fetch started before the last invalidation is not joined
            fetch = asyncio.ensure_future(self._fetch_folder(folder_id, generation))
            self._inflight[folder_id] = (generation, fetch)
            fetch.add_done_callback(lambda f, key=folder_id: self._clear_inflight(key, f))
        else:
            fetch = inflight[1]
            logger.debug("Joining in-flight fetch for folder %s", folder_id)

        # a cancelled caller must not cancel the fetch other callers share
        return list(await asyncio.shield(fetch))

    async def load_all(self, force_refresh: bool = False) -> list[FileRecord]:
        """Merged files of every known folder, newest first.

        Folders that fail to load fall back to their stale entry when one
        exists; the errors are kept in ``last_load_errors``.
        """
        if not self._registry.loaded:
            await self._registry.refresh()

        folder_ids = self._registry.folder_ids()
        results = await asyncio.gather(
            *(self.load_folder(fid, force_refresh=force_refresh) for fid in folder_ids),
            return_exceptions=True,
        )

        errors: dict[str, DocumentError] = {}
        merged: dict[str, FileRecord] = {}
        for folder_id, result in zip(folder_ids, results):
            if isinstance(result, BaseException):
                if not isinstance(result, DocumentError):
                    raise result
                errors[folder_id] = result
                stale = self._cache.get(folder_id)
                if stale is None:
                    continue
                result = list(stale.files)
            for record in result:
                merged.setdefault(record.id, record)

        self.last_load_errors = errors
        if errors:
            logger.warning("Merged view incomplete — %d folder(s) failed to load", len(errors))

        return sorted(merged.values(), key=lambda r: r.uploaded_at, reverse=True)

    async def load(self, filter_key: str, force_refresh: bool = False) -> list[FileRecord]:
        """Load the scope selected by a filter key ("all" or a folder id)."""
        if not filter_key or filter_key in (ALL_FILTER, ALL_SCOPE):
            return await self.load_all(force_refresh=force_refresh)
        return await self.load_folder(filter_key, force_refresh=force_refresh)

    async def _fetch_folder(self, folder_id: str, generation: int) -> tuple[FileRecord, ...]:
        with translate_errors(f"Load folder {folder_id}"):
            files = await self._gateway.list_files_in_folder(folder_id)

        files = self._registry.annotate(files)
        if self._cache.generation(folder_id) != generation:
            logger.debug("Folder %s was invalidated during fetch, result not cached", folder_id)
            return tuple(files)

        entry = self._cache.put(folder_id, files, self._clock())
        logger.debug("Fetched %d files for folder %s", len(entry.files), folder_id)
        return entry.files

    def _clear_inflight(self, folder_id: str, fetch: asyncio.Future) -> None:
        inflight = self._inflight.get(folder_id)
        if inflight is not None and inflight[1] is fetch:
            del self._inflight[folder_id]
        if not fetch.cancelled():
            # retrieved here so an unawaited failure is not reported twice
            fetch.exception()

    # --- debounced filter changes ---

    def add_reload_listener(self, listener: ReloadListener) -> None:
        """Call ``listener(filter_key, files)`` after each debounced reload."""
        self._reload_listeners.append(listener)

    def set_filter_and_reload(self, filter_key: str) -> None:
        """Set the active filter and reload once input has settled."""
        self._active_filter = filter_key or ALL_FILTER
        if self._pending_reload is not None:
            self._pending_reload.cancel()

        loop = asyncio.get_running_loop()
        self._pending_reload = loop.call_later(self._debounce, self._start_reload)
        logger.debug("Reload scheduled for filter %r", self._active_filter)

    def _start_reload(self) -> None:
        self._pending_reload = None
        task = asyncio.ensure_future(self._reload(self._active_filter))
        self._running_reloads.add(task)
        task.add_done_callback(self._running_reloads.discard)

    async def _reload(self, filter_key: str) -> None:
        try:
            files = await self.load(filter_key)
        except DocumentError as e:
            self.last_reload_error = e
            logger.error("Reload for filter %r failed: %s", filter_key, e.message)
            return

        self.last_reload_error = None
        for listener in self._reload_listeners:
            listener(filter_key, files)

    async def wait_for_reloads(self) -> None:
        """Wait until every reload that has already started has finished."""
        if self._running_reloads:
            await asyncio.gather(*self._running_reloads, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel a pending reload and let running ones complete."""
        if self._pending_reload is not None:
            self._pending_reload.cancel()
            self._pending_reload = None
        await self.wait_for_reloads()
