"""Folder registry — folder metadata and file counts derived from the cache."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable, Iterable

from docvault.exceptions import ValidationError, translate_errors
from docvault.schemas.files import FileRecord
from docvault.schemas.folders import FOLDER_COLORS, FOLDER_ICONS, FolderCreate, FolderRecord
from docvault.services.file_cache import CacheEntry, FileCache

if TYPE_CHECKING:
    from docvault.services.gateway import RecordsGateway

logger = logging.getLogger(__name__)


class FolderRegistry:
    """Keeps the known folders and their derived counts.

    ``file_count`` and ``total_size_bytes`` are recomputed from the cache
    every time a folder's entry is replaced. Invalidation leaves the last
    known values in place so an unfetched folder never shows zero.
    """

    def __init__(
        self,
        gateway: RecordsGateway,
        cache: FileCache,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._gateway = gateway
        self._cache = cache
        self._clock = clock
        self._folders: dict[str, FolderRecord] = {}
        self._loaded = False
        cache.add_listener(self._on_cache_change)

    @property
    def loaded(self) -> bool:
        return self._loaded

    async def refresh(self) -> list[FolderRecord]:
        """Reload the folder list from the remote API."""
        with translate_errors("Load folders"):
            folders = await self._gateway.list_folders()

        now = self._clock()
        refreshed: dict[str, FolderRecord] = {}
        for folder in folders:
            entry = self._cache.get(folder.id)
            if entry is not None and self._cache.is_fresh(entry, now):
                # a freshly fetched listing beats the server's stored count
                folder = _with_counts(folder, entry.files)
            refreshed[folder.id] = folder

        # cached listings of folders that no longer exist are dropped
        for folder_id in set(self._folders) - set(refreshed):
            self._cache.invalidate(folder_id)

        self._folders = refreshed
        self._loaded = True
        logger.info("Loaded %d folders", len(refreshed))
        return self.list()

    def get(self, folder_id: str) -> FolderRecord | None:
        return self._folders.get(folder_id)

    def list(self) -> list[FolderRecord]:
        return list(self._folders.values())

    def folder_ids(self) -> list[str]:
        return list(self._folders)

    async def create_folder(
        self,
        name: str,
        description: str = "",
        color: str = "blue",
        icon: str = "FileText",
    ) -> FolderRecord:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Folder name is required")
        if color not in FOLDER_COLORS:
            raise ValidationError(f"Unsupported folder color: {color}")
        if icon not in FOLDER_ICONS:
            raise ValidationError(f"Unsupported folder icon: {icon}")

        request = FolderCreate(name=name, description=description.strip(), color=color, icon=icon)
        with translate_errors("Create folder"):
            folder = await self._gateway.create_folder(request)

        # new folders are listed first
        self._folders = {folder.id: folder, **self._folders}
        logger.info("Folder created: %s (%s)", folder.name, folder.id)
        return folder

    async def delete_folder(self, folder_id: str) -> FolderRecord | None:
        if not folder_id:
            raise ValidationError("Folder id is required")

        with translate_errors("Delete folder"):
            await self._gateway.delete_folder(folder_id)

        removed = self._folders.pop(folder_id, None)
        self._cache.invalidate(folder_id)
        logger.info("Folder deleted: %s", folder_id)
        return removed

    def annotate(self, records: Iterable[FileRecord]) -> list[FileRecord]:
        """Fill in folder name and colour from the registry."""
        annotated = []
        for record in records:
            folder = self._folders.get(record.folder_id)
            if folder and (record.folder_name != folder.name or record.folder_color != folder.color):
                record = record.model_copy(
                    update={"folder_name": folder.name, "folder_color": folder.color}
                )
            annotated.append(record)
        return annotated

    def _on_cache_change(self, scope_key: str, entry: CacheEntry | None) -> None:
        if entry is None:
            return  # invalidated: keep the last known counts
        folder = self._folders.get(scope_key)
        if folder is None:
            return
        self._folders[scope_key] = _with_counts(folder, entry.files)


def _with_counts(folder: FolderRecord, files: Iterable[FileRecord]) -> FolderRecord:
    files = tuple(files)
    return folder.model_copy(
        update={
            "file_count": len(files),
            "total_size_bytes": sum(f.size_bytes for f in files),
        }
    )
