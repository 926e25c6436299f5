"""Business logic services — singleton registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docvault.config import settings

if TYPE_CHECKING:
    from docvault.services.documents_view import DocumentsView
    from docvault.services.file_cache import FileCache
    from docvault.services.folder_registry import FolderRegistry
    from docvault.services.gateway import RecordsGateway
    from docvault.services.query_coordinator import QueryCoordinator
    from docvault.services.upload_orchestrator import UploadOrchestrator

logger = logging.getLogger(__name__)

_gateway: RecordsGateway | None = None
_file_cache: FileCache | None = None
_folder_registry: FolderRegistry | None = None
_query_coordinator: QueryCoordinator | None = None
_upload_orchestrator: UploadOrchestrator | None = None
_documents_view: DocumentsView | None = None


async def init_services(gateway: RecordsGateway | None = None) -> None:
    """Create and wire up all service singletons."""
    global _gateway, _file_cache, _folder_registry
    global _query_coordinator, _upload_orchestrator, _documents_view

    from docvault.exceptions import DocumentError
    from docvault.services.documents_view import DocumentsView
    from docvault.services.file_cache import FileCache
    from docvault.services.folder_registry import FolderRegistry
    from docvault.services.gateway import RecordsGateway
    from docvault.services.query_coordinator import QueryCoordinator
    from docvault.services.upload_orchestrator import UploadOrchestrator

    _gateway = gateway or RecordsGateway()
    _file_cache = FileCache(ttl_seconds=settings.cache_ttl_seconds)
    _folder_registry = FolderRegistry(_gateway, _file_cache)
    _query_coordinator = QueryCoordinator(
        _file_cache,
        _gateway,
        _folder_registry,
        debounce_seconds=settings.filter_debounce_seconds,
    )
    _upload_orchestrator = UploadOrchestrator(_gateway, _file_cache, _folder_registry)
    _documents_view = DocumentsView(_query_coordinator, _upload_orchestrator)
    logger.info(
        "Document services initialized (cache TTL %.0fs, debounce %dms)",
        settings.cache_ttl_seconds,
        settings.filter_debounce_ms,
    )

    if settings.preload_folders:
        try:
            await _folder_registry.refresh()
        except DocumentError as e:
            logger.warning("Folder preload failed — will retry on first request: %s", e.message)


async def shutdown_services() -> None:
    """Cancel pending reloads and drop cached state."""
    global _query_coordinator, _file_cache
    if _query_coordinator:
        await _query_coordinator.aclose()
        _query_coordinator = None
    if _file_cache:
        _file_cache.reset()
        _file_cache = None


def get_gateway() -> RecordsGateway:
    if _gateway is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _gateway


def get_file_cache() -> FileCache:
    if _file_cache is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _file_cache


def get_folder_registry() -> FolderRegistry:
    if _folder_registry is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _folder_registry


def get_query_coordinator() -> QueryCoordinator:
    if _query_coordinator is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _query_coordinator


def get_upload_orchestrator() -> UploadOrchestrator:
    if _upload_orchestrator is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _upload_orchestrator


def get_documents_view() -> DocumentsView:
    if _documents_view is None:
        raise RuntimeError("Services not initialized — call init_services() first")
    return _documents_view
