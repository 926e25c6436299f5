"""Document screen view model — filter, search, grouping and statistics."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING

from docvault.schemas.documents import DocumentGroup, DocumentStats
from docvault.schemas.files import FileRecord
from docvault.services.query_coordinator import ALL_FILTER
from docvault.utils.sizes import format_size

if TYPE_CHECKING:
    from docvault.services.query_coordinator import QueryCoordinator
    from docvault.services.upload_orchestrator import UploadOrchestrator

logger = logging.getLogger(__name__)

OLDER_GROUP = "A month ago"
GROUP_AGE_DAYS = 30
RECENT_UPLOAD_DAYS = 7


class ViewMode(str, Enum):
    GRID = "grid"
    LIST = "list"


class DocumentsView:
    """State of the document screen, fed by debounced reloads."""

    def __init__(self, coordinator: QueryCoordinator, orchestrator: UploadOrchestrator):
        self._coordinator = coordinator
        self._orchestrator = orchestrator
        self.search_term = ""
        self.view_mode = ViewMode.GRID
        coordinator.add_reload_listener(self._on_reload)

    @property
    def active_filter(self) -> str:
        return self._coordinator.active_filter

    def apply_filter(self, filter_key: str) -> None:
        self._coordinator.set_filter_and_reload(filter_key or ALL_FILTER)

    def search(self, term: str) -> None:
        self.search_term = (term or "").strip()

    def set_view_mode(self, mode: str | ViewMode) -> None:
        self.view_mode = ViewMode(mode)

    def visible_documents(self) -> list[FileRecord]:
        """Documents matching the active filter and search term, newest first."""
        folder_filter = self.active_filter
        term = self.search_term.lower()

        docs = []
        for doc in self._orchestrator.documents:
            if folder_filter != ALL_FILTER and doc.folder_id != folder_filter:
                continue
            if term and term not in doc.name.lower() and term not in doc.description.lower():
                continue
            docs.append(doc)
        return sorted(docs, key=lambda d: d.uploaded_at, reverse=True)

    def group_by_date(self, now: datetime | None = None) -> list[DocumentGroup]:
        """Group visible documents by month; anything older than 30 days goes last."""
        now = now or datetime.now(timezone.utc)
        groups: dict[str, list[FileRecord]] = {}
        for doc in self.visible_documents():
            groups.setdefault(_date_group(doc.uploaded_at, now), []).append(doc)

        ordered = sorted(groups.items(), key=lambda item: item[0] == OLDER_GROUP)
        return [DocumentGroup(label=label, documents=docs) for label, docs in ordered]

    def stats(self, now: datetime | None = None) -> DocumentStats:
        now = now or datetime.now(timezone.utc)
        docs = self._orchestrator.documents
        total_size = sum(d.size_bytes for d in docs)
        recent_cutoff = now - timedelta(days=RECENT_UPLOAD_DAYS)
        return DocumentStats(
            total_files=len(docs),
            total_size_bytes=total_size,
            total_size=format_size(total_size),
            recent_uploads=sum(1 for d in docs if d.uploaded_at >= recent_cutoff),
        )

    def _on_reload(self, filter_key: str, files: list[FileRecord]) -> None:
        logger.debug("Reload for %r delivered %d documents", filter_key, len(files))
        self._orchestrator.replace_documents(files)


def _date_group(uploaded_at: datetime, now: datetime) -> str:
    if abs(now - uploaded_at) > timedelta(days=GROUP_AGE_DAYS):
        return OLDER_GROUP
    return uploaded_at.strftime("%B %Y")
