"""Document view schemas — API responses for the document screen."""

from pydantic import BaseModel

from docvault.schemas.files import FileRecord
from docvault.schemas.uploads import UploadFailure


class DocumentStats(BaseModel):
    """Upload statistics for the document screen."""
    total_files: int
    total_size_bytes: int
    total_size: str
    recent_uploads: int


class DocumentGroup(BaseModel):
    """Documents grouped under a date heading."""
    label: str
    documents: list[FileRecord]


class DocumentView(BaseModel):
    """Filtered document list plus statistics."""
    active_filter: str
    search_term: str
    view_mode: str
    documents: list[FileRecord]
    groups: list[DocumentGroup]
    stats: DocumentStats


class FilterRequest(BaseModel):
    """Change the active folder filter."""
    filter: str = "all"
    search: str | None = None


class UploadResponse(BaseModel):
    """Upload outcome as returned to the UI."""
    succeeded: list[FileRecord]
    failed: list[UploadFailure]
    succeeded_count: int
    failed_count: int
    total: int
    summary: str
