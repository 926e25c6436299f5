"""Upload schemas — pending files and per-file outcomes."""

from dataclasses import dataclass

from pydantic import BaseModel

from docvault.schemas.files import FileRecord

# placeholder for failures the server reports without a file name
UNKNOWN_FILE = "unknown"


@dataclass(frozen=True)
class PendingUpload:
    """A file selected for upload."""
    name: str
    content: bytes
    mime_type: str = "application/octet-stream"

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class UploadFailure(BaseModel):
    """One file that could not be uploaded."""
    file: str
    reason: str
    error_type: str = "unknown"


class BatchUploadResult(BaseModel):
    """Normalized response of the batch upload endpoint."""
    successful: list[FileRecord] = []
    failed: list[UploadFailure] = []


class UploadOutcome(BaseModel):
    """Per-file account of an upload call."""
    succeeded: list[FileRecord] = []
    failed: list[UploadFailure] = []

    @property
    def succeeded_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_count(self) -> int:
        return len(self.failed)

    @property
    def total(self) -> int:
        return self.succeeded_count + self.failed_count

    @property
    def summary(self) -> str:
        if not self.failed:
            return f"Successfully uploaded {self.succeeded_count} file(s)"
        if not self.succeeded:
            return f"Failed to upload {self.failed_count} file(s)"
        return f"{self.succeeded_count} of {self.total} files uploaded"
