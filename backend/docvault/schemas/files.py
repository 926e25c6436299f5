"""File schemas — canonical file records and metadata patches."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from docvault.utils.sizes import format_size, parse_size


class FileRecord(BaseModel):
    """A file stored in a folder on the remote record API."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    mime_type: str = "application/octet-stream"
    size_bytes: int = 0
    folder_id: str
    folder_name: str = ""
    folder_color: str = ""
    uploaded_at: datetime
    url: str = ""
    description: str = ""

    @field_validator("uploaded_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    @property
    def kind(self) -> str:
        return "image" if self.mime_type.startswith("image/") else "document"

    @property
    def size_display(self) -> str:
        return format_size(self.size_bytes)

    @classmethod
    def from_api(cls, payload: dict[str, Any], size_hint: Any = None) -> "FileRecord":
        """Build a record from the remote API's file payload.

        The API reports ``file_size`` either in bytes or as a formatted
        string; ``size_hint`` covers responses that only carry the size in
        upload metadata.
        """
        size = payload.get("file_size")
        if size in (None, "", 0) and size_hint is not None:
            size = size_hint
        return cls(
            id=str(payload["file_id"]),
            name=payload.get("file_name") or "",
            mime_type=payload.get("file_type") or "application/octet-stream",
            size_bytes=parse_size(size),
            folder_id=str(payload.get("folder_id") or ""),
            uploaded_at=payload.get("upload_date") or datetime.now(timezone.utc),
            url=payload.get("file_url") or "",
            description=payload.get("description") or "",
        )


class FileMetadataPatch(BaseModel):
    """Editable file metadata."""
    name: str | None = None
    description: str | None = None

    def to_api(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.name is not None:
            body["file_name"] = self.name
        if self.description is not None:
            body["description"] = self.description
        return body

    def to_update(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)

    @property
    def is_empty(self) -> bool:
        return self.name is None and self.description is None
