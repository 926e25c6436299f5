"""Folder schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

FOLDER_COLORS = ("blue", "green", "purple", "orange", "red", "yellow")
FOLDER_ICONS = ("FileText", "Receipt", "Image", "BarChart", "Award", "Folder")


class FolderRecord(BaseModel):
    """Folder metadata with derived file count and size."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str = ""
    color: str = "blue"
    icon: str = "FileText"
    file_count: int = 0
    total_size_bytes: int = 0
    created_at: datetime | None = None

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "FolderRecord":
        return cls(
            id=str(payload["folder_id"]),
            name=payload.get("folder_name") or "",
            description=payload.get("description") or "",
            color=payload.get("color") or "blue",
            icon=payload.get("icon") or "FileText",
            file_count=int(payload.get("file_count") or 0),
            total_size_bytes=int(payload.get("total_size") or 0),
            created_at=payload.get("created_at"),
        )


class FolderCreate(BaseModel):
    """Create a folder."""
    name: str
    description: str = ""
    color: str = "blue"
    icon: str = "FileText"

    def to_api(self) -> dict[str, Any]:
        return {
            "folder_name": self.name,
            "description": self.description,
            "color": self.color,
            "icon": self.icon,
        }
