"""System schemas."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
    version: str
    service: str = "docvault"
    cached_scopes: int = 0
    known_folders: int = 0
