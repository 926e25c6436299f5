"""Health check."""

from fastapi import APIRouter

from docvault import __version__
from docvault.schemas.system import HealthResponse
from docvault.services import get_file_cache, get_folder_registry

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Lightweight status check including cache occupancy."""
    try:
        cached_scopes = len(get_file_cache())
        known_folders = len(get_folder_registry().folder_ids())
    except RuntimeError:
        cached_scopes = known_folders = 0  # Services not initialized
    return HealthResponse(
        version=__version__,
        cached_scopes=cached_scopes,
        known_folders=known_folders,
    )


@router.get("/ping")
async def ping():
    """Ultra-lightweight ping."""
    return {"status": "ok"}
