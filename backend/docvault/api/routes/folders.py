"""Folder routes — list, create, delete."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from docvault.schemas.folders import FolderCreate, FolderRecord
from docvault.services import get_folder_registry, get_upload_orchestrator

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=list[FolderRecord])
async def list_folders(refresh: bool = False):
    """Known folders with derived file counts."""
    registry = get_folder_registry()
    if refresh or not registry.loaded:
        return await registry.refresh()
    return registry.list()


@router.post("", response_model=FolderRecord, status_code=201)
async def create_folder(body: FolderCreate):
    registry = get_folder_registry()
    return await registry.create_folder(
        body.name, description=body.description, color=body.color, icon=body.icon
    )


@router.delete("/{folder_id}")
async def delete_folder(folder_id: str):
    """Delete a folder and forget its documents."""
    await get_folder_registry().delete_folder(folder_id)
    dropped = get_upload_orchestrator().drop_folder(folder_id)
    return {"deleted": True, "folder_id": folder_id, "documents_removed": dropped}
