"""Document routes — cached listings, debounced filtering, uploads, edits."""

from __future__ import annotations

import logging

from fastapi import APIRouter, File, Form, UploadFile

from docvault.schemas.documents import DocumentView, FilterRequest, UploadResponse
from docvault.schemas.files import FileMetadataPatch, FileRecord
from docvault.schemas.uploads import PendingUpload, UploadOutcome
from docvault.services import (
    get_documents_view,
    get_query_coordinator,
    get_upload_orchestrator,
)

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=list[FileRecord])
async def list_documents(folder_id: str | None = None, refresh: bool = False):
    """Files of one folder, or of every folder when no folder is given."""
    coordinator = get_query_coordinator()
    if folder_id:
        return await coordinator.load_folder(folder_id, force_refresh=refresh)
    return await coordinator.load_all(force_refresh=refresh)


@router.post("/filter", status_code=202)
async def set_filter(body: FilterRequest):
    """Change the active filter; the reload runs once input settles."""
    view = get_documents_view()
    if body.search is not None:
        view.search(body.search)
    view.apply_filter(body.filter)
    return {"filter": view.active_filter, "scheduled": True}


@router.get("/view", response_model=DocumentView)
async def document_view():
    """The document screen's current list, groups and statistics."""
    view = get_documents_view()
    return DocumentView(
        active_filter=view.active_filter,
        search_term=view.search_term,
        view_mode=view.view_mode.value,
        documents=view.visible_documents(),
        groups=view.group_by_date(),
        stats=view.stats(),
    )


@router.post("/upload", response_model=UploadResponse)
async def upload_documents(
    files: list[UploadFile] = File(...),
    folder_id: str = Form(""),
    description: str = Form(""),
):
    uploads = [
        PendingUpload(
            name=f.filename or "upload",
            content=await f.read(),
            mime_type=f.content_type or "application/octet-stream",
        )
        for f in files
    ]
    outcome = await get_upload_orchestrator().upload(uploads, folder_id, description)
    return _upload_response(outcome)


@router.patch("/{file_id}", response_model=FileRecord)
async def update_document(file_id: str, patch: FileMetadataPatch):
    return await get_upload_orchestrator().update_file(file_id, patch)


@router.delete("/{file_id}")
async def delete_document(file_id: str):
    await get_upload_orchestrator().delete_file(file_id)
    return {"deleted": True, "file_id": file_id}


def _upload_response(outcome: UploadOutcome) -> UploadResponse:
    return UploadResponse(
        succeeded=outcome.succeeded,
        failed=outcome.failed,
        succeeded_count=outcome.succeeded_count,
        failed_count=outcome.failed_count,
        total=outcome.total,
        summary=outcome.summary,
    )
