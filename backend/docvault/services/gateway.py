"""Remote record API client — folders, files and uploads."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from docvault.config import settings
from docvault.exceptions import error_for_status
from docvault.schemas.files import FileMetadataPatch, FileRecord
from docvault.schemas.folders import FolderCreate, FolderRecord
from docvault.schemas.uploads import UNKNOWN_FILE, BatchUploadResult, PendingUpload, UploadFailure

logger = logging.getLogger(__name__)


class RecordsGateway:
    """Async client for the record-management API.

    Every response is unwrapped from the ``{success, data}`` envelope and
    normalized into canonical records. ``success: false`` and HTTP error
    statuses raise the matching ``DocumentError``; transport failures
    propagate as ``httpx`` exceptions and are classified by the caller.
    """

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = (base_url or settings.records_api_url).rstrip("/")
        self._token = token if token is not None else settings.records_api_token
        self._timeout = timeout or settings.request_timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers=headers,
            transport=self._transport,
        )

    async def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        async with self._client() as client:
            resp = await client.request(method, path, **kwargs)
        logger.debug("%s %s -> %d", method, path, resp.status_code)
        return resp

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Send a request and return the envelope's ``data``."""
        return _unwrap(await self._send(method, path, **kwargs))

    # --- folders ---

    async def list_folders(self) -> list[FolderRecord]:
        data = await self._request("GET", "/api/folders")
        return [FolderRecord.from_api(item) for item in data or []]

    async def create_folder(self, folder: FolderCreate) -> FolderRecord:
        data = await self._request("POST", "/api/folders", json=folder.to_api())
        return FolderRecord.from_api(data)

    async def delete_folder(self, folder_id: str) -> None:
        await self._request("DELETE", f"/api/folders/{folder_id}")

    # --- files ---

    async def list_files_in_folder(self, folder_id: str) -> list[FileRecord]:
        data = await self._request("GET", "/api/files", params={"folder_id": folder_id})
        return [FileRecord.from_api(item) for item in data or []]

    async def upload_one(
        self, upload: PendingUpload, folder_id: str, description: str = ""
    ) -> FileRecord:
        form = {"folder_id": folder_id}
        if description:
            form["description"] = description
        data = await self._request(
            "POST",
            "/api/files/upload",
            data=form,
            files={"file": (upload.name, upload.content, upload.mime_type)},
        )
        metadata = data.get("metadata") or {}
        record = FileRecord.from_api(data["file"], size_hint=metadata.get("size"))
        if record.mime_type == "application/octet-stream" and metadata.get("mime_type"):
            record = record.model_copy(update={"mime_type": metadata["mime_type"]})
        return record

    async def upload_many(
        self, uploads: list[PendingUpload], folder_id: str, description: str = ""
    ) -> BatchUploadResult:
        form = {"folder_id": folder_id}
        if description:
            form["description"] = description
        resp = await self._send(
            "POST",
            "/api/files/upload-multiple",
            data=form,
            files=[("files", (u.name, u.content, u.mime_type)) for u in uploads],
        )
        # when every file fails the API answers 400 but still reports each file
        data = _batch_data(resp)
        if data is None:
            data = _unwrap(resp)
        successful = [FileRecord.from_api(item["file"]) for item in data.get("successful") or []]
        failed = [_failure_from_api(item) for item in data.get("failed") or []]
        return BatchUploadResult(successful=successful, failed=failed)

    async def update_file_metadata(self, file_id: str, patch: FileMetadataPatch) -> FileRecord:
        data = await self._request("PATCH", f"/api/files/{file_id}", json=patch.to_api())
        return FileRecord.from_api(data)

    async def delete_file(self, file_id: str) -> None:
        await self._request("DELETE", f"/api/files/{file_id}")


def _unwrap(resp: httpx.Response) -> Any:
    """Return ``data`` from a ``{success, data}`` envelope or raise."""
    try:
        body = resp.json()
    except ValueError:
        body = None

    if not isinstance(body, dict):
        if resp.status_code >= 400:
            raise error_for_status(resp.status_code, resp.text.strip()[:200] or None)
        if resp.status_code == 204:
            return None
        raise error_for_status(None, "The remote API returned an unexpected response.")

    message = body.get("message") or body.get("error")
    if resp.status_code >= 400:
        raise error_for_status(resp.status_code, message, details=body)
    if not body.get("success", False):
        raise error_for_status(body.get("status"), message, details=body)
    return body.get("data")


def _batch_data(resp: httpx.Response) -> dict[str, Any] | None:
    """Per-file batch results carried by an error envelope, if any."""
    if resp.status_code < 400:
        return None
    try:
        body = resp.json()
    except ValueError:
        return None
    data = body.get("data") if isinstance(body, dict) else None
    if isinstance(data, dict) and ("successful" in data or "failed" in data):
        return data
    return None


def _failure_from_api(item: dict[str, Any]) -> UploadFailure:
    """Normalize one entry of the batch endpoint's ``failed`` list."""
    file_info = item.get("file")
    if isinstance(file_info, dict):
        name = file_info.get("file_name") or file_info.get("originalname") or file_info.get("name")
    else:
        name = file_info or item.get("file_name") or item.get("originalname")
    return UploadFailure(
        file=name or UNKNOWN_FILE,
        reason=item.get("error") or "Upload failed",
        error_type=item.get("error_type") or "unknown",
    )
