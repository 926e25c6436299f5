"""Tests for RecordsGateway — envelope unwrapping and payload normalization."""

import json

import httpx
import pytest

from docvault.exceptions import AuthError, ConflictError, NotFoundError, UnknownError, ValidationError
from docvault.schemas.files import FileMetadataPatch
from docvault.schemas.folders import FolderCreate
from docvault.schemas.uploads import PendingUpload
from docvault.services.gateway import RecordsGateway

FILE_PAYLOAD = {
    "file_id": "f-1",
    "file_name": "Fresh_Salmon_Photo.jpg",
    "file_url": "https://cdn.example.com/f-1.jpg",
    "file_type": "image/jpeg",
    "description": "Salmon",
    "folder_id": "F3",
    "file_size": "1.8 MB",
    "upload_date": "2024-01-14",
}


def _gateway(handler) -> RecordsGateway:
    return RecordsGateway(
        base_url="http://records.test",
        token="tok",
        timeout=5.0,
        transport=httpx.MockTransport(handler),
    )


def _ok(data, status=200):
    return httpx.Response(status, json={"success": True, "data": data})


class TestFolders:
    @pytest.mark.asyncio
    async def test_list_folders(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers.get("Authorization")
            seen["path"] = request.url.path
            return _ok([{
                "folder_id": "1", "folder_name": "Contracts", "color": "blue",
                "icon": "FileText", "file_count": 12, "total_size": 2048,
            }])

        folders = await _gateway(handler).list_folders()

        assert seen == {"auth": "Bearer tok", "path": "/api/folders"}
        assert folders[0].id == "1"
        assert folders[0].name == "Contracts"
        assert folders[0].file_count == 12

    @pytest.mark.asyncio
    async def test_create_folder_sends_api_fields(self):
        def handler(request):
            body = json.loads(request.content)
            assert body == {"folder_name": "Reports", "description": "", "color": "orange", "icon": "BarChart"}
            return _ok({"folder_id": "9", "folder_name": "Reports", "color": "orange", "icon": "BarChart"}, 201)

        folder = await _gateway(handler).create_folder(FolderCreate(name="Reports", color="orange", icon="BarChart"))
        assert folder.id == "9"

    @pytest.mark.asyncio
    async def test_duplicate_folder_conflict(self):
        def handler(request):
            return httpx.Response(409, json={"success": False, "message": "Folder already exists"})

        with pytest.raises(ConflictError, match="Folder already exists"):
            await _gateway(handler).create_folder(FolderCreate(name="Contracts"))


class TestFiles:
    @pytest.mark.asyncio
    async def test_list_files_normalizes_size(self):
        def handler(request):
            assert request.url.params["folder_id"] == "F3"
            return _ok([FILE_PAYLOAD])

        files = await _gateway(handler).list_files_in_folder("F3")

        record = files[0]
        assert record.id == "f-1"
        assert record.size_bytes == int(1.8 * 1024 * 1024)
        assert record.kind == "image"
        assert record.uploaded_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_upload_one_uses_metadata_size(self):
        def handler(request):
            assert request.url.path == "/api/files/upload"
            assert b'name="folder_id"' in request.content
            payload = dict(FILE_PAYLOAD, file_size=None)
            return _ok({"file": payload, "metadata": {"size": "2.4 MB", "mime_type": "image/jpeg"}}, 201)

        upload = PendingUpload(name="salmon.jpg", content=b"\xff\xd8", mime_type="image/jpeg")
        record = await _gateway(handler).upload_one(upload, "F3", "Salmon")

        assert record.size_bytes == int(2.4 * 1024 * 1024)

    @pytest.mark.asyncio
    async def test_upload_many_partitions_result(self):
        def handler(request):
            assert request.url.path == "/api/files/upload-multiple"
            return _ok({
                "successful": [{"file": FILE_PAYLOAD}],
                "failed": [{"file": "broken.exe", "error": "Invalid file type"}, {"error": "Too large"}],
                "summary": {"total": 3, "successful": 1, "failed": 2},
            })

        uploads = [PendingUpload(name=n, content=b"x") for n in ("a.jpg", "broken.exe", "big.png")]
        result = await _gateway(handler).upload_many(uploads, "F3")

        assert [r.id for r in result.successful] == ["f-1"]
        assert result.failed[0].file == "broken.exe"
        assert result.failed[0].reason == "Invalid file type"
        assert result.failed[1].file == "unknown"

    @pytest.mark.asyncio
    async def test_upload_many_all_failed_keeps_per_file_reasons(self):
        def handler(request):
            return httpx.Response(400, json={
                "success": False,
                "message": "0 files uploaded successfully, 2 failed",
                "data": {
                    "successful": [],
                    "failed": [{"error": "File too large"}, {"error": "Bad type"}],
                    "summary": {"total": 2, "successful": 0, "failed": 2},
                },
            })

        uploads = [PendingUpload(name=n, content=b"x") for n in ("big.png", "run.exe")]
        result = await _gateway(handler).upload_many(uploads, "F3")

        assert result.successful == []
        assert [f.reason for f in result.failed] == ["File too large", "Bad type"]

    @pytest.mark.asyncio
    async def test_upload_many_rejected_without_results(self):
        def handler(request):
            return httpx.Response(400, json={"success": False, "message": "No files uploaded"})

        with pytest.raises(ValidationError, match="No files uploaded"):
            await _gateway(handler).upload_many([PendingUpload(name="a.jpg", content=b"x")], "F3")

    @pytest.mark.asyncio
    async def test_update_metadata_sends_patch(self):
        def handler(request):
            assert request.method == "PATCH"
            assert json.loads(request.content) == {"description": "new"}
            return _ok(dict(FILE_PAYLOAD, description="new"))

        record = await _gateway(handler).update_file_metadata("f-1", FileMetadataPatch(description="new"))
        assert record.description == "new"

    @pytest.mark.asyncio
    async def test_delete_not_found(self):
        def handler(request):
            return httpx.Response(404, json={"success": False, "error": "File not found"})

        with pytest.raises(NotFoundError, match="File not found"):
            await _gateway(handler).delete_file("f-1")


class TestEnvelope:
    @pytest.mark.asyncio
    async def test_success_false_with_ok_status(self):
        def handler(request):
            return httpx.Response(200, json={"success": False, "message": "Something broke"})

        with pytest.raises(UnknownError, match="Something broke"):
            await _gateway(handler).delete_folder("1")

    @pytest.mark.asyncio
    async def test_unauthorized(self):
        def handler(request):
            return httpx.Response(401, json={"success": False, "message": "Token expired"})

        with pytest.raises(AuthError):
            await _gateway(handler).list_folders()

    @pytest.mark.asyncio
    async def test_non_json_error_body(self):
        def handler(request):
            return httpx.Response(400, text="bad request")

        with pytest.raises(ValidationError, match="bad request"):
            await _gateway(handler).list_folders()

    @pytest.mark.asyncio
    async def test_transport_error_propagates_raw(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(httpx.ConnectError):
            await _gateway(handler).list_folders()
