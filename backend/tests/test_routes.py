"""API route tests against services wired to a mocked records gateway."""

import pytest

from docvault.exceptions import NotFoundError, TransportError
from docvault.schemas.uploads import BatchUploadResult, UploadFailure
from factories import make_file, make_folder


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["service"] == "docvault"
        assert data["known_folders"] == 2

    @pytest.mark.asyncio
    async def test_ping(self, client):
        resp = await client.get("/api/ping")
        assert resp.status_code == 200


class TestFolders:
    @pytest.mark.asyncio
    async def test_list_folders(self, client):
        resp = await client.get("/api/folders")
        assert resp.status_code == 200
        assert [f["id"] for f in resp.json()] == ["F1", "F2"]

    @pytest.mark.asyncio
    async def test_create_folder(self, client, gateway):
        gateway.create_folder.return_value = make_folder("F3", "Reports", color="purple")
        resp = await client.post("/api/folders", json={"name": "Reports", "color": "purple"})
        assert resp.status_code == 201
        assert resp.json()["id"] == "F3"

    @pytest.mark.asyncio
    async def test_create_folder_without_name(self, client):
        resp = await client.post("/api/folders", json={"name": "  "})
        assert resp.status_code in (400, 422)

    @pytest.mark.asyncio
    async def test_delete_folder(self, client, gateway):
        resp = await client.delete("/api/folders/F2")
        assert resp.status_code == 200
        gateway.delete_folder.assert_awaited_once_with("F2")


class TestDocuments:
    @pytest.mark.asyncio
    async def test_list_folder_documents(self, client, gateway):
        gateway.list_files_in_folder.return_value = [make_file("a", "F1")]
        resp = await client.get("/api/documents", params={"folder_id": "F1"})
        assert resp.status_code == 200
        data = resp.json()
        assert [d["id"] for d in data] == ["a"]
        assert data[0]["folder_name"] == "Contracts"

    @pytest.mark.asyncio
    async def test_list_all_merges_folders(self, client, gateway):
        gateway.list_files_in_folder.side_effect = lambda fid: [
            make_file(f"{fid}-doc", fid, days_ago=1 if fid == "F2" else 3)
        ]
        resp = await client.get("/api/documents")
        assert [d["id"] for d in resp.json()] == ["F2-doc", "F1-doc"]

    @pytest.mark.asyncio
    async def test_list_transport_error_is_503(self, client, gateway):
        gateway.list_files_in_folder.side_effect = TransportError()
        resp = await client.get("/api/documents", params={"folder_id": "F1"})
        assert resp.status_code == 503
        assert resp.json()["error"] == "transport"

    @pytest.mark.asyncio
    async def test_filter_is_accepted(self, client):
        resp = await client.post("/api/documents/filter", json={"filter": "F1", "search": "tax"})
        assert resp.status_code == 202
        assert resp.json() == {"filter": "F1", "scheduled": True}

        view = await client.get("/api/documents/view")
        assert view.json()["active_filter"] == "F1"
        assert view.json()["search_term"] == "tax"

    @pytest.mark.asyncio
    async def test_upload_single(self, client, gateway):
        gateway.upload_one.return_value = make_file("new", "F1", name="scan.pdf")
        resp = await client.post(
            "/api/documents/upload",
            files=[("files", ("scan.pdf", b"%PDF-1.4", "application/pdf"))],
            data={"folder_id": "F1"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["succeeded_count"] == 1
        assert data["summary"] == "Successfully uploaded 1 file(s)"

    @pytest.mark.asyncio
    async def test_upload_batch_partial(self, client, gateway):
        gateway.upload_many.return_value = BatchUploadResult(
            successful=[make_file("a", "F1", name="a.pdf")],
            failed=[UploadFailure(file="b.pdf", reason="Too large")],
        )
        resp = await client.post(
            "/api/documents/upload",
            files=[
                ("files", ("a.pdf", b"a", "application/pdf")),
                ("files", ("b.pdf", b"b", "application/pdf")),
            ],
            data={"folder_id": "F1"},
        )
        data = resp.json()
        assert data["total"] == 2
        assert data["summary"] == "1 of 2 files uploaded"

    @pytest.mark.asyncio
    async def test_upload_without_folder(self, client):
        resp = await client.post(
            "/api/documents/upload",
            files=[("files", ("a.pdf", b"a", "application/pdf"))],
        )
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Please select a folder"

    @pytest.mark.asyncio
    async def test_delete_missing_file(self, client, gateway):
        gateway.delete_file.side_effect = NotFoundError("File not found")
        resp = await client.delete("/api/documents/missing")
        assert resp.status_code == 404
        assert resp.json() == {"detail": "File not found", "error": "not_found"}

    @pytest.mark.asyncio
    async def test_patch_empty_is_400(self, client):
        resp = await client.patch("/api/documents/a", json={})
        assert resp.status_code == 400
        assert resp.json()["error"] == "validation"

    @pytest.mark.asyncio
    async def test_patch_unlisted_returns_server_record(self, client, gateway):
        gateway.update_file_metadata.return_value = make_file("a", "F1", name="renamed.pdf")
        resp = await client.patch("/api/documents/a", json={"name": "renamed.pdf"})
        assert resp.status_code == 200
        assert resp.json()["name"] == "renamed.pdf"
