"""Test fixtures — fake clock, mocked records gateway, wired services, API client."""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from docvault import services
from docvault.main import create_app
from docvault.services.document_list import DocumentList
from docvault.services.file_cache import FileCache
from docvault.services.folder_registry import FolderRegistry
from docvault.services.gateway import RecordsGateway
from docvault.services.query_coordinator import QueryCoordinator
from docvault.services.upload_orchestrator import UploadOrchestrator
from factories import FakeClock, make_folder

TTL = 300.0


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway():
    gw = AsyncMock(spec=RecordsGateway)
    gw.list_folders.return_value = [
        make_folder("F1", "Contracts", color="blue"),
        make_folder("F2", "Invoices", color="green"),
    ]
    gw.list_files_in_folder.return_value = []
    return gw


@pytest.fixture
def cache():
    return FileCache(ttl_seconds=TTL)


@pytest.fixture
def registry(gateway, cache, clock):
    return FolderRegistry(gateway, cache, clock=clock)


@pytest.fixture
def coordinator(cache, gateway, registry, clock):
    return QueryCoordinator(cache, gateway, registry, debounce_seconds=0.02, clock=clock)


@pytest.fixture
def documents():
    return DocumentList()


@pytest.fixture
def orchestrator(gateway, cache, registry, documents):
    return UploadOrchestrator(gateway, cache, registry, documents)


@pytest_asyncio.fixture
async def client(gateway):
    """Async API client backed by services wired to the mocked gateway."""
    await services.init_services(gateway=gateway)
    app = create_app()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    await services.shutdown_services()
