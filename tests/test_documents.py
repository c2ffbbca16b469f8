"""SharePoint sync: Graph calls, error swallowing and the backup loop."""

import asyncio
import os
import sys
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from renovaflow import create_app
from renovaflow.core.config import AppSettings
from renovaflow.services.backup import BackupScheduler
from renovaflow.services.dispatch import DocumentDispatcher, best_effort
from renovaflow.services.documents import (
    DocumentStoreNotConfigured,
    GraphDocumentStore,
    sanitize_folder_name,
)


@pytest.fixture()
def settings(tmp_path):
    return AppSettings(
        DATA_DIR=tmp_path,
        DB_URL=f"sqlite:///{tmp_path / 'renovaflow.db'}",
        BACKUP_ENABLED=False,
        MICROSOFT_CLIENT_ID="client",
        MICROSOFT_CLIENT_SECRET="secret",
        MICROSOFT_TENANT_ID="tenant",
        SHAREPOINT_SITE_ID="site",
        SHAREPOINT_DRIVE_ID="drive",
        SHAREPOINT_BASE_PATH="Renova",
    )


class GraphStub:
    """Records requests and answers like Graph, or fails every call with ``fail_status``."""

    def __init__(self, fail_status=None):
        self.requests = []
        self.fail_status = fail_status

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_status:
            return httpx.Response(self.fail_status, json={"error": {"code": "serviceNotAvailable"}})
        if request.url.path.endswith("/oauth2/v2.0/token"):
            return httpx.Response(200, json={"access_token": "token-1", "expires_in": 3600})
        return httpx.Response(200, json={"id": "item", "webUrl": "https://sharepoint.example/item"})


def test_sanitize_folder_name():
    assert sanitize_folder_name('A/B:C*D?"E"<F>|G\\H') == "A_B_C_D__E__F__G_H"
    assert sanitize_folder_name("Sakura Heights 101") == "Sakura Heights 101"


def test_create_folder_and_upload_reuse_token(settings):
    stub = GraphStub()
    documents = GraphDocumentStore(settings, transport=httpx.MockTransport(stub))

    asyncio.run(documents.create_folder("Sakura/Heights"))
    result = asyncio.run(documents.upload_file("Sakura/Heights", "ai.md", b"# notes"))

    assert result["webUrl"] == "https://sharepoint.example/item"
    token, folder, upload = stub.requests
    assert token.method == "POST"
    assert str(token.url) == "https://login.microsoftonline.com/tenant/oauth2/v2.0/token"
    assert b"grant_type=client_credentials" in token.content

    assert folder.method == "PATCH"
    assert folder.headers["Authorization"] == "Bearer token-1"
    assert "/sites/site/drives/drive/root:/Renova/Sakura_Heights:" in str(folder.url)

    assert upload.method == "PUT"
    assert str(upload.url).endswith("/root:/Renova/Sakura_Heights/ai.md:/content")
    assert upload.content == b"# notes"


def test_backup_database_skips_missing_file(settings, tmp_path):
    stub = GraphStub()
    documents = GraphDocumentStore(settings, transport=httpx.MockTransport(stub))

    assert asyncio.run(documents.backup_database(tmp_path / "missing.db")) is None
    assert stub.requests == []

    db_file = tmp_path / "renovaflow.db"
    db_file.write_bytes(b"SQLite format 3")
    asyncio.run(documents.backup_database(db_file))
    assert str(stub.requests[-1].url).endswith("/root:/Renova/renovaflow.db:/content")
    assert stub.requests[-1].content == b"SQLite format 3"


def test_unconfigured_store_raises(tmp_path):
    documents = GraphDocumentStore(AppSettings(DATA_DIR=tmp_path))
    assert documents.configured is False
    with pytest.raises(DocumentStoreNotConfigured):
        asyncio.run(documents.create_folder("anything"))


def test_best_effort_swallows_graph_errors(settings):
    documents = GraphDocumentStore(settings, transport=httpx.MockTransport(GraphStub(fail_status=503)))

    assert asyncio.run(best_effort("folder", lambda: documents.create_folder("P1"))) is None

    dispatcher = DocumentDispatcher(documents, db_path=None)
    asyncio.run(dispatcher.ensure_folder("P1"))
    asyncio.run(dispatcher.backup_database())


def test_project_write_succeeds_when_graph_fails(settings):
    stub = GraphStub(fail_status=500)
    documents = GraphDocumentStore(settings, transport=httpx.MockTransport(stub))
    body = {
        "id": "P1",
        "estimateDate": "2024-05-01",
        "completionDate": "2024-07-15",
        "title": "Roof repair",
    }

    with TestClient(create_app(settings, documents=documents)) as client:
        response = client.post("/api/projects", json=body)
        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert client.get("/api/projects/P1").json()["title"] == "Roof repair"

        response = client.post("/api/projects/P1/sharepoint-folder")
        assert response.status_code == 502

    assert stub.requests


def test_manual_folder_and_ai_doc(settings):
    stub = GraphStub()
    documents = GraphDocumentStore(settings, transport=httpx.MockTransport(stub))
    body = {
        "id": "P1",
        "estimateDate": "2024-05-01",
        "completionDate": "2024-07-15",
        "title": "Roof repair",
        "propertyName": "Hinoki House",
    }

    with TestClient(create_app(settings, documents=documents)) as client:
        client.post("/api/projects", json=body)
        assert client.get("/api/sharepoint/status").json()["status"] == "ok"
        assert client.post("/api/projects/P1/sharepoint-folder").json() == {"success": True}
        response = client.post("/api/projects/P1/ai-doc", json={"content": "# summary", "fileName": "ai.md"})

    assert response.json() == {"success": True, "url": "https://sharepoint.example/item"}
    assert str(stub.requests[-1].url).endswith("/root:/Renova/Hinoki%20House/ai.md:/content")


class CountingDispatcher:
    def __init__(self):
        self.calls = 0

    async def backup_database(self):
        self.calls += 1


def test_backup_scheduler_runs_until_stopped():
    dispatcher = CountingDispatcher()
    scheduler = BackupScheduler(dispatcher, interval=0.01, initial_delay=0)

    async def exercise():
        scheduler.start()
        assert scheduler.running
        for _ in range(200):
            if dispatcher.calls >= 2:
                break
            await asyncio.sleep(0.01)
        await scheduler.stop()

    asyncio.run(exercise())
    assert dispatcher.calls >= 2
    assert scheduler.running is False


def test_backup_loop_survives_malformed_token_response(settings, tmp_path):
    attempts = []

    def malformed_token(request):
        attempts.append(request)
        return httpx.Response(200, json=["unexpected"])

    db_file = tmp_path / "renovaflow.db"
    db_file.write_bytes(b"SQLite format 3")
    documents = GraphDocumentStore(settings, transport=httpx.MockTransport(malformed_token))
    scheduler = BackupScheduler(DocumentDispatcher(documents, db_file), interval=0.01, initial_delay=0)

    async def exercise():
        scheduler.start()
        for _ in range(200):
            if len(attempts) >= 3:
                break
            await asyncio.sleep(0.01)
        still_running = scheduler.running
        await scheduler.stop()
        return still_running

    assert asyncio.run(exercise()) is True
    assert len(attempts) >= 3
    assert scheduler.running is False


class FailingDispatcher:
    def __init__(self):
        self.calls = 0

    async def backup_database(self):
        self.calls += 1
        raise RuntimeError("disk unavailable")


def test_backup_loop_keeps_running_after_dispatcher_error():
    dispatcher = FailingDispatcher()
    scheduler = BackupScheduler(dispatcher, interval=0.01, initial_delay=0)

    async def exercise():
        scheduler.start()
        for _ in range(200):
            if dispatcher.calls >= 2:
                break
            await asyncio.sleep(0.01)
        still_running = scheduler.running
        await scheduler.stop()
        return still_running

    assert asyncio.run(exercise()) is True
    assert dispatcher.calls >= 2
