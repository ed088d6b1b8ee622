import os
import time

from fastapi.testclient import TestClient

import app.routers.pdf as pdf_router
from app.artifact_store import FallbackArtifactStore, FilesystemArtifactStore, MemoryArtifactStore
from app.lifecycle import ArtifactLifecycle
from app.main import app
from app.models import MAX_CLEANUP_DELAY_MS

LEG_DAY = {
    "title": "Leg Day",
    "description": "Lower body",
    "metadata": {"createdBy": "Coach", "createdAt": "2024-05-01", "difficulty": "Hard"},
    "schedule": [{"day": "Mon", "exercises": [{"name": "Squat", "sets": 4, "reps": 10}]}],
}


class FakeScheduler:
    def __init__(self):
        self.tasks = []

    def after(self, delay_ms, task):
        self.tasks.append((delay_ms, task))

    def run_all(self):
        tasks, self.tasks = self.tasks, []
        for _, task in tasks:
            task()


def _install(monkeypatch, tmp_path):
    store = FallbackArtifactStore(FilesystemArtifactStore(tmp_path), MemoryArtifactStore())
    scheduler = FakeScheduler()
    monkeypatch.setattr(pdf_router, "artifact_store", store)
    monkeypatch.setattr(pdf_router, "lifecycle", ArtifactLifecycle(store, scheduler, download_path="/api/download"))
    monkeypatch.setattr(pdf_router.config, "DEFAULT_CLEANUP_DELAY_MS", 300000)
    monkeypatch.setattr(pdf_router.config, "CLEANUP_TOKEN", "")
    return store, scheduler


def test_generate_then_download(monkeypatch, tmp_path):
    _, scheduler = _install(monkeypatch, tmp_path)
    client = TestClient(app)

    response = client.post("/api/generate-pdf", json={"data": LEG_DAY})

    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    info = payload["data"]
    assert info["filename"].startswith("workout_")
    assert info["downloadUrl"] == f"/api/download?file={info['filename']}"
    assert info["expiresAt"] is not None
    assert [delay for delay, _ in scheduler.tasks] == [300000]

    download = client.get(info["downloadUrl"])
    assert download.status_code == 200
    assert download.headers["content-type"] == "application/pdf"
    assert f'filename="{info["filename"]}"' in download.headers["content-disposition"]
    assert download.headers["cache-control"] == "no-cache, no-store, must-revalidate"
    assert download.content.startswith(b"%PDF-1.4")
    assert b"(1. Squat - 4 sets x 10 reps)" in download.content


def test_download_after_expiry_is_not_found(monkeypatch, tmp_path):
    _, scheduler = _install(monkeypatch, tmp_path)
    client = TestClient(app)

    info = client.post(
        "/api/generate-pdf",
        json={"data": {"title": "Short"}, "options": {"cleanupDelayMs": 0}},
    ).json()["data"]
    assert [delay for delay, _ in scheduler.tasks] == [0]

    scheduler.run_all()
    response = client.get(info["downloadUrl"])

    assert response.status_code == 404
    assert response.json()["detail"] == "File not found or has expired"


def test_generate_without_auto_cleanup(monkeypatch, tmp_path):
    _, scheduler = _install(monkeypatch, tmp_path)
    client = TestClient(app)

    response = client.post("/api/generate-pdf", json={"data": {}, "options": {"autoCleanup": False}})

    assert response.status_code == 200
    assert response.json()["data"]["expiresAt"] is None
    assert scheduler.tasks == []


def test_generate_rejects_out_of_range_cleanup_delay(monkeypatch, tmp_path):
    _, scheduler = _install(monkeypatch, tmp_path)
    client = TestClient(app)

    response = client.post(
        "/api/generate-pdf",
        json={"data": {"title": "x"}, "options": {"cleanupDelayMs": 10**15}},
    )

    assert response.status_code == 422
    assert scheduler.tasks == []
    assert list(tmp_path.iterdir()) == []


def test_generate_accepts_cleanup_delay_at_limit(monkeypatch, tmp_path):
    _, scheduler = _install(monkeypatch, tmp_path)
    client = TestClient(app)

    response = client.post(
        "/api/generate-pdf",
        json={"data": {"title": "x"}, "options": {"cleanupDelayMs": MAX_CLEANUP_DELAY_MS}},
    )

    assert response.status_code == 200
    assert response.json()["data"]["expiresAt"] is not None
    assert [delay for delay, _ in scheduler.tasks] == [MAX_CLEANUP_DELAY_MS]


def test_generate_requires_data(monkeypatch, tmp_path):
    _install(monkeypatch, tmp_path)
    client = TestClient(app)

    assert client.post("/api/generate-pdf", json={}).status_code == 422
    assert client.post("/api/generate-pdf", json={"data": {"schedule": [{"exercises": []}]}}).status_code == 422


def test_generate_reports_storage_failure(monkeypatch, tmp_path):
    class FullDiskStore:
        def store(self, name, data):
            raise OSError(28, "No space left on device")

    _install(monkeypatch, tmp_path)
    monkeypatch.setattr(pdf_router, "lifecycle", ArtifactLifecycle(FullDiskStore(), FakeScheduler()))
    client = TestClient(app)

    response = client.post("/api/generate-pdf", json={"data": LEG_DAY})

    assert response.status_code == 500


def test_download_validates_filename(monkeypatch, tmp_path):
    _install(monkeypatch, tmp_path)
    client = TestClient(app)

    assert client.get("/api/download").status_code == 400
    invalid = client.get("/api/download", params={"file": "../../etc/passwd"})
    assert invalid.status_code == 400
    assert invalid.json()["detail"] == "Invalid filename format"
    missing = client.get("/api/download", params={"file": "workout_0123abcd.pdf"})
    assert missing.status_code == 404


def test_download_direct_returns_pdf_without_storing(monkeypatch, tmp_path):
    _install(monkeypatch, tmp_path)
    client = TestClient(app)

    response = client.post("/api/download-direct", json={"data": LEG_DAY})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert 'attachment; filename="workout_' in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF-1.4")
    assert list(tmp_path.iterdir()) == []


def test_wrong_method_is_rejected(monkeypatch, tmp_path):
    _install(monkeypatch, tmp_path)
    client = TestClient(app)

    assert client.get("/api/generate-pdf").status_code == 405
    assert client.post("/api/download").status_code == 405


def test_cleanup_sweeps_stale_artifacts(monkeypatch, tmp_path):
    store, _ = _install(monkeypatch, tmp_path)
    monkeypatch.setattr(pdf_router.config, "CLEANUP_MAX_AGE_SECONDS", 3600)
    stale_name = "workout_11111111-2222-3333-4444-555555555555.pdf"
    store.primary.store(stale_name, b"old")
    stale = time.time() - 7200
    os.utime(tmp_path / stale_name, (stale, stale))
    client = TestClient(app)

    response = client.get("/api/cleanup")

    assert response.status_code == 200
    payload = response.json()
    assert payload["message"] == "Cleanup completed"
    assert payload["details"] == {"filesScanned": 1, "filesCleaned": 1, "errors": 0}
    assert not (tmp_path / stale_name).exists()


def test_cleanup_without_directory(monkeypatch, tmp_path):
    _install(monkeypatch, tmp_path / "missing")
    client = TestClient(app)

    response = client.get("/api/cleanup")

    assert response.status_code == 200
    assert response.json()["details"] is None


def test_cleanup_requires_token_when_configured(monkeypatch, tmp_path):
    _install(monkeypatch, tmp_path)
    monkeypatch.setattr(pdf_router.config, "CLEANUP_TOKEN", "sweep-token")
    client = TestClient(app)

    assert client.get("/api/cleanup").status_code == 401
    assert client.get("/api/cleanup", headers={"Authorization": "Bearer wrong"}).status_code == 401
    authorized = client.get("/api/cleanup", headers={"Authorization": "Bearer sweep-token"})
    assert authorized.status_code == 200


def test_healthz():
    client = TestClient(app)

    assert client.get("/healthz").json() == {"status": "ok"}
