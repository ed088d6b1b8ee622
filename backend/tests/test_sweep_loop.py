import logging
import os
import time

from fastapi.testclient import TestClient

import app.main as main_module
from app.artifact_store import FallbackArtifactStore, FilesystemArtifactStore, MemoryArtifactStore
from app.main import app

STALE = "workout_11111111-2222-3333-4444-555555555555.pdf"
FRESH = "workout_66666666-7777-8888-9999-000000000000.pdf"


def _wait_for(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def _install_store(monkeypatch, tmp_path) -> FallbackArtifactStore:
    store = FallbackArtifactStore(FilesystemArtifactStore(tmp_path), MemoryArtifactStore())
    monkeypatch.setattr(main_module, "artifact_store", store)
    return store


def test_lifespan_sweep_removes_stale_artifacts(monkeypatch, tmp_path):
    store = _install_store(monkeypatch, tmp_path)
    monkeypatch.setattr(main_module.config, "CLEANUP_INTERVAL_SECONDS", 3600)
    monkeypatch.setattr(main_module.config, "CLEANUP_MAX_AGE_SECONDS", 60)
    store.primary.store(STALE, b"old")
    store.primary.store(FRESH, b"new")
    stale = time.time() - 600
    os.utime(tmp_path / STALE, (stale, stale))

    with TestClient(app) as client:
        assert _wait_for(lambda: not (tmp_path / STALE).exists())
        assert client.get("/healthz").status_code == 200

    assert (tmp_path / FRESH).exists()


def test_sweep_loop_survives_failed_cycle_and_stops_on_shutdown(monkeypatch, tmp_path, caplog):
    _install_store(monkeypatch, tmp_path)
    monkeypatch.setattr(main_module.config, "CLEANUP_INTERVAL_SECONDS", 0.01)
    calls = []

    async def _flaky_sweep():
        calls.append(time.monotonic())
        if len(calls) == 1:
            raise RuntimeError("disk unavailable")

    monkeypatch.setattr(main_module, "_sweep_once", _flaky_sweep)

    with caplog.at_level(logging.ERROR, logger="workoutpdf.api"):
        with TestClient(app):
            assert _wait_for(lambda: len(calls) >= 3)

    assert "Sweep cycle failed" in caplog.text
    stopped_at = len(calls)
    time.sleep(0.1)
    assert len(calls) == stopped_at


def test_sweep_loop_disabled_without_interval(monkeypatch, tmp_path):
    _install_store(monkeypatch, tmp_path)
    monkeypatch.setattr(main_module.config, "CLEANUP_INTERVAL_SECONDS", 0)
    calls = []

    async def _record_sweep():
        calls.append(True)

    monkeypatch.setattr(main_module, "_sweep_once", _record_sweep)

    with TestClient(app) as client:
        assert client.get("/healthz").status_code == 200
        time.sleep(0.05)

    assert calls == []
    assert tmp_path.is_dir()
