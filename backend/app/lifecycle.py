"""Artifact lifecycle: identifier allocation, persistence and deferred expiry."""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Protocol

from app import config
from app.artifact_store import ArtifactStore, artifact_store, is_valid_artifact_name
from app.models import WorkoutDocument
from app.pdf import render_workout_pdf

logger = logging.getLogger("workoutpdf.lifecycle")


class Scheduler(Protocol):
    def after(self, delay_ms: int, task: Callable[[], None]) -> None: ...


class TimerScheduler:
    """Runs each task once on a daemon timer thread; no handle is kept."""

    def after(self, delay_ms: int, task: Callable[[], None]) -> None:
        timer = threading.Timer(min(max(delay_ms, 0) / 1000.0, threading.TIMEOUT_MAX), task)
        timer.daemon = True
        timer.start()


@dataclass(frozen=True)
class GeneratedArtifact:
    identifier: str
    name: str
    data: bytes
    download_reference: str


def artifact_name(identifier: str) -> str:
    return f"{config.ARTIFACT_PREFIX}{identifier}.pdf"


def new_identifier() -> str:
    return str(uuid.uuid4())


def expires_at(delay_ms: int, now: Optional[datetime] = None) -> datetime:
    start = now or datetime.now(timezone.utc)
    return start + timedelta(milliseconds=delay_ms)


class ArtifactLifecycle:
    def __init__(
        self,
        store: ArtifactStore,
        scheduler: Optional[Scheduler] = None,
        *,
        download_path: str = config.DOWNLOAD_PATH,
    ):
        self.store = store
        self.scheduler = scheduler or TimerScheduler()
        self.download_path = download_path

    def _resolve_name(self, key: str) -> str:
        return key if is_valid_artifact_name(key) else artifact_name(key)

    def download_reference(self, name: str) -> str:
        return f"{self.download_path}?file={name}"

    def generate(self, doc: WorkoutDocument) -> GeneratedArtifact:
        """Render *doc* and persist it; storage errors propagate unchanged."""
        identifier = new_identifier()
        name = artifact_name(identifier)
        data = render_workout_pdf(doc)
        self.store.store(name, data)
        logger.info("Generated artifact %s bytes=%d", name, len(data))
        return GeneratedArtifact(
            identifier=identifier,
            name=name,
            data=data,
            download_reference=self.download_reference(name),
        )

    def retrieve(self, key: str) -> Optional[bytes]:
        return self.store.retrieve(self._resolve_name(key))

    def delete(self, key: str) -> None:
        self.store.delete(self._resolve_name(key))

    def schedule_expiry(self, key: str, delay_ms: int) -> None:
        """Delete the artifact after *delay_ms*. Fire-and-forget."""
        name = self._resolve_name(key)

        def _expire() -> None:
            try:
                self.store.delete(name)
                logger.info("Expired artifact %s", name)
            except Exception:
                logger.warning("Failed expiring artifact %s", name, exc_info=True)

        self.scheduler.after(delay_ms, _expire)
        logger.debug("Scheduled expiry for %s in %dms", name, delay_ms)


lifecycle = ArtifactLifecycle(artifact_store)
