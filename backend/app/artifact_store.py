"""Transient storage for generated PDF artifacts.

Artifacts live on disk under ``ARTIFACT_DIR``; a bounded in-memory copy keyed
by the same name serves downloads when the file is gone (ephemeral or
read-only filesystems).
"""

from __future__ import annotations

import logging
import os
import re
import tempfile
import time
from collections import OrderedDict
from dataclasses import dataclass
from pathlib import Path
from threading import Lock
from typing import Optional, Protocol

from app import config

logger = logging.getLogger("workoutpdf.artifacts")

ARTIFACT_NAME_PATTERN = re.compile(rf"^{re.escape(config.ARTIFACT_PREFIX)}[a-f0-9-]+\.pdf$")


def is_valid_artifact_name(name: str) -> bool:
    return bool(name) and ARTIFACT_NAME_PATTERN.fullmatch(name) is not None


def _require_valid_name(name: str) -> None:
    if not is_valid_artifact_name(name):
        raise ValueError(f"Invalid artifact name {name!r}")


class ArtifactStore(Protocol):
    def store(self, name: str, data: bytes) -> None: ...

    def retrieve(self, name: str) -> Optional[bytes]: ...

    def delete(self, name: str) -> None: ...


@dataclass
class SweepResult:
    scanned: int = 0
    cleaned: int = 0
    errors: int = 0


class FilesystemArtifactStore:
    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def ensure_directory(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, name: str) -> Path:
        _require_valid_name(name)
        return self.directory / name

    def store(self, name: str, data: bytes) -> None:
        path = self._path(name)
        self.ensure_directory()
        with tempfile.NamedTemporaryFile(
            mode="wb",
            dir=self.directory,
            prefix=f".{name}.",
            suffix=".tmp",
            delete=False,
        ) as tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
            tmp_path = Path(tmp.name)
        tmp_path.replace(path)
        logger.debug("Stored artifact %s bytes=%d", name, len(data))

    def retrieve(self, name: str) -> Optional[bytes]:
        try:
            return self._path(name).read_bytes()
        except FileNotFoundError:
            return None

    def delete(self, name: str) -> None:
        self._path(name).unlink(missing_ok=True)

    def sweep(self, max_age_seconds: float, now: Optional[float] = None) -> SweepResult:
        """Delete artifacts whose mtime is older than *max_age_seconds*."""
        result = SweepResult()
        if not self.directory.is_dir():
            return result

        current = time.time() if now is None else now
        for path in self.directory.iterdir():
            if not is_valid_artifact_name(path.name):
                continue
            result.scanned += 1
            try:
                if current - path.stat().st_mtime > max_age_seconds:
                    path.unlink(missing_ok=True)
                    result.cleaned += 1
            except OSError:
                logger.warning("Failed sweeping artifact %s", path.name, exc_info=True)
                result.errors += 1
        return result


class MemoryArtifactStore:
    def __init__(self, ttl_seconds: float = 900, max_items: int = 64):
        self._ttl = ttl_seconds
        self._max_items = max(1, int(max_items))
        self._entries: OrderedDict[str, tuple[float, bytes]] = OrderedDict()
        self._lock = Lock()

    def store(self, name: str, data: bytes) -> None:
        _require_valid_name(name)
        with self._lock:
            self._entries[name] = (time.monotonic(), bytes(data))
            self._entries.move_to_end(name)
            while len(self._entries) > self._max_items:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug("Evicted cached artifact %s", evicted)

    def retrieve(self, name: str) -> Optional[bytes]:
        with self._lock:
            entry = self._entries.get(name)
            if entry is None:
                return None
            stored_at, data = entry
            if (time.monotonic() - stored_at) > self._ttl:
                del self._entries[name]
                return None
            return data

    def delete(self, name: str) -> None:
        with self._lock:
            self._entries.pop(name, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class FallbackArtifactStore:
    """Disk first, memory second; deletes hit both."""

    def __init__(self, primary: FilesystemArtifactStore, fallback: MemoryArtifactStore):
        self.primary = primary
        self.fallback = fallback

    def store(self, name: str, data: bytes) -> None:
        self.fallback.store(name, data)
        self.primary.store(name, data)

    def retrieve(self, name: str) -> Optional[bytes]:
        data = self.primary.retrieve(name)
        if data is not None:
            return data
        data = self.fallback.retrieve(name)
        if data is not None:
            logger.info("Serving artifact %s from memory fallback", name)
        return data

    def delete(self, name: str) -> None:
        self.fallback.delete(name)
        self.primary.delete(name)

    def sweep(self, max_age_seconds: float, now: Optional[float] = None) -> SweepResult:
        return self.primary.sweep(max_age_seconds, now=now)


artifact_store = FallbackArtifactStore(
    FilesystemArtifactStore(config.ARTIFACT_DIR),
    MemoryArtifactStore(config.MEMORY_CACHE_TTL_SECONDS, config.MEMORY_CACHE_MAX_ITEMS),
)
