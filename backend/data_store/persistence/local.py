"""
Local key-value storage backends.

MemoryStorage keeps blobs in a dict (tests, throwaway sessions).
JsonFileStorage keeps one file per key in a directory, the on-disk
counterpart of a browser's local storage.
"""

from __future__ import annotations

import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Optional

from shared.config.logging import get_logger
from data_store.persistence.base import PersistenceResult

logger = get_logger(__name__)

_SAFE_KEY = re.compile(r"[^A-Za-z0-9_.-]")


class MemoryStorage:
    """In-process storage. Data lives as long as the object."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> PersistenceResult:
        with self._lock:
            self._data[key] = value
        return PersistenceResult.success()

    def delete(self, key: str) -> PersistenceResult:
        with self._lock:
            self._data.pop(key, None)
        return PersistenceResult.success()

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)


class JsonFileStorage:
    """
    One file per key under a directory.

    Writes go to a temporary file that replaces the target, so a crash
    mid-write never leaves a truncated blob behind.
    """

    def __init__(self, directory: str | os.PathLike[str], prefix: str = ""):
        self._directory = Path(directory)
        self._prefix = prefix
        self._lock = threading.Lock()

    @property
    def directory(self) -> Path:
        return self._directory

    def path_for(self, key: str) -> Path:
        name = f"{self._prefix}-{key}" if self._prefix else key
        return self._directory / f"{_SAFE_KEY.sub('_', name)}.json"

    def get(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read storage file", path=str(path), error=str(exc))
            return None

    def set(self, key: str, value: str) -> PersistenceResult:
        path = self.path_for(key)
        with self._lock:
            try:
                self._directory.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=self._directory, suffix=".tmp")
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as handle:
                        handle.write(value)
                    os.replace(tmp_name, path)
                except BaseException:
                    if os.path.exists(tmp_name):
                        os.unlink(tmp_name)
                    raise
            except OSError as exc:
                return PersistenceResult.failure(exc)
        return PersistenceResult.success()

    def delete(self, key: str) -> PersistenceResult:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as exc:
            return PersistenceResult.failure(exc)
        return PersistenceResult.success()
