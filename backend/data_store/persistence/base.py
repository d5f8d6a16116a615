"""
Persistence contract for the store.

Storage backends are plain key-value stores of text blobs. On top of them,
CollectionPersistence reads and writes whole collections as JSON arrays:

- read() returns None when the key is absent or the blob is malformed
  (bad JSON, not an array). Records that fail to decode, such as an
  unparsable date, are dropped one by one and the rest is kept.
- write() returns a PersistenceResult and never raises.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Protocol, TypeVar, runtime_checkable

from shared.config.logging import get_logger
from shared.utils.exceptions import MalformedBlobError

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class PersistenceResult:
    """Result-style outcome of a storage write."""

    ok: bool
    error: Optional[str] = None

    @classmethod
    def success(cls) -> "PersistenceResult":
        return cls(ok=True)

    @classmethod
    def failure(cls, error: BaseException | str) -> "PersistenceResult":
        return cls(ok=False, error=str(error))


@runtime_checkable
class KeyValueStorage(Protocol):
    """
    Durable key-value blob storage.

    get() returns None for absent keys and on any backend error.
    set() reports failure through the returned PersistenceResult.
    """

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> PersistenceResult: ...

    def delete(self, key: str) -> PersistenceResult: ...


def decode_blob(blob: str) -> list[Any]:
    """Parse a persisted blob into a list of raw records."""
    try:
        payload = json.loads(blob)
    except (TypeError, ValueError) as exc:
        raise MalformedBlobError(f"Invalid JSON: {exc}") from exc
    if not isinstance(payload, list):
        raise MalformedBlobError(f"Expected a JSON array, got {type(payload).__name__}")
    return payload


class CollectionPersistence:
    """Reads and writes entity collections as JSON arrays in a KeyValueStorage."""

    def __init__(self, storage: KeyValueStorage):
        self._storage = storage

    @property
    def storage(self) -> KeyValueStorage:
        return self._storage

    def read(self, key: str, decoder: Callable[[dict[str, Any]], T]) -> Optional[list[T]]:
        """
        Restore a collection.

        Returns None when there is nothing usable under the key, so the
        caller can fall back to its seed.
        """
        blob = self._storage.get(key)
        if blob is None:
            return None

        try:
            raw_records = decode_blob(blob)
        except MalformedBlobError as exc:
            logger.warning("Discarding malformed persisted collection", key=key, error=str(exc))
            return None

        restored: list[T] = []
        dropped = 0
        for raw in raw_records:
            if not isinstance(raw, dict):
                dropped += 1
                continue
            try:
                restored.append(decoder(raw))
            except (KeyError, TypeError, ValueError):
                dropped += 1

        if dropped:
            logger.warning(
                "Dropped unreadable records while restoring collection",
                key=key,
                dropped=dropped,
                restored=len(restored),
            )
        return restored

    def write(self, key: str, entities: Iterable[Any]) -> PersistenceResult:
        """Serialize entities (anything with to_record()) and store them under key."""
        try:
            blob = json.dumps([entity.to_record() for entity in entities], ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            logger.error("Could not serialize collection", key=key, error=str(exc))
            return PersistenceResult.failure(exc)

        result = self._storage.set(key, blob)
        if not result.ok:
            logger.warning("Persisting collection failed", key=key, error=result.error)
        return result
