"""
Persistence adapters for the data store.

Usage:
    from data_store.persistence import CollectionPersistence, build_storage

    persistence = CollectionPersistence(build_storage())
"""

from __future__ import annotations

from shared.config.settings import Settings, settings as default_settings
from shared.config.logging import get_logger
from data_store.persistence.base import (
    CollectionPersistence,
    KeyValueStorage,
    PersistenceResult,
    decode_blob,
)
from data_store.persistence.local import JsonFileStorage, MemoryStorage

logger = get_logger(__name__)


def build_storage(config: Settings | None = None) -> KeyValueStorage:
    """Create the key-value backend selected by STORAGE_BACKEND."""
    config = config or default_settings

    if config.storage_backend == "memory":
        return MemoryStorage()

    if config.storage_backend == "redis":
        # Imported lazily so file/memory deployments never open a Redis pool
        from data_store.persistence.redis_storage import RedisStorage, get_redis_client

        return RedisStorage(get_redis_client(config.redis_url), prefix=config.storage_key_prefix)

    logger.debug("Using file storage", directory=config.data_dir)
    return JsonFileStorage(config.data_dir, prefix=config.storage_key_prefix)


__all__ = [
    "CollectionPersistence",
    "KeyValueStorage",
    "PersistenceResult",
    "decode_blob",
    "MemoryStorage",
    "JsonFileStorage",
    "build_storage",
]
