"""
Reactive store.

Usage:
    from data_store.service import build_data_service

    data = build_data_service()
"""

from __future__ import annotations

from shared.config.settings import Settings, settings as default_settings
from shared.config.logging import get_logger
from data_store.persistence import CollectionPersistence, build_storage
from data_store.service.base import DataService, new_id
from data_store.service.remote import REMOTE_COLLECTIONS, RemoteDataService

logger = get_logger(__name__)


def build_data_service(config: Settings | None = None) -> DataService:
    """Create the store selected by SYNC_MODE, wired to the configured storage."""
    config = config or default_settings
    persistence = CollectionPersistence(build_storage(config))

    if config.sync_mode == "remote":
        from data_store.persistence.remote import CooperativeApiClient

        logger.info("Starting store in remote mode", api_base_url=config.api_base_url)
        return RemoteDataService(
            CooperativeApiClient.from_settings(config),
            persistence,
            max_workers=config.remote_max_workers,
        )

    logger.debug("Starting store in local mode", storage_backend=config.storage_backend)
    return DataService(persistence, seed_demo=config.seed_demo_data)


__all__ = [
    "DataService",
    "RemoteDataService",
    "REMOTE_COLLECTIONS",
    "build_data_service",
    "new_id",
]
