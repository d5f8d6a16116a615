"""
Cooperative data store.

Reactive collections of harvests, inventory, losses and reminders, their
persistence adapters and the views derived from them.

Usage:
    from data_store import build_data_service
    from data_store.views import build_dashboard_summary

    data = build_data_service()
    summary = build_dashboard_summary(data.harvests_snapshot, data.inventory_snapshot)
"""

from data_store.models import (
    Harvest,
    HarvestInput,
    InventoryItem,
    InventoryItemInput,
    Loss,
    LossInput,
    MutationResult,
    Reminder,
    ReminderInput,
)
from data_store.service import DataService, RemoteDataService, build_data_service

__all__ = [
    "Harvest",
    "HarvestInput",
    "InventoryItem",
    "InventoryItemInput",
    "Loss",
    "LossInput",
    "MutationResult",
    "Reminder",
    "ReminderInput",
    "DataService",
    "RemoteDataService",
    "build_data_service",
]
