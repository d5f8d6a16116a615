"""
Domain services.

Structure:
    Router (thin controller)
        ↓
    Service (business logic)  ← YOU ARE HERE
        ↓
    Model (entity)

Usage:
    from rest_api.services.domain import HarvestService

    service = HarvestService(db)
    harvests = service.list_all()
"""

from .harvest_service import HarvestService
from .inventory_service import InventoryService
from .loss_service import LossService

__all__ = [
    "HarvestService",
    "InventoryService",
    "LossService",
]
