"""
Services module for business logic.

- base_service: BaseCRUDService shared by every resource
- domain/: one service per resource (harvests, inventory, losses)

Usage:
    from rest_api.services.domain import InventoryService
    service = InventoryService(db)
    items = service.list_all()
"""

from .base_service import BaseCRUDService, column_values

__all__ = ["BaseCRUDService", "column_values"]
