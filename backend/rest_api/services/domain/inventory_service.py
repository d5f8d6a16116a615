"""
Inventory service.
"""

from sqlalchemy.orm import Session

from rest_api.models import InventoryRecord
from rest_api.services.base_service import BaseCRUDService
from shared.utils.schemas import InventoryItemOutput


class InventoryService(BaseCRUDService[InventoryRecord, InventoryItemOutput]):
    def __init__(self, db: Session):
        super().__init__(db, InventoryRecord, InventoryItemOutput, entity_name="Insumo")
