"""
Harvest service.

Recording a harvest also stocks it: the lot's quantity is added to the
"planta" inventory item named after the crop, created on first harvest.
Replacing or deleting a harvest does not touch inventory.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import HarvestRecord, InventoryRecord
from rest_api.services.base_service import BaseCRUDService
from shared.config.constants import INVENTORY_UNIT, InventoryCategory
from shared.config.logging import get_logger
from shared.utils.schemas import HarvestOutput

logger = get_logger(__name__)


class HarvestService(BaseCRUDService[HarvestRecord, HarvestOutput]):
    """
    Usage:
        service = HarvestService(db)
        harvest = service.create(HarvestPayload(crop="Cacao", quantity=8, date=now))
    """

    def __init__(self, db: Session):
        super().__init__(db, HarvestRecord, HarvestOutput, entity_name="Cosecha")

    def _on_create(self, entity: HarvestRecord) -> None:
        item = self._db.scalars(
            select(InventoryRecord)
            .where(
                InventoryRecord.name == entity.crop,
                InventoryRecord.category == InventoryCategory.PLANTA.value,
            )
            .order_by(InventoryRecord.created_at)
            .limit(1)
        ).first()

        if item is None:
            item = InventoryRecord(
                name=entity.crop,
                quantity=entity.quantity,
                unit=INVENTORY_UNIT,
                category=InventoryCategory.PLANTA.value,
                recorded_by=entity.recorded_by,
                recorded_by_partner_name=entity.recorded_by_partner_name,
            )
            self._db.add(item)
            logger.info("Inventory item created from harvest", crop=entity.crop, quantity=entity.quantity)
            return

        item.quantity += entity.quantity
        logger.info("Harvest added to inventory", crop=entity.crop, item_id=item.id, quantity=item.quantity)
