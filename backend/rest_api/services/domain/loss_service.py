"""
Loss (merma) service.

Losses are listed most recent first by date, the order the store keeps.
A loss is created and deleted, never edited.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from rest_api.models import LossRecord
from rest_api.services.base_service import BaseCRUDService
from shared.utils.schemas import LossOutput


class LossService(BaseCRUDService[LossRecord, LossOutput]):
    def __init__(self, db: Session):
        super().__init__(db, LossRecord, LossOutput, entity_name="Merma")

    def list_all(self) -> list[LossOutput]:
        query = select(LossRecord).order_by(LossRecord.date.desc(), LossRecord.created_at.desc())
        return [self.to_output(entity) for entity in self._db.scalars(query).all()]
