"""
Base service for the cooperative's CRUD resources.

Architecture:
    Router (thin) → Service (business logic) → Session → Model

Usage:
    from rest_api.services.base_service import BaseCRUDService

    class InventoryService(BaseCRUDService[InventoryRecord, InventoryItemOutput]):
        def __init__(self, db: Session):
            super().__init__(db, InventoryRecord, InventoryItemOutput, entity_name="Insumo")
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Generic, Type, TypeVar

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rest_api.db import safe_commit
from rest_api.models import Base
from shared.config.logging import get_logger
from shared.utils.exceptions import DatabaseError, NotFoundError
from shared.utils.schemas import QuantityUpdatePayload
from shared.utils.validators import normalize_partner_name

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=Base)
OutputT = TypeVar("OutputT", bound=BaseModel)


def column_values(payload: BaseModel) -> dict[str, Any]:
    """Payload fields as column values (enums stored by value)."""
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in payload.model_dump().items()
    }


class BaseCRUDService(Generic[ModelT, OutputT]):
    """
    Standard list/get/create/replace/quantity/delete operations.

    Subclasses hook into creation with _on_create(), which runs inside the
    same transaction as the insert.
    """

    def __init__(
        self,
        db: Session,
        model: Type[ModelT],
        output_schema: Type[OutputT],
        entity_name: str,
    ):
        self._db = db
        self._model = model
        self._output_schema = output_schema
        self._entity_name = entity_name

    @property
    def db(self) -> Session:
        return self._db

    @property
    def entity_name(self) -> str:
        """Human-readable entity name for messages."""
        return self._entity_name

    def to_output(self, entity: ModelT) -> OutputT:
        return self._output_schema.model_validate(entity)

    # =========================================================================
    # Read Operations
    # =========================================================================

    def get_entity(self, entity_id: str) -> ModelT | None:
        """Get raw entity (for internal use)."""
        return self._db.get(self._model, entity_id)

    def get_by_id(self, entity_id: str) -> OutputT:
        """
        Get entity by ID.

        Raises:
            NotFoundError: If entity not found.
        """
        return self.to_output(self._require(entity_id))

    def list_all(self) -> list[OutputT]:
        """All entities, newest first."""
        query = select(self._model).order_by(self._model.created_at.desc())
        return [self.to_output(entity) for entity in self._db.scalars(query).all()]

    # =========================================================================
    # Write Operations
    # =========================================================================

    def create(self, payload: BaseModel) -> OutputT:
        entity = self._model(**column_values(payload))
        self._db.add(entity)
        self._on_create(entity)
        self._commit("crear", entity)
        self._db.refresh(entity)
        logger.info("Entity created", entity=self._entity_name, entity_id=entity.id)
        return self.to_output(entity)

    def replace(self, entity_id: str, payload: BaseModel) -> OutputT:
        entity = self._require(entity_id)
        for field_name, value in column_values(payload).items():
            setattr(entity, field_name, value)
        self._commit("actualizar", entity)
        self._db.refresh(entity)
        return self.to_output(entity)

    def update_quantity(self, entity_id: str, payload: QuantityUpdatePayload) -> OutputT:
        """Change stock and, when given, attribution. Other fields are untouched."""
        entity = self._require(entity_id)
        entity.quantity = payload.quantity
        if payload.recorded_by is not None:
            entity.recorded_by = payload.recorded_by.value
            entity.recorded_by_partner_name = normalize_partner_name(
                payload.recorded_by, payload.recorded_by_partner_name
            )
        self._commit("actualizar", entity)
        self._db.refresh(entity)
        return self.to_output(entity)

    def delete(self, entity_id: str) -> None:
        entity = self._require(entity_id)
        self._db.delete(entity)
        self._commit("eliminar", entity)
        logger.info("Entity deleted", entity=self._entity_name, entity_id=entity_id)

    # =========================================================================
    # Hooks and helpers
    # =========================================================================

    def _on_create(self, entity: ModelT) -> None:
        """Hook for side effects that must commit together with the insert."""

    def _require(self, entity_id: str) -> ModelT:
        entity = self.get_entity(entity_id)
        if entity is None:
            raise NotFoundError(self._entity_name, entity_id)
        return entity

    def _commit(self, operation: str, entity: ModelT) -> None:
        try:
            safe_commit(self._db)
        except SQLAlchemyError as exc:
            logger.error(
                "Database commit failed",
                operation=operation,
                entity=self._entity_name,
                error=str(exc),
                entity_id=getattr(entity, "id", None),
            )
            raise DatabaseError(f"{operation} {self._entity_name.lower()}") from exc
