"""
Inventory endpoints.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rest_api.db import get_db
from rest_api.routers._common import ok
from rest_api.services.domain import InventoryService
from shared.utils.schemas import (
    ApiEnvelope,
    InventoryItemOutput,
    InventoryItemPayload,
    QuantityUpdatePayload,
)

router = APIRouter(prefix="/api/inventory", tags=["inventory"])


def get_inventory_service(db: Session = Depends(get_db)) -> InventoryService:
    return InventoryService(db)


@router.get("", response_model=ApiEnvelope[list[InventoryItemOutput]])
def list_inventory(service: InventoryService = Depends(get_inventory_service)):
    return ok(service.list_all())


@router.post("", response_model=ApiEnvelope[InventoryItemOutput], status_code=status.HTTP_201_CREATED)
def create_inventory_item(
    body: InventoryItemPayload,
    service: InventoryService = Depends(get_inventory_service),
):
    return ok(service.create(body), message="Insumo registrado")


@router.get("/{item_id}", response_model=ApiEnvelope[InventoryItemOutput])
def get_inventory_item(item_id: str, service: InventoryService = Depends(get_inventory_service)):
    return ok(service.get_by_id(item_id))


@router.put("/{item_id}", response_model=ApiEnvelope[InventoryItemOutput])
def replace_inventory_item(
    item_id: str,
    body: InventoryItemPayload,
    service: InventoryService = Depends(get_inventory_service),
):
    return ok(service.replace(item_id, body))


@router.patch("/{item_id}/quantity", response_model=ApiEnvelope[InventoryItemOutput])
def update_inventory_quantity(
    item_id: str,
    body: QuantityUpdatePayload,
    service: InventoryService = Depends(get_inventory_service),
):
    """Stock correction, also used to deplete stock after a loss."""
    return ok(service.update_quantity(item_id, body))


@router.delete("/{item_id}", response_model=ApiEnvelope[None])
def delete_inventory_item(item_id: str, service: InventoryService = Depends(get_inventory_service)):
    service.delete(item_id)
    return ok(message="Insumo eliminado")
