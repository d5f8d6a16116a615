"""
Harvest endpoints.

Creating a harvest also stocks its crop in inventory, so clients re-fetch
/api/inventory after any harvest mutation.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rest_api.db import get_db
from rest_api.routers._common import ok
from rest_api.services.domain import HarvestService
from shared.utils.schemas import (
    ApiEnvelope,
    HarvestOutput,
    HarvestPayload,
    QuantityUpdatePayload,
)

router = APIRouter(prefix="/api/harvests", tags=["harvests"])


def get_harvest_service(db: Session = Depends(get_db)) -> HarvestService:
    return HarvestService(db)


@router.get("", response_model=ApiEnvelope[list[HarvestOutput]])
def list_harvests(service: HarvestService = Depends(get_harvest_service)):
    """All harvest lots, newest first."""
    return ok(service.list_all())


@router.post("", response_model=ApiEnvelope[HarvestOutput], status_code=status.HTTP_201_CREATED)
def create_harvest(body: HarvestPayload, service: HarvestService = Depends(get_harvest_service)):
    return ok(service.create(body), message="Cosecha registrada")


@router.get("/{harvest_id}", response_model=ApiEnvelope[HarvestOutput])
def get_harvest(harvest_id: str, service: HarvestService = Depends(get_harvest_service)):
    return ok(service.get_by_id(harvest_id))


@router.put("/{harvest_id}", response_model=ApiEnvelope[HarvestOutput])
def replace_harvest(
    harvest_id: str,
    body: HarvestPayload,
    service: HarvestService = Depends(get_harvest_service),
):
    return ok(service.replace(harvest_id, body))


@router.patch("/{harvest_id}/quantity", response_model=ApiEnvelope[HarvestOutput])
def update_harvest_quantity(
    harvest_id: str,
    body: QuantityUpdatePayload,
    service: HarvestService = Depends(get_harvest_service),
):
    return ok(service.update_quantity(harvest_id, body))


@router.delete("/{harvest_id}", response_model=ApiEnvelope[None])
def delete_harvest(harvest_id: str, service: HarvestService = Depends(get_harvest_service)):
    service.delete(harvest_id)
    return ok(message="Cosecha eliminada")
