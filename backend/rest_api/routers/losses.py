"""
Loss (merma) endpoints. Losses are created and deleted, never updated.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from rest_api.db import get_db
from rest_api.routers._common import ok
from rest_api.services.domain import LossService
from shared.utils.schemas import ApiEnvelope, LossOutput, LossPayload

router = APIRouter(prefix="/api/losses", tags=["losses"])


def get_loss_service(db: Session = Depends(get_db)) -> LossService:
    return LossService(db)


@router.get("", response_model=ApiEnvelope[list[LossOutput]])
def list_losses(service: LossService = Depends(get_loss_service)):
    """All losses, most recent date first."""
    return ok(service.list_all())


@router.post("", response_model=ApiEnvelope[LossOutput], status_code=status.HTTP_201_CREATED)
def create_loss(body: LossPayload, service: LossService = Depends(get_loss_service)):
    return ok(service.create(body), message="Merma registrada")


@router.delete("/{loss_id}", response_model=ApiEnvelope[None])
def delete_loss(loss_id: str, service: LossService = Depends(get_loss_service)):
    service.delete(loss_id)
    return ok(message="Merma eliminada")
