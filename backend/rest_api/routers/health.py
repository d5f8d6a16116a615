"""
Health check endpoint.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rest_api.db import get_db
from rest_api.routers._common import ok
from shared.config.logging import rest_api_logger as logger
from shared.utils.schemas import ApiEnvelope, HealthOutput

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=ApiEnvelope[HealthOutput])
def health_check(db: Session = Depends(get_db)):
    """Reports "healthy" when the database answers, "degraded" otherwise."""
    status = "healthy"
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("Health check: database unavailable", error=str(exc))
        status = "degraded"
    return ok(HealthOutput(status=status, service="rest-api"))
