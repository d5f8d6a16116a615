"""
Base class and TimestampMixin for all SQLAlchemy ORM models.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def generate_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class TimestampMixin:
    """
    Mixin providing a string UUID primary key and audit timestamps.

    created_at orders collections newest first, the order the store keeps
    harvests and inventory in.
    """

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now(), nullable=True
    )


class RecordedByMixin:
    """Role of the member who recorded the entry, plus the partner name for socios."""

    recorded_by: Mapped[str] = mapped_column(String(20), nullable=False, default="presidente")
    recorded_by_partner_name: Mapped[Optional[str]] = mapped_column(String(80), nullable=True)
