"""
Cooperative records: harvest lots, inventory items and losses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, RecordedByMixin, TimestampMixin


class HarvestRecord(TimestampMixin, RecordedByMixin, Base):
    """A harvested lot. quantity is its remaining stock in whole units."""

    __tablename__ = "harvest"

    crop: Mapped[str] = mapped_column(String(80), nullable=False)
    category: Mapped[str] = mapped_column(String(20), nullable=False, default="primera")
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    purchase_price_clp: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    sale_price_clp: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="chk_harvest_quantity_non_negative"),
        Index("ix_harvest_created_at", "created_at"),
    )


class InventoryRecord(TimestampMixin, RecordedByMixin, Base):
    """An input held in stock (seedlings, fertilizer, pesticide, tools)."""

    __tablename__ = "inventory_item"

    name: Mapped[str] = mapped_column(String(80), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    unit: Mapped[str] = mapped_column(String(20), nullable=False, default="unidades")
    category: Mapped[str] = mapped_column(String(20), nullable=False, default="planta")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="chk_inventory_quantity_non_negative"),
        Index("ix_inventory_item_name_category", "name", "category"),
    )


class LossRecord(TimestampMixin, RecordedByMixin, Base):
    """
    A loss (merma).

    source_type/source_id is a weak reference: the source may be deleted
    later and the loss stays valid.
    """

    __tablename__ = "loss"

    product_name: Mapped[str] = mapped_column(String(80), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(160), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    source_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    source_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="chk_loss_quantity_positive"),
    )
