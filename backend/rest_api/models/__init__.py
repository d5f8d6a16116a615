"""
SQLAlchemy ORM Models Package.

- base: Base class, TimestampMixin, RecordedByMixin
- cooperative: HarvestRecord, InventoryRecord, LossRecord
"""

from .base import Base, RecordedByMixin, TimestampMixin, generate_id
from .cooperative import HarvestRecord, InventoryRecord, LossRecord

__all__ = [
    "Base",
    "RecordedByMixin",
    "TimestampMixin",
    "generate_id",
    "HarvestRecord",
    "InventoryRecord",
    "LossRecord",
]
