"""
Domain entities of the cooperative store.

All entities are immutable; a mutation replaces the entity inside its
collection. Each entity knows how to turn itself into a JSON-ready record
(dates as ISO-8601 strings, enums as their values) and back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from shared.config.constants import (
    DEFAULT_ROLE,
    INVENTORY_UNIT,
    HarvestCategory,
    InventoryCategory,
    LossSourceType,
    UserRole,
)
from shared.utils.validators import (
    normalize_partner_name,
    normalize_price,
    normalize_quantity,
    to_naive_local,
    truncate_to_minute,
)


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return to_naive_local(value)
    if not isinstance(value, str):
        raise TypeError(f"Expected ISO-8601 string, got {type(value).__name__}")
    return to_naive_local(datetime.fromisoformat(value))


def _optional_str(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _attribution(record: dict[str, Any]) -> tuple[UserRole, Optional[str]]:
    role = UserRole(record.get("recorded_by") or DEFAULT_ROLE)
    return role, normalize_partner_name(role, record.get("recorded_by_partner_name"))


# =============================================================================
# Harvest
# =============================================================================


@dataclass(frozen=True)
class HarvestInput:
    crop: str
    quantity: float | int
    date: datetime
    category: HarvestCategory = HarvestCategory.PRIMERA
    recorded_by: UserRole = DEFAULT_ROLE
    recorded_by_partner_name: Optional[str] = None
    purchase_price_clp: Any = None
    sale_price_clp: Any = None


@dataclass(frozen=True)
class Harvest:
    id: str
    crop: str
    category: HarvestCategory
    quantity: int
    date: datetime
    recorded_by: UserRole = DEFAULT_ROLE
    recorded_by_partner_name: Optional[str] = None
    purchase_price_clp: Optional[int] = None
    sale_price_clp: Optional[int] = None

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "crop": self.crop,
            "category": self.category.value,
            "quantity": self.quantity,
            "date": self.date.isoformat(),
            "recorded_by": self.recorded_by.value,
            "recorded_by_partner_name": self.recorded_by_partner_name,
            "purchase_price_clp": self.purchase_price_clp,
            "sale_price_clp": self.sale_price_clp,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Harvest":
        role, partner_name = _attribution(record)
        return cls(
            id=str(record["id"]),
            crop=str(record["crop"]),
            category=HarvestCategory(record["category"]),
            quantity=normalize_quantity(record["quantity"]),
            date=_parse_datetime(record["date"]),
            recorded_by=role,
            recorded_by_partner_name=partner_name,
            purchase_price_clp=normalize_price(record.get("purchase_price_clp")),
            sale_price_clp=normalize_price(record.get("sale_price_clp")),
        )


# =============================================================================
# Inventory
# =============================================================================


@dataclass(frozen=True)
class InventoryItemInput:
    name: str
    quantity: float | int
    category: InventoryCategory = InventoryCategory.PLANTA
    unit: str = INVENTORY_UNIT
    recorded_by: UserRole = DEFAULT_ROLE
    recorded_by_partner_name: Optional[str] = None


@dataclass(frozen=True)
class InventoryItem:
    id: str
    name: str
    quantity: int
    category: InventoryCategory
    unit: str = INVENTORY_UNIT
    recorded_by: UserRole = DEFAULT_ROLE
    recorded_by_partner_name: Optional[str] = None

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "category": self.category.value,
            "recorded_by": self.recorded_by.value,
            "recorded_by_partner_name": self.recorded_by_partner_name,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "InventoryItem":
        role, partner_name = _attribution(record)
        return cls(
            id=str(record["id"]),
            name=str(record["name"]),
            quantity=normalize_quantity(record["quantity"]),
            category=InventoryCategory(record["category"]),
            unit=INVENTORY_UNIT,
            recorded_by=role,
            recorded_by_partner_name=partner_name,
        )


# =============================================================================
# Loss (merma)
# =============================================================================


@dataclass(frozen=True)
class LossInput:
    product_name: str
    quantity: float | int
    reason: str
    date: datetime
    recorded_by: UserRole = DEFAULT_ROLE
    recorded_by_partner_name: Optional[str] = None
    source_type: Optional[LossSourceType] = None
    source_id: Optional[str] = None


@dataclass(frozen=True)
class Loss:
    id: str
    product_name: str
    quantity: int
    reason: str
    date: datetime
    recorded_by: UserRole = DEFAULT_ROLE
    recorded_by_partner_name: Optional[str] = None
    source_type: Optional[LossSourceType] = None
    source_id: Optional[str] = None

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "reason": self.reason,
            "date": self.date.isoformat(),
            "recorded_by": self.recorded_by.value,
            "recorded_by_partner_name": self.recorded_by_partner_name,
            "source_type": self.source_type.value if self.source_type else None,
            "source_id": self.source_id,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Loss":
        role, partner_name = _attribution(record)
        source_type = LossSourceType(record["source_type"]) if record.get("source_type") else None
        source_id = _optional_str(record.get("source_id")) or None
        if source_type is None or source_id is None:
            source_type, source_id = None, None
        return cls(
            id=str(record["id"]),
            product_name=str(record["product_name"]),
            quantity=normalize_quantity(record["quantity"]),
            reason=str(record["reason"]),
            date=_parse_datetime(record["date"]),
            recorded_by=role,
            recorded_by_partner_name=partner_name,
            source_type=source_type,
            source_id=source_id,
        )


# =============================================================================
# Reminder
# =============================================================================


@dataclass(frozen=True)
class ReminderInput:
    title: str
    scheduled_at: datetime
    note: Optional[str] = None


@dataclass(frozen=True)
class Reminder:
    id: str
    title: str
    scheduled_at: datetime
    note: Optional[str] = None

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "scheduled_at": self.scheduled_at.isoformat(),
            "note": self.note,
        }

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Reminder":
        return cls(
            id=str(record["id"]),
            title=str(record["title"]),
            scheduled_at=truncate_to_minute(_parse_datetime(record["scheduled_at"])),
            note=_optional_str(record.get("note")),
        )


# =============================================================================
# Mutation result
# =============================================================================


@dataclass(frozen=True)
class MutationResult:
    """
    Outcome of a store mutation.

    changed:   False for silent no-ops (unknown id, rejected loss).
    entity:    The entity as published, when the mutation produced one locally.
    persisted: Result of the local storage write (None when nothing was written
               or when the write happens remotely).
    pending:   Future of the background request in remote mode.
    reason:    Short machine-readable cause when changed is False.
    """

    changed: bool
    entity: Any = None
    persisted: Optional[bool] = None
    pending: Any = field(default=None, compare=False)
    reason: Optional[str] = None

    @classmethod
    def unchanged(cls, reason: str = "not_found") -> "MutationResult":
        return cls(changed=False, reason=reason)
