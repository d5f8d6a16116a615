"""
Entity construction and re-normalization.

Every add and update goes through these builders so the same rules apply
no matter where the data came from:

- quantities rounded to whole units, never negative
- prices <= 0 or not numeric are treated as absent
- partner name kept only when the recording role requires it
- inventory unit fixed to "unidades"
- loss source_type/source_id kept only as a pair
- reminder schedule truncated to whole minutes
- dates kept as naive local time
"""

from __future__ import annotations

import dataclasses
from typing import Any, Iterable, Mapping, TypeVar

from shared.config.constants import (
    DEFAULT_ROLE,
    INVENTORY_UNIT,
    HarvestCategory,
    InventoryCategory,
    LossSourceType,
    UserRole,
)
from shared.utils.validators import (
    clean_text,
    normalize_partner_name,
    normalize_price,
    normalize_quantity,
    to_naive_local,
    truncate_to_minute,
)
from data_store.models import (
    Harvest,
    HarvestInput,
    InventoryItem,
    InventoryItemInput,
    Loss,
    LossInput,
    Reminder,
    ReminderInput,
)

EntityT = TypeVar("EntityT", Harvest, InventoryItem, Loss, Reminder)


def _role(value: Any) -> UserRole:
    if value is None:
        return DEFAULT_ROLE
    return UserRole(value)


def build_harvest(harvest_id: str, data: HarvestInput) -> Harvest:
    role = _role(data.recorded_by)
    return Harvest(
        id=harvest_id,
        crop=clean_text(data.crop) or "",
        category=HarvestCategory(data.category),
        quantity=normalize_quantity(data.quantity),
        date=to_naive_local(data.date),
        recorded_by=role,
        recorded_by_partner_name=normalize_partner_name(role, data.recorded_by_partner_name),
        purchase_price_clp=normalize_price(data.purchase_price_clp),
        sale_price_clp=normalize_price(data.sale_price_clp),
    )


def build_inventory_item(item_id: str, data: InventoryItemInput) -> InventoryItem:
    role = _role(data.recorded_by)
    return InventoryItem(
        id=item_id,
        name=clean_text(data.name) or "",
        quantity=normalize_quantity(data.quantity),
        category=InventoryCategory(data.category),
        unit=INVENTORY_UNIT,
        recorded_by=role,
        recorded_by_partner_name=normalize_partner_name(role, data.recorded_by_partner_name),
    )


def build_loss(loss_id: str, data: LossInput) -> Loss:
    role = _role(data.recorded_by)
    source_type = LossSourceType(data.source_type) if data.source_type else None
    source_id = clean_text(data.source_id)
    if source_type is None or source_id is None:
        source_type, source_id = None, None
    return Loss(
        id=loss_id,
        product_name=clean_text(data.product_name) or "",
        quantity=normalize_quantity(data.quantity),
        reason=clean_text(data.reason) or "",
        date=to_naive_local(data.date),
        recorded_by=role,
        recorded_by_partner_name=normalize_partner_name(role, data.recorded_by_partner_name),
        source_type=source_type,
        source_id=source_id,
    )


def build_reminder(reminder_id: str, data: ReminderInput) -> Reminder:
    return Reminder(
        id=reminder_id,
        title=clean_text(data.title) or "",
        scheduled_at=truncate_to_minute(to_naive_local(data.scheduled_at)),
        note=clean_text(data.note),
    )


_BUILDERS = {
    Harvest: (HarvestInput, build_harvest),
    InventoryItem: (InventoryItemInput, build_inventory_item),
    Loss: (LossInput, build_loss),
    Reminder: (ReminderInput, build_reminder),
}


def as_input(entity: EntityT):
    """Project an entity back onto its input type (drops the id)."""
    input_cls, _ = _BUILDERS[type(entity)]
    names = {f.name for f in dataclasses.fields(input_cls)}
    return input_cls(**{name: getattr(entity, name) for name in names})


def apply_changes(entity: EntityT, changes: Mapping[str, Any]) -> EntityT:
    """
    Merge changes into an entity and re-normalize it.

    Keys that are not input fields (including "id") are ignored.
    """
    input_cls, builder = _BUILDERS[type(entity)]
    allowed = {f.name for f in dataclasses.fields(input_cls)}
    current = as_input(entity)
    merged = dataclasses.replace(current, **{k: v for k, v in changes.items() if k in allowed})
    return builder(entity.id, merged)


def sort_reminders(reminders: Iterable[Reminder]) -> list[Reminder]:
    """Ascending by scheduled_at; equal times keep their relative order."""
    return sorted(reminders, key=lambda reminder: reminder.scheduled_at)


def sort_losses(losses: Iterable[Loss]) -> list[Loss]:
    """Most recent first; equal dates keep their relative order."""
    return sorted(losses, key=lambda loss: loss.date, reverse=True)
