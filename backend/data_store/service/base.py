"""
Reactive store for harvests, inventory, losses and reminders.

DataService is the single source of truth for the four collections. Each
collection lives in a BehaviorSubject holding an immutable tuple; every
mutation builds a new tuple, publishes it and then writes it to the
persistence adapter. Write failures are logged and reported in the
MutationResult, never raised.

Ordering rules:
- harvests and inventory: newest first (insertion order)
- losses: date descending
- reminders: scheduled_at ascending
"""

from __future__ import annotations

import dataclasses
import threading
import uuid
from datetime import datetime
from typing import Any, Callable, Iterable, Mapping, Optional

from shared.config.constants import LossSourceType, StorageKeys, UserRole
from shared.config.logging import get_logger
from shared.utils.validators import normalize_partner_name, normalize_quantity
from data_store.models import (
    Harvest,
    HarvestInput,
    InventoryItem,
    InventoryItemInput,
    Loss,
    LossInput,
    MutationResult,
    Reminder,
    ReminderInput,
)
from data_store.normalization import (
    apply_changes,
    build_harvest,
    build_inventory_item,
    build_loss,
    build_reminder,
    sort_losses,
    sort_reminders,
)
from data_store.persistence import CollectionPersistence
from data_store.seed import demo_harvests, demo_inventory
from data_store.subject import BehaviorSubject, Observable

logger = get_logger(__name__)

IdFactory = Callable[[], str]
Clock = Callable[[], datetime]


def new_id() -> str:
    return str(uuid.uuid4())


_DECODERS: dict[str, Callable[[dict[str, Any]], Any]] = {
    StorageKeys.HARVESTS: Harvest.from_record,
    StorageKeys.INVENTORY: InventoryItem.from_record,
    StorageKeys.LOSSES: Loss.from_record,
    StorageKeys.REMINDERS: Reminder.from_record,
}


def _order(key: str, items: Iterable[Any]) -> tuple:
    if key == StorageKeys.LOSSES:
        return tuple(sort_losses(items))
    if key == StorageKeys.REMINDERS:
        return tuple(sort_reminders(items))
    return tuple(items)


class DataService:
    """
    Observable store of the cooperative's collections.

    Construct one per process and pass it to every consumer.

    Usage:
        data = DataService(CollectionPersistence(build_storage()))
        sub = data.inventory.subscribe(render_inventory)
        data.add_inventory_item(InventoryItemInput(name="Semillas", quantity=25))
        sub.unsubscribe()
    """

    def __init__(
        self,
        persistence: CollectionPersistence,
        *,
        seed_demo: bool = True,
        id_factory: IdFactory | None = None,
        clock: Clock | None = None,
    ):
        self._persistence = persistence
        self._seed_demo = seed_demo
        self._id_factory = id_factory or new_id
        self._clock = clock or datetime.now
        self._lock = threading.RLock()

        self._subjects: dict[str, BehaviorSubject[tuple]] = {
            key: BehaviorSubject((), name=key) for key in StorageKeys.ALL
        }
        for key in StorageKeys.ALL:
            initial = self._initial_collection(key)
            if initial:
                self._subjects[key].next(_order(key, initial))

        self.harvests: Observable[tuple[Harvest, ...]] = self._subjects[StorageKeys.HARVESTS].as_observable()
        self.inventory: Observable[tuple[InventoryItem, ...]] = self._subjects[StorageKeys.INVENTORY].as_observable()
        self.losses: Observable[tuple[Loss, ...]] = self._subjects[StorageKeys.LOSSES].as_observable()
        self.reminders: Observable[tuple[Reminder, ...]] = self._subjects[StorageKeys.REMINDERS].as_observable()

    # =========================================================================
    # Snapshots
    # =========================================================================

    @property
    def harvests_snapshot(self) -> tuple[Harvest, ...]:
        return self._subjects[StorageKeys.HARVESTS].value

    @property
    def inventory_snapshot(self) -> tuple[InventoryItem, ...]:
        return self._subjects[StorageKeys.INVENTORY].value

    @property
    def losses_snapshot(self) -> tuple[Loss, ...]:
        return self._subjects[StorageKeys.LOSSES].value

    @property
    def reminders_snapshot(self) -> tuple[Reminder, ...]:
        return self._subjects[StorageKeys.REMINDERS].value

    def now(self) -> datetime:
        return self._clock()

    # =========================================================================
    # Harvests
    # =========================================================================

    def add_harvest(self, data: HarvestInput) -> MutationResult:
        return self._add(StorageKeys.HARVESTS, build_harvest(self._id_factory(), data))

    def update_harvest(self, harvest_id: str, changes: Mapping[str, Any]) -> MutationResult:
        return self._update(StorageKeys.HARVESTS, harvest_id, lambda current: apply_changes(current, changes))

    def remove_harvest(self, harvest_id: str) -> MutationResult:
        return self._remove(StorageKeys.HARVESTS, harvest_id)

    def update_harvest_quantity(
        self,
        harvest_id: str,
        quantity: Any,
        recorded_by: UserRole | str | None = None,
        recorded_by_partner_name: Optional[str] = None,
    ) -> MutationResult:
        return self._update(
            StorageKeys.HARVESTS,
            harvest_id,
            lambda current: _with_quantity(current, quantity, recorded_by, recorded_by_partner_name),
        )

    # =========================================================================
    # Inventory
    # =========================================================================

    def add_inventory_item(self, data: InventoryItemInput) -> MutationResult:
        return self._add(StorageKeys.INVENTORY, build_inventory_item(self._id_factory(), data))

    def update_inventory_item(self, item_id: str, changes: Mapping[str, Any]) -> MutationResult:
        return self._update(StorageKeys.INVENTORY, item_id, lambda current: apply_changes(current, changes))

    def remove_inventory_item(self, item_id: str) -> MutationResult:
        return self._remove(StorageKeys.INVENTORY, item_id)

    def update_inventory_quantity(
        self,
        item_id: str,
        quantity: Any,
        recorded_by: UserRole | str | None = None,
        recorded_by_partner_name: Optional[str] = None,
    ) -> MutationResult:
        return self._update(
            StorageKeys.INVENTORY,
            item_id,
            lambda current: _with_quantity(current, quantity, recorded_by, recorded_by_partner_name),
        )

    # =========================================================================
    # Losses
    # =========================================================================

    def add_loss(self, data: LossInput) -> MutationResult:
        """
        Record a loss without touching stock.

        Depleting the source is the caller's second step, through
        update_inventory_quantity / update_harvest_quantity. Use
        register_loss() for the single-step variant.
        """
        return self._add(StorageKeys.LOSSES, build_loss(self._id_factory(), data))

    def update_loss(self, loss_id: str, changes: Mapping[str, Any]) -> MutationResult:
        return self._update(StorageKeys.LOSSES, loss_id, lambda current: apply_changes(current, changes))

    def remove_loss(self, loss_id: str) -> MutationResult:
        return self._remove(StorageKeys.LOSSES, loss_id)

    def register_loss(self, data: LossInput) -> MutationResult:
        """
        Record a loss and deplete its source in one step.

        Rejected (changed=False) when the quantity is not positive, when the
        named source does not exist, or when the quantity exceeds the
        source's current stock. A loss without a source is simply added.
        """
        with self._lock:
            loss = build_loss(self._id_factory(), data)
            if loss.quantity <= 0:
                return MutationResult.unchanged("invalid_quantity")
            if loss.source_type is None:
                return self._add(StorageKeys.LOSSES, loss)

            source = self.resolve_loss_source(loss)
            if source is None:
                logger.info(
                    "Loss rejected: source not found",
                    source_type=loss.source_type.value,
                    source_id=loss.source_id,
                )
                return MutationResult.unchanged("source_not_found")
            if loss.quantity > source.quantity:
                logger.info(
                    "Loss rejected: exceeds stock",
                    source_id=loss.source_id,
                    quantity=loss.quantity,
                    stock=source.quantity,
                )
                return MutationResult.unchanged("exceeds_stock")

            added = self._add(StorageKeys.LOSSES, loss)
            remaining = max(source.quantity - loss.quantity, 0)
            key = _source_key(loss.source_type)
            depleted = self._update(
                key,
                source.id,
                lambda current: _with_quantity(current, remaining, loss.recorded_by, loss.recorded_by_partner_name),
            )
            return dataclasses.replace(added, persisted=bool(added.persisted and depleted.persisted))

    def resolve_loss_source(self, loss: Loss) -> InventoryItem | Harvest | None:
        """Current entity a loss depletes, or None when it has none or it no longer exists."""
        if loss.source_type is None or loss.source_id is None:
            return None
        return _find(self._subjects[_source_key(loss.source_type)].value, loss.source_id)

    # =========================================================================
    # Reminders
    # =========================================================================

    def add_reminder(self, data: ReminderInput) -> MutationResult:
        return self._add(StorageKeys.REMINDERS, build_reminder(self._id_factory(), data))

    def update_reminder(self, reminder_id: str, changes: Mapping[str, Any] | ReminderInput) -> MutationResult:
        """Replace a reminder; accepts a full ReminderInput or a mapping of changes."""
        if isinstance(changes, ReminderInput):
            replacement = changes
            return self._update(
                StorageKeys.REMINDERS, reminder_id, lambda current: build_reminder(current.id, replacement)
            )
        return self._update(StorageKeys.REMINDERS, reminder_id, lambda current: apply_changes(current, changes))

    def remove_reminder(self, reminder_id: str) -> MutationResult:
        return self._remove(StorageKeys.REMINDERS, reminder_id)

    # =========================================================================
    # Collection plumbing
    # =========================================================================

    def _initial_collection(self, key: str) -> list[Any]:
        restored = self._persistence.read(key, _DECODERS[key])
        if restored is not None:
            logger.debug("Collection restored", key=key, count=len(restored))
            return restored

        seed = self._seed(key)
        if seed:
            # Persist the seed so ids stay stable across sessions
            self._persistence.write(key, seed)
        return seed

    def _seed(self, key: str) -> list[Any]:
        if not self._seed_demo:
            return []
        if key == StorageKeys.HARVESTS:
            return demo_harvests(self._clock(), self._id_factory)
        if key == StorageKeys.INVENTORY:
            return demo_inventory(self._id_factory)
        return []

    def _commit(self, key: str, items: Iterable[Any]) -> bool:
        """Publish a new snapshot and persist it. Returns the write outcome."""
        snapshot = _order(key, items)
        self._subjects[key].next(snapshot)
        return self._persistence.write(key, snapshot).ok

    def _replace_collection(self, key: str, items: Iterable[Any]) -> None:
        """Publish a snapshot without writing it (authoritative data from elsewhere)."""
        with self._lock:
            self._subjects[key].next(_order(key, items))

    def _add(self, key: str, entity: Any) -> MutationResult:
        with self._lock:
            current = self._subjects[key].value
            if key == StorageKeys.REMINDERS:
                items = (*current, entity)
            else:
                items = (entity, *current)
            persisted = self._commit(key, items)
        logger.debug("Entity added", collection=key, entity_id=entity.id, persisted=persisted)
        return MutationResult(changed=True, entity=entity, persisted=persisted)

    def _update(self, key: str, entity_id: str, transform: Callable[[Any], Any]) -> MutationResult:
        with self._lock:
            current = self._subjects[key].value
            index = _index_of(current, entity_id)
            if index is None:
                logger.debug("Update ignored: unknown id", collection=key, entity_id=entity_id)
                return MutationResult.unchanged()
            updated = transform(current[index])
            items = (*current[:index], updated, *current[index + 1:])
            persisted = self._commit(key, items)
        return MutationResult(changed=True, entity=updated, persisted=persisted)

    def _remove(self, key: str, entity_id: str) -> MutationResult:
        with self._lock:
            current = self._subjects[key].value
            index = _index_of(current, entity_id)
            if index is None:
                logger.debug("Remove ignored: unknown id", collection=key, entity_id=entity_id)
                return MutationResult.unchanged()
            removed = current[index]
            persisted = self._commit(key, current[:index] + current[index + 1:])
        return MutationResult(changed=True, entity=removed, persisted=persisted)


# =============================================================================
# Helpers
# =============================================================================


def _source_key(source_type: LossSourceType) -> str:
    if LossSourceType(source_type) is LossSourceType.INVENTORY:
        return StorageKeys.INVENTORY
    return StorageKeys.HARVESTS


def _index_of(items: tuple, entity_id: str) -> Optional[int]:
    for index, item in enumerate(items):
        if item.id == entity_id:
            return index
    return None


def _find(items: tuple, entity_id: str) -> Any:
    index = _index_of(items, entity_id)
    return None if index is None else items[index]


def _with_quantity(
    entity: Harvest | InventoryItem,
    quantity: Any,
    recorded_by: UserRole | str | None,
    recorded_by_partner_name: Optional[str],
) -> Harvest | InventoryItem:
    """Change stock and, when a role is given, attribution. Nothing else is touched."""
    changes: dict[str, Any] = {"quantity": normalize_quantity(quantity)}
    if recorded_by is not None:
        role = UserRole(recorded_by)
        changes["recorded_by"] = role
        changes["recorded_by_partner_name"] = normalize_partner_name(role, recorded_by_partner_name)
    return dataclasses.replace(entity, **changes)
