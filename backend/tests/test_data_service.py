"""
Tests for DataService - the reactive store.

Tests cover:
- Seeding and restoring collections
- Ordering rules per collection
- Mutations, silent no-ops and persistence failures
- Losses against stock (two-step and single-step)
"""

import json
import threading
from datetime import datetime, timedelta, timezone

import pytest

from shared.config.constants import InventoryCategory, LossSourceType, StorageKeys, UserRole
from data_store.models import HarvestInput, InventoryItemInput, LossInput, ReminderInput
from data_store.persistence import CollectionPersistence, MemoryStorage, PersistenceResult
from data_store.service import DataService
from tests.conftest import FIXED_NOW, find_by_name, sequential_ids


class FailingStorage(MemoryStorage):
    """Reads work, writes always fail."""

    def set(self, key, value):
        return PersistenceResult.failure("disco lleno")


def loss_input(quantity, source_type=None, source_id=None, date=FIXED_NOW, role=UserRole.PRESIDENTE):
    return LossInput(
        product_name="Semillas",
        quantity=quantity,
        reason="Humedad",
        date=date,
        recorded_by=role,
        source_type=source_type,
        source_id=source_id,
    )


class TestInitialState:
    """Seed, restore and fallback."""

    def test_seed_has_demo_harvests_and_inventory(self, seeded_store):
        assert len(seeded_store.harvests_snapshot) == 2
        assert len(seeded_store.inventory_snapshot) == 6
        assert seeded_store.losses_snapshot == ()
        assert seeded_store.reminders_snapshot == ()

    def test_seed_is_persisted_and_restored_with_same_ids(self, seeded_store, persistence):
        restored = DataService(persistence, seed_demo=True, id_factory=sequential_ids("other"))

        assert [item.id for item in restored.inventory_snapshot] == [
            item.id for item in seeded_store.inventory_snapshot
        ]
        assert restored.harvests_snapshot == seeded_store.harvests_snapshot

    def test_no_seed_when_disabled(self, store, storage):
        assert store.harvests_snapshot == ()
        assert store.inventory_snapshot == ()
        assert storage.keys() == []

    def test_malformed_blob_falls_back_to_seed(self):
        storage = MemoryStorage({StorageKeys.INVENTORY: "{not json"})
        data = DataService(CollectionPersistence(storage), id_factory=sequential_ids())

        assert len(data.inventory_snapshot) == 6

    def test_empty_persisted_collection_is_not_reseeded(self):
        storage = MemoryStorage({StorageKeys.INVENTORY: "[]"})
        data = DataService(CollectionPersistence(storage), id_factory=sequential_ids())

        assert data.inventory_snapshot == ()

    def test_restore_with_naive_and_aware_dates(self):
        blob = json.dumps(
            [
                {"id": "l-1", "product_name": "Cacao", "quantity": 2, "reason": "Hongos", "date": "2024-01-01T09:00:00"},
                {"id": "l-2", "product_name": "Cacao", "quantity": 1, "reason": "Plaga", "date": "2024-01-02T09:00:00+00:00"},
            ]
        )
        storage = MemoryStorage({StorageKeys.LOSSES: blob})

        data = DataService(CollectionPersistence(storage), seed_demo=False)

        assert [loss.id for loss in data.losses_snapshot] == ["l-2", "l-1"]
        assert all(loss.date.tzinfo is None for loss in data.losses_snapshot)

    def test_subscribers_get_current_snapshot_immediately(self, seeded_store):
        received = []
        seeded_store.inventory.subscribe(received.append)

        assert len(received) == 1
        assert isinstance(received[0], tuple)
        assert len(received[0]) == 6


class TestHarvestsAndInventory:
    """Newest first, updates in place."""

    def test_add_prepends_and_publishes(self, store):
        received = []
        store.harvests.subscribe(received.append)

        store.add_harvest(HarvestInput(crop="Cacao", quantity=8, date=FIXED_NOW))
        result = store.add_harvest(HarvestInput(crop="Café", quantity=12, date=FIXED_NOW))

        assert result.changed
        assert result.persisted is True
        assert [harvest.crop for harvest in store.harvests_snapshot] == ["Café", "Cacao"]
        assert len(received) == 3

    def test_add_persists_collection(self, store, persistence):
        store.add_inventory_item(InventoryItemInput(name="Guantes", quantity=6))

        restored = DataService(persistence, seed_demo=False)
        assert [item.name for item in restored.inventory_snapshot] == ["Guantes"]

    def test_update_keeps_position(self, store):
        first = store.add_inventory_item(InventoryItemInput(name="A", quantity=1)).entity
        store.add_inventory_item(InventoryItemInput(name="B", quantity=2))

        result = store.update_inventory_item(first.id, {"name": "A2", "category": InventoryCategory.HERRAMIENTA})

        assert result.entity.name == "A2"
        assert [item.name for item in store.inventory_snapshot] == ["B", "A2"]

    def test_unknown_id_is_a_silent_noop(self, store):
        store.add_inventory_item(InventoryItemInput(name="A", quantity=1))
        received = []
        store.inventory.subscribe(received.append)

        result = store.update_inventory_quantity("missing", 5)
        removed = store.remove_harvest("missing")

        assert not result.changed
        assert result.reason == "not_found"
        assert not removed.changed
        assert len(received) == 1

    def test_quantity_update_with_role_sets_attribution(self, store):
        item = store.add_inventory_item(InventoryItemInput(name="Semillas", quantity=25)).entity

        updated = store.update_inventory_quantity(item.id, 20.4, UserRole.SOCIO, " Coop Andina ").entity

        assert updated.quantity == 20
        assert updated.recorded_by is UserRole.SOCIO
        assert updated.recorded_by_partner_name == "Coop Andina"

    def test_quantity_update_without_role_keeps_attribution(self, store):
        harvest = store.add_harvest(
            HarvestInput(
                crop="Cacao",
                quantity=8,
                date=FIXED_NOW,
                recorded_by=UserRole.SOCIO,
                recorded_by_partner_name="Finca Aurora",
                sale_price_clp=3000,
            )
        ).entity

        updated = store.update_harvest_quantity(harvest.id, 3).entity

        assert updated.quantity == 3
        assert updated.recorded_by_partner_name == "Finca Aurora"
        assert updated.sale_price_clp == 3000

    def test_remove(self, seeded_store):
        target = seeded_store.harvests_snapshot[0]

        result = seeded_store.remove_harvest(target.id)

        assert result.entity == target
        assert target not in seeded_store.harvests_snapshot

    def test_write_failure_still_publishes(self):
        data = DataService(CollectionPersistence(FailingStorage()), seed_demo=False)

        result = data.add_inventory_item(InventoryItemInput(name="Guantes", quantity=6))

        assert result.changed
        assert result.persisted is False
        assert len(data.inventory_snapshot) == 1

    def test_concurrent_adds_are_not_lost(self, store):
        def add_many(prefix):
            for index in range(25):
                store.add_inventory_item(InventoryItemInput(name=f"{prefix}-{index}", quantity=index))

        threads = [threading.Thread(target=add_many, args=(prefix,)) for prefix in "abcd"]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store.inventory_snapshot) == 100
        assert len({item.id for item in store.inventory_snapshot}) == 100


class TestReminders:
    """Reminders stay sorted by schedule."""

    def test_sorted_by_schedule_regardless_of_insertion(self, store):
        store.add_reminder(ReminderInput(title="A", scheduled_at=datetime(2024, 1, 10, 9, 0)))
        store.add_reminder(ReminderInput(title="B", scheduled_at=datetime(2024, 1, 5, 9, 0)))

        assert [reminder.title for reminder in store.reminders_snapshot] == ["B", "A"]

    def test_equal_times_keep_insertion_order(self, store):
        when = datetime(2024, 1, 5, 9, 0)
        store.add_reminder(ReminderInput(title="first", scheduled_at=when))
        store.add_reminder(ReminderInput(title="second", scheduled_at=when))

        assert [reminder.title for reminder in store.reminders_snapshot] == ["first", "second"]

    def test_update_with_full_input_resorts(self, store):
        early = store.add_reminder(ReminderInput(title="A", scheduled_at=datetime(2024, 1, 1, 9, 0))).entity
        store.add_reminder(ReminderInput(title="B", scheduled_at=datetime(2024, 1, 2, 9, 0)))

        store.update_reminder(early.id, ReminderInput(title="A", scheduled_at=datetime(2024, 1, 3, 9, 0), note="tarde"))

        assert [reminder.title for reminder in store.reminders_snapshot] == ["B", "A"]
        assert store.reminders_snapshot[1].note == "tarde"
        assert store.reminders_snapshot[1].id == early.id

    def test_update_with_mapping(self, store):
        reminder = store.add_reminder(ReminderInput(title="A", scheduled_at=datetime(2024, 1, 1, 9, 0))).entity

        result = store.update_reminder(reminder.id, {"title": "Poda"})

        assert result.entity.title == "Poda"
        assert result.entity.scheduled_at == datetime(2024, 1, 1, 9, 0)

    def test_remove(self, store):
        reminder = store.add_reminder(ReminderInput(title="A", scheduled_at=datetime(2024, 1, 1, 9, 0))).entity

        assert store.remove_reminder(reminder.id).changed
        assert store.reminders_snapshot == ()


class TestLosses:
    """Ledger order and stock depletion."""

    @pytest.fixture
    def semillas(self, store):
        return store.add_inventory_item(InventoryItemInput(name="Semillas", quantity=25)).entity

    def test_two_step_loss_then_depletion(self, store, semillas):
        store.add_loss(loss_input(5, LossSourceType.INVENTORY, semillas.id))
        store.update_inventory_quantity(semillas.id, 20, UserRole.PRESIDENTE)

        assert store.inventory_snapshot[0].quantity == 20
        assert len(store.losses_snapshot) == 1
        assert store.losses_snapshot[0].quantity == 5

    def test_add_loss_does_not_touch_stock(self, store, semillas):
        store.add_loss(loss_input(5, LossSourceType.INVENTORY, semillas.id))

        assert store.inventory_snapshot[0].quantity == 25

    def test_losses_ordered_by_date_descending(self, store):
        store.add_loss(loss_input(1, date=FIXED_NOW - timedelta(days=2)))
        store.add_loss(loss_input(2, date=FIXED_NOW))
        store.add_loss(loss_input(3, date=FIXED_NOW - timedelta(days=1)))

        assert [loss.quantity for loss in store.losses_snapshot] == [2, 3, 1]

    def test_aware_date_joins_naive_ledger(self, store):
        store.add_loss(loss_input(1, date=FIXED_NOW - timedelta(days=3)))
        aware = (FIXED_NOW + timedelta(days=3)).replace(tzinfo=timezone.utc)

        result = store.add_loss(loss_input(2, date=aware))

        assert result.entity.date.tzinfo is None
        assert [loss.quantity for loss in store.losses_snapshot] == [2, 1]

    def test_register_loss_depletes_source(self, store, semillas):
        result = store.register_loss(loss_input(5, LossSourceType.INVENTORY, semillas.id, role=UserRole.SECRETARIA))

        assert result.changed
        assert result.persisted is True
        assert store.inventory_snapshot[0].quantity == 20
        assert store.inventory_snapshot[0].recorded_by is UserRole.SECRETARIA
        assert store.losses_snapshot[0].source_id == semillas.id

    def test_register_loss_can_empty_the_source(self, store, semillas):
        assert store.register_loss(loss_input(25, LossSourceType.INVENTORY, semillas.id)).changed

        assert store.inventory_snapshot[0].quantity == 0

    def test_register_loss_rejects_more_than_stock(self, store, semillas):
        result = store.register_loss(loss_input(26, LossSourceType.INVENTORY, semillas.id))

        assert not result.changed
        assert result.reason == "exceeds_stock"
        assert store.losses_snapshot == ()
        assert store.inventory_snapshot[0].quantity == 25

    def test_register_loss_rejects_unknown_source(self, store):
        result = store.register_loss(loss_input(1, LossSourceType.HARVEST, "missing"))

        assert result.reason == "source_not_found"
        assert store.losses_snapshot == ()

    def test_register_loss_rejects_non_positive_quantity(self, store, semillas):
        result = store.register_loss(loss_input(0.4, LossSourceType.INVENTORY, semillas.id))

        assert result.reason == "invalid_quantity"

    def test_register_loss_without_source_is_just_added(self, store):
        result = store.register_loss(loss_input(3))

        assert result.changed
        assert len(store.losses_snapshot) == 1

    def test_register_loss_against_harvest(self, seeded_store):
        cafe = find_by_name(seeded_store.harvests_snapshot, "Café Arábica")

        seeded_store.register_loss(loss_input(2, LossSourceType.HARVEST, cafe.id))

        assert find_by_name(seeded_store.harvests_snapshot, "Café Arábica").quantity == 10

    def test_resolve_loss_source_after_source_removed(self, store, semillas):
        loss = store.register_loss(loss_input(5, LossSourceType.INVENTORY, semillas.id)).entity
        assert store.resolve_loss_source(loss).quantity == 20

        store.remove_inventory_item(semillas.id)

        assert store.resolve_loss_source(loss) is None
        assert store.losses_snapshot[0].source_id == semillas.id

    def test_update_and_remove_loss(self, store):
        loss = store.add_loss(loss_input(3)).entity

        assert store.update_loss(loss.id, {"reason": "Plaga"}).entity.reason == "Plaga"
        assert store.remove_loss(loss.id).changed
        assert store.losses_snapshot == ()
