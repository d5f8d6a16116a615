"""
Tests for the remote mode: the HTTP gateway and RemoteDataService.

The gateway talks to the in-process FastAPI app through TestClient, or to
an httpx.MockTransport when a failure has to be simulated.
"""

import concurrent.futures
from datetime import timedelta

import httpx
import pytest

from shared.config.constants import LossSourceType, UserRole
from shared.infrastructure.correlation import bind_correlation_id
from shared.utils.exceptions import RemoteApiError
from data_store.models import HarvestInput, InventoryItemInput, LossInput, ReminderInput
from data_store.persistence import CollectionPersistence, MemoryStorage
from data_store.persistence.remote import CooperativeApiClient
from data_store.service import RemoteDataService
from tests.conftest import FIXED_NOW, ImmediateExecutor, find_by_name


def mock_api(handler):
    return CooperativeApiClient(httpx.Client(base_url="http://cooperativa.test", transport=httpx.MockTransport(handler)))


def envelope(data=None, success=True, message=None):
    return {"data": data, "success": success, "message": message}


class TestCooperativeApiClient:
    """Envelope unwrapping and error mapping."""

    def test_lists_and_creates_through_the_api(self, api):
        created = api.create_inventory_item({"name": "Guantes", "quantity": 6, "category": "herramienta"})

        assert created.id
        assert [item.name for item in api.list_inventory()] == ["Guantes"]

    def test_not_found_raises(self, api):
        with pytest.raises(RemoteApiError) as error:
            api.delete_harvest("missing")

        assert error.value.status_code == 404

    def test_unsuccessful_envelope_raises(self):
        api = mock_api(lambda request: httpx.Response(200, json=envelope(success=False, message="rechazado")))

        with pytest.raises(RemoteApiError, match="rechazado"):
            api.list_harvests()

    def test_body_that_is_not_an_envelope_raises(self):
        api = mock_api(lambda request: httpx.Response(200, json=[1, 2, 3]))

        with pytest.raises(RemoteApiError):
            api.list_losses()

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("sin conexión", request=request)

        with pytest.raises(RemoteApiError):
            mock_api(handler).list_inventory()

    def test_unreadable_record_raises(self):
        api = mock_api(lambda request: httpx.Response(200, json=envelope([{"id": "x"}])))

        with pytest.raises(RemoteApiError):
            api.list_harvests()

    def test_sends_correlation_id(self):
        seen = []

        def handler(request):
            seen.append(request.headers.get("X-Request-ID"))
            return httpx.Response(200, json=envelope([]))

        with bind_correlation_id("abc123"):
            mock_api(handler).list_harvests()

        assert seen == ["abc123"]


class TestRemoteDataService:
    """Mutations go to the API; successful ones re-fetch the affected collections."""

    def test_starts_from_server_state(self, api, persistence):
        api.create_harvest({"crop": "Cacao", "quantity": 8, "date": FIXED_NOW.isoformat()})

        data = RemoteDataService(api, persistence, executor=ImmediateExecutor())

        assert [harvest.crop for harvest in data.harvests_snapshot] == ["Cacao"]
        assert [item.name for item in data.inventory_snapshot] == ["Cacao"]

    def test_no_demo_seed_in_remote_mode(self, remote_store):
        assert remote_store.harvests_snapshot == ()
        assert remote_store.inventory_snapshot == ()

    def test_add_harvest_refreshes_harvests_and_inventory(self, remote_store):
        result = remote_store.add_harvest(
            HarvestInput(
                crop="Café",
                quantity=12.5,
                date=FIXED_NOW,
                recorded_by=UserRole.SOCIO,
                recorded_by_partner_name="Coop Andina",
            )
        )

        assert result.changed
        assert result.pending.result() is True
        harvest = remote_store.harvests_snapshot[0]
        assert harvest.quantity == 13
        assert harvest.recorded_by_partner_name == "Coop Andina"
        assert find_by_name(remote_store.inventory_snapshot, "Café").quantity == 13

    def test_update_and_remove_harvest(self, remote_store):
        remote_store.add_harvest(HarvestInput(crop="Cacao", quantity=8, date=FIXED_NOW))
        harvest = remote_store.harvests_snapshot[0]

        remote_store.update_harvest(harvest.id, {"sale_price_clp": 4200})
        assert remote_store.harvests_snapshot[0].sale_price_clp == 4200

        remote_store.update_harvest_quantity(harvest.id, 5)
        assert remote_store.harvests_snapshot[0].quantity == 5
        assert remote_store.harvests_snapshot[0].sale_price_clp == 4200

        assert remote_store.remove_harvest(harvest.id).pending.result() is True
        assert remote_store.harvests_snapshot == ()

    def test_inventory_mutations(self, remote_store):
        remote_store.add_inventory_item(InventoryItemInput(name="Guantes", quantity=6))
        item = remote_store.inventory_snapshot[0]

        remote_store.update_inventory_item(item.id, {"name": "Guantes de nitrilo"})
        remote_store.update_inventory_quantity(item.id, 2)

        assert remote_store.inventory_snapshot[0].name == "Guantes de nitrilo"
        assert remote_store.inventory_snapshot[0].quantity == 2

        remote_store.remove_inventory_item(item.id)
        assert remote_store.inventory_snapshot == ()

    def test_register_loss_creates_loss_and_depletes_inventory(self, remote_store):
        remote_store.add_inventory_item(InventoryItemInput(name="Semillas", quantity=25))
        item = remote_store.inventory_snapshot[0]

        result = remote_store.register_loss(
            LossInput(
                product_name="Semillas",
                quantity=5,
                reason="Humedad",
                date=FIXED_NOW,
                source_type=LossSourceType.INVENTORY,
                source_id=item.id,
            )
        )

        assert result.pending.result() is True
        assert remote_store.inventory_snapshot[0].quantity == 20
        assert remote_store.losses_snapshot[0].quantity == 5
        assert remote_store.losses_snapshot[0].source_id == item.id

    def test_register_loss_against_harvest(self, remote_store):
        remote_store.add_harvest(HarvestInput(crop="Cacao", quantity=8, date=FIXED_NOW))
        harvest = remote_store.harvests_snapshot[0]

        remote_store.register_loss(
            LossInput(
                product_name="Cacao",
                quantity=3,
                reason="Hongos",
                date=FIXED_NOW,
                source_type=LossSourceType.HARVEST,
                source_id=harvest.id,
            )
        )

        assert remote_store.harvests_snapshot[0].quantity == 5
        assert len(remote_store.losses_snapshot) == 1

    def test_register_loss_checks_last_fetched_stock(self, remote_store):
        remote_store.add_inventory_item(InventoryItemInput(name="Semillas", quantity=2))
        item = remote_store.inventory_snapshot[0]

        result = remote_store.register_loss(
            LossInput(
                product_name="Semillas",
                quantity=3,
                reason="Humedad",
                date=FIXED_NOW,
                source_type=LossSourceType.INVENTORY,
                source_id=item.id,
            )
        )

        assert not result.changed
        assert result.reason == "exceeds_stock"
        assert result.pending is None
        assert remote_store.losses_snapshot == ()

    def test_losses_ordered_by_date(self, remote_store):
        for days, quantity in [(2, 1), (0, 2), (1, 3)]:
            remote_store.add_loss(
                LossInput(product_name="Cacao", quantity=quantity, reason="Plaga", date=FIXED_NOW - timedelta(days=days))
            )

        assert [loss.quantity for loss in remote_store.losses_snapshot] == [2, 3, 1]

        remote_store.remove_loss(remote_store.losses_snapshot[0].id)
        assert [loss.quantity for loss in remote_store.losses_snapshot] == [3, 1]

    def test_unknown_ids_do_not_send_requests(self, remote_store):
        assert remote_store.update_harvest("missing", {"crop": "x"}).reason == "not_found"
        assert remote_store.remove_inventory_item("missing").reason == "not_found"
        assert remote_store.update_inventory_quantity("missing", 3).pending is None

    def test_loss_updates_are_unsupported(self, remote_store):
        result = remote_store.update_loss("any", {"reason": "x"})

        assert not result.changed
        assert result.reason == "unsupported"

    def test_failed_request_leaves_collection_unchanged(self, remote_store, client):
        remote_store.add_harvest(HarvestInput(crop="Cacao", quantity=8, date=FIXED_NOW))
        harvest = remote_store.harvests_snapshot[0]
        client.delete(f"/api/harvests/{harvest.id}")

        result = remote_store.remove_harvest(harvest.id)

        assert result.changed
        assert result.pending.result() is False
        assert remote_store.harvests_snapshot == (harvest,)

    def test_unreachable_api_keeps_empty_collections(self, persistence):
        def handler(request):
            raise httpx.ConnectError("sin conexión", request=request)

        data = RemoteDataService(mock_api(handler), persistence, executor=ImmediateExecutor(), auto_refresh=False)

        assert data.refresh().result() is False
        assert data.harvests_snapshot == ()

    def test_reminders_stay_local(self, remote_store, storage):
        result = remote_store.add_reminder(ReminderInput(title="Riego", scheduled_at=FIXED_NOW))

        assert result.changed
        assert result.pending is None
        assert result.persisted is True
        assert "reminders" in storage.keys()

    def test_worker_threads_carry_correlation_id(self):
        seen = []

        def handler(request):
            seen.append(request.headers.get("X-Request-ID"))
            return httpx.Response(200, json=envelope([]))

        executor = concurrent.futures.ThreadPoolExecutor(max_workers=1)
        data = RemoteDataService(
            mock_api(handler),
            CollectionPersistence(MemoryStorage()),
            executor=executor,
            auto_refresh=False,
        )
        with bind_correlation_id("op-42"):
            future = data.refresh()

        assert future.result(timeout=5) is True
        assert data.drain(timeout=5)
        assert seen == ["op-42", "op-42", "op-42"]
        data.close()
        executor.shutdown(wait=True)

    def test_drain_without_requests(self, remote_store):
        assert remote_store.drain(timeout=0) is True
