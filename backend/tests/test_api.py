"""
Tests for the REST API backing the remote mode.
"""

import pytest

from rest_api.services.domain import HarvestService, InventoryService
from shared.utils.exceptions import NotFoundError
from shared.utils.schemas import HarvestPayload, QuantityUpdatePayload


def harvest_body(**overrides):
    body = {"crop": "Cacao", "quantity": 8, "date": "2026-10-18T07:30:00", "category": "segunda"}
    body.update(overrides)
    return body


def loss_body(**overrides):
    body = {"product_name": "Cacao", "quantity": 2, "reason": "Hongos", "date": "2026-10-18T10:00:00"}
    body.update(overrides)
    return body


class TestHealthEndpoints:
    """Test health check API endpoints."""

    def test_health_check(self, client):
        """Basic health check should return healthy status."""
        response = client.get("/api/health")
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == {"status": "healthy", "service": "rest-api"}

    def test_request_id_is_echoed(self, client):
        response = client.get("/api/health", headers={"X-Request-ID": "req-1"})

        assert response.headers["X-Request-ID"] == "req-1"

    def test_request_id_is_generated(self, client):
        assert client.get("/api/health").headers["X-Request-ID"]


class TestHarvestEndpoints:
    """Harvest CRUD and the inventory side effect."""

    def test_create_returns_envelope(self, client):
        response = client.post("/api/harvests", json=harvest_body(sale_price_clp=0, purchase_price_clp=1200.4))

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Cosecha registrada"
        assert body["data"]["id"]
        assert body["data"]["category"] == "segunda"
        assert body["data"]["sale_price_clp"] is None
        assert body["data"]["purchase_price_clp"] == 1200

    def test_create_stocks_crop_in_inventory(self, client):
        client.post("/api/harvests", json=harvest_body(quantity=8))
        client.post("/api/harvests", json=harvest_body(quantity=4))

        inventory = client.get("/api/inventory").json()["data"]

        assert len(inventory) == 1
        assert inventory[0]["name"] == "Cacao"
        assert inventory[0]["category"] == "planta"
        assert inventory[0]["quantity"] == 12

    def test_list_newest_first(self, client):
        client.post("/api/harvests", json=harvest_body(crop="Primero"))
        client.post("/api/harvests", json=harvest_body(crop="Segundo"))

        crops = [entry["crop"] for entry in client.get("/api/harvests").json()["data"]]

        assert crops == ["Segundo", "Primero"]

    def test_partner_name_kept_only_for_socio(self, client):
        socio = client.post(
            "/api/harvests", json=harvest_body(recorded_by="socio", recorded_by_partner_name=" Coop Andina ")
        ).json()["data"]
        presidente = client.post(
            "/api/harvests", json=harvest_body(recorded_by="presidente", recorded_by_partner_name="Coop Andina")
        ).json()["data"]

        assert socio["recorded_by_partner_name"] == "Coop Andina"
        assert presidente["recorded_by_partner_name"] is None

    def test_replace(self, client):
        harvest_id = client.post("/api/harvests", json=harvest_body()).json()["data"]["id"]

        response = client.put(f"/api/harvests/{harvest_id}", json=harvest_body(crop="Cacao fino", quantity=3))

        assert response.status_code == 200
        assert response.json()["data"]["crop"] == "Cacao fino"
        assert client.get(f"/api/harvests/{harvest_id}").json()["data"]["quantity"] == 3

    def test_quantity_patch_only_touches_stock_and_attribution(self, client):
        harvest_id = client.post("/api/harvests", json=harvest_body(sale_price_clp=3000)).json()["data"]["id"]

        data = client.patch(
            f"/api/harvests/{harvest_id}/quantity",
            json={"quantity": 5.5, "recorded_by": "socio", "recorded_by_partner_name": "Finca Aurora"},
        ).json()["data"]

        assert data["quantity"] == 6
        assert data["sale_price_clp"] == 3000
        assert data["recorded_by"] == "socio"
        assert data["recorded_by_partner_name"] == "Finca Aurora"

    def test_delete(self, client):
        harvest_id = client.post("/api/harvests", json=harvest_body()).json()["data"]["id"]

        response = client.delete(f"/api/harvests/{harvest_id}")

        assert response.status_code == 200
        assert response.json() == {"data": None, "success": True, "message": "Cosecha eliminada"}
        assert client.get(f"/api/harvests/{harvest_id}").status_code == 404

    def test_unknown_id_is_404_envelope(self, client):
        response = client.get("/api/harvests/missing")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["data"] is None
        assert body["message"] == "Cosecha con ID missing no encontrado"

    @pytest.mark.parametrize(
        "overrides",
        [{"quantity": -1}, {"crop": "   "}, {"category": "cuarta"}, {"recorded_by": "gerente"}, {"date": "ayer"}],
    )
    def test_invalid_body_is_422_envelope(self, client, overrides):
        response = client.post("/api/harvests", json=harvest_body(**overrides))

        assert response.status_code == 422
        assert response.json()["success"] is False
        assert response.json()["message"]


class TestInventoryEndpoints:
    """Inventory CRUD."""

    def test_unit_is_always_unidades(self, client):
        data = client.post(
            "/api/inventory", json={"name": "Guantes", "quantity": 6, "unit": "cajas", "category": "herramienta"}
        ).json()["data"]

        assert data["unit"] == "unidades"

    def test_quantity_patch(self, client):
        item_id = client.post("/api/inventory", json={"name": "Semillas", "quantity": 25}).json()["data"]["id"]

        data = client.patch(f"/api/inventory/{item_id}/quantity", json={"quantity": 20}).json()["data"]

        assert data["quantity"] == 20
        assert data["recorded_by"] == "presidente"

    def test_negative_quantity_patch_rejected(self, client):
        item_id = client.post("/api/inventory", json={"name": "Semillas", "quantity": 25}).json()["data"]["id"]

        assert client.patch(f"/api/inventory/{item_id}/quantity", json={"quantity": -3}).status_code == 422

    def test_delete_unknown(self, client):
        response = client.delete("/api/inventory/missing")

        assert response.status_code == 404
        assert response.json()["message"] == "Insumo con ID missing no encontrado"


class TestLossEndpoints:
    """Losses are created, listed and deleted."""

    def test_create_with_source(self, client):
        response = client.post("/api/losses", json=loss_body(source_type="harvest", source_id="h-1"))

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["source_type"] == "harvest"
        assert data["source_id"] == "h-1"

    @pytest.mark.parametrize(
        "overrides",
        [{"quantity": 0}, {"reason": ""}, {"source_type": "inventory"}, {"source_id": "i-1"}],
    )
    def test_invalid_loss_rejected(self, client, overrides):
        assert client.post("/api/losses", json=loss_body(**overrides)).status_code == 422

    def test_list_by_date_descending(self, client):
        client.post("/api/losses", json=loss_body(date="2026-10-10T10:00:00", quantity=1))
        client.post("/api/losses", json=loss_body(date="2026-10-15T10:00:00", quantity=2))
        client.post("/api/losses", json=loss_body(date="2026-10-12T10:00:00", quantity=3))

        quantities = [entry["quantity"] for entry in client.get("/api/losses").json()["data"]]

        assert quantities == [2, 3, 1]

    def test_delete(self, client):
        loss_id = client.post("/api/losses", json=loss_body()).json()["data"]["id"]

        assert client.delete(f"/api/losses/{loss_id}").json()["message"] == "Merma eliminada"
        assert client.get("/api/losses").json()["data"] == []

    def test_losses_cannot_be_updated(self, client):
        loss_id = client.post("/api/losses", json=loss_body()).json()["data"]["id"]

        assert client.put(f"/api/losses/{loss_id}", json=loss_body()).status_code == 405


class TestServices:
    """Service layer used directly, without HTTP."""

    def test_harvest_create_reuses_planta_item(self, db_session):
        inventory = InventoryService(db_session)
        harvests = HarvestService(db_session)
        payload = HarvestPayload(crop="Quinoa", quantity=5, date="2026-10-18T08:00:00")

        harvests.create(payload)
        harvests.create(payload)

        items = inventory.list_all()
        assert [(entry.name, entry.quantity) for entry in items] == [("Quinoa", 10)]

    def test_update_quantity_unknown_raises(self, db_session):
        with pytest.raises(NotFoundError):
            InventoryService(db_session).update_quantity("missing", QuantityUpdatePayload(quantity=1))
