"""
HTTP gateway to the cooperative REST API.

Responses are envelopes { data, success, message }. Transport errors,
non-2xx statuses and success = false all surface as RemoteApiError; the
store catches it, logs it and leaves its collection untouched.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, TypeVar

import httpx
from pydantic import ValidationError as PydanticValidationError

from shared.config.settings import Settings, settings as default_settings
from shared.config.logging import get_logger
from shared.infrastructure.correlation import get_correlation_id
from shared.utils.exceptions import RemoteApiError
from shared.utils.schemas import ApiEnvelope
from data_store.models import Harvest, InventoryItem, Loss

logger = get_logger(__name__)

T = TypeVar("T")

API_BASE_PATH = "/api"


class CooperativeApiClient:
    """
    Synchronous client for /api/harvests, /api/inventory and /api/losses.

    Runs on the store's worker threads, so it uses httpx.Client rather
    than the async client.

    Usage:
        api = CooperativeApiClient.from_settings()
        harvests = api.list_harvests()
        api.close()
    """

    def __init__(self, client: httpx.Client, base_path: str = API_BASE_PATH):
        self._client = client
        self._base_path = base_path.rstrip("/")

    @classmethod
    def from_settings(cls, config: Settings | None = None) -> "CooperativeApiClient":
        config = config or default_settings
        client = httpx.Client(
            base_url=config.api_base_url,
            timeout=config.api_timeout_seconds,
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
        )
        return cls(client)

    def close(self) -> None:
        self._client.close()

    # -------------------------------------------------------------------------
    # Transport
    # -------------------------------------------------------------------------

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> Any:
        url = f"{self._base_path}{path}"
        headers = {}
        correlation_id = get_correlation_id()
        if correlation_id:
            headers["X-Request-ID"] = correlation_id

        try:
            response = self._client.request(method, url, json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise RemoteApiError(f"{method} {url} failed: {exc}") from exc

        try:
            envelope = ApiEnvelope[Any].model_validate(response.json())
        except (ValueError, PydanticValidationError):
            envelope = None

        if response.is_error:
            message = envelope.message if envelope and envelope.message else response.reason_phrase
            raise RemoteApiError(
                f"{method} {url} returned {response.status_code}: {message}",
                status_code=response.status_code,
            )
        if envelope is None:
            raise RemoteApiError(f"{method} {url} returned a body that is not an API envelope")
        if not envelope.success:
            raise RemoteApiError(
                f"{method} {url} was rejected: {envelope.message or 'no message'}",
                status_code=response.status_code,
            )
        return envelope.data

    def _decode_list(self, data: Any, decoder: Callable[[dict[str, Any]], T], path: str) -> list[T]:
        if not isinstance(data, list):
            raise RemoteApiError(f"GET {path} did not return a list")
        try:
            return [decoder(record) for record in data]
        except (KeyError, TypeError, ValueError) as exc:
            raise RemoteApiError(f"GET {path} returned an unreadable record: {exc}") from exc

    def _decode_one(self, data: Any, decoder: Callable[[dict[str, Any]], T], path: str) -> T:
        if not isinstance(data, dict):
            raise RemoteApiError(f"{path} did not return an object")
        try:
            return decoder(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise RemoteApiError(f"{path} returned an unreadable record: {exc}") from exc

    # -------------------------------------------------------------------------
    # Harvests
    # -------------------------------------------------------------------------

    def list_harvests(self) -> list[Harvest]:
        return self._decode_list(self._request("GET", "/harvests"), Harvest.from_record, "/harvests")

    def create_harvest(self, payload: dict[str, Any]) -> Harvest:
        data = self._request("POST", "/harvests", payload)
        return self._decode_one(data, Harvest.from_record, "POST /harvests")

    def update_harvest(self, harvest_id: str, payload: dict[str, Any]) -> Harvest:
        data = self._request("PUT", f"/harvests/{harvest_id}", payload)
        return self._decode_one(data, Harvest.from_record, "PUT /harvests")

    def update_harvest_quantity(self, harvest_id: str, payload: dict[str, Any]) -> Harvest:
        data = self._request("PATCH", f"/harvests/{harvest_id}/quantity", payload)
        return self._decode_one(data, Harvest.from_record, "PATCH /harvests/quantity")

    def delete_harvest(self, harvest_id: str) -> None:
        self._request("DELETE", f"/harvests/{harvest_id}")

    # -------------------------------------------------------------------------
    # Inventory
    # -------------------------------------------------------------------------

    def list_inventory(self) -> list[InventoryItem]:
        return self._decode_list(self._request("GET", "/inventory"), InventoryItem.from_record, "/inventory")

    def create_inventory_item(self, payload: dict[str, Any]) -> InventoryItem:
        data = self._request("POST", "/inventory", payload)
        return self._decode_one(data, InventoryItem.from_record, "POST /inventory")

    def update_inventory_item(self, item_id: str, payload: dict[str, Any]) -> InventoryItem:
        data = self._request("PUT", f"/inventory/{item_id}", payload)
        return self._decode_one(data, InventoryItem.from_record, "PUT /inventory")

    def update_inventory_quantity(self, item_id: str, payload: dict[str, Any]) -> InventoryItem:
        data = self._request("PATCH", f"/inventory/{item_id}/quantity", payload)
        return self._decode_one(data, InventoryItem.from_record, "PATCH /inventory/quantity")

    def delete_inventory_item(self, item_id: str) -> None:
        self._request("DELETE", f"/inventory/{item_id}")

    # -------------------------------------------------------------------------
    # Losses
    # -------------------------------------------------------------------------

    def list_losses(self) -> list[Loss]:
        return self._decode_list(self._request("GET", "/losses"), Loss.from_record, "/losses")

    def create_loss(self, payload: dict[str, Any]) -> Loss:
        data = self._request("POST", "/losses", payload)
        return self._decode_one(data, Loss.from_record, "POST /losses")

    def delete_loss(self, loss_id: str) -> None:
        self._request("DELETE", f"/losses/{loss_id}")

    def health(self) -> Optional[dict[str, Any]]:
        return self._request("GET", "/health")
