"""
Store variant backed by the cooperative REST API.

Harvests, inventory and losses live on the server. Mutations are sent on
a worker pool and never block the caller; when a request succeeds the
affected collections are re-fetched and published as the authoritative
state. Failed requests are logged and leave the collections as they were.
Reminders stay in local storage.

Requests are not cancelled or ordered: two in-flight mutations publish in
the order their responses arrive.
"""

from __future__ import annotations

import concurrent.futures
import contextvars
import threading
from typing import Any, Callable, Iterable, Mapping, Optional

from shared.config.constants import LossSourceType, StorageKeys, UserRole
from shared.config.logging import get_logger
from shared.utils.exceptions import RemoteApiError
from shared.utils.validators import normalize_partner_name, normalize_quantity
from data_store.models import (
    Harvest,
    HarvestInput,
    InventoryItem,
    InventoryItemInput,
    Loss,
    LossInput,
    MutationResult,
)
from data_store.normalization import apply_changes, build_harvest, build_inventory_item, build_loss
from data_store.persistence import CollectionPersistence
from data_store.persistence.remote import CooperativeApiClient
from data_store.service.base import DataService, _find

logger = get_logger(__name__)

REMOTE_COLLECTIONS = (StorageKeys.HARVESTS, StorageKeys.INVENTORY, StorageKeys.LOSSES)


def _entity_payload(entity: Any) -> dict[str, Any]:
    record = entity.to_record()
    record.pop("id", None)
    return record


def _quantity_payload(
    quantity: Any,
    recorded_by: UserRole | str | None,
    recorded_by_partner_name: Optional[str],
) -> dict[str, Any]:
    payload: dict[str, Any] = {"quantity": normalize_quantity(quantity)}
    if recorded_by is not None:
        role = UserRole(recorded_by)
        payload["recorded_by"] = role.value
        payload["recorded_by_partner_name"] = normalize_partner_name(role, recorded_by_partner_name)
    return payload


class RemoteDataService(DataService):
    """
    DataService whose harvests, inventory and losses are synced with the API.

    Usage:
        data = RemoteDataService(CooperativeApiClient.from_settings(), persistence)
        data.add_harvest(HarvestInput(crop="Cacao", quantity=8, date=datetime.now()))
        data.drain(timeout=5)   # wait for the request and the re-fetch
        data.close()
    """

    def __init__(
        self,
        api: CooperativeApiClient,
        persistence: CollectionPersistence,
        *,
        executor: concurrent.futures.Executor | None = None,
        max_workers: int = 2,
        auto_refresh: bool = True,
        **kwargs: Any,
    ):
        self._api = api
        self._owns_executor = executor is None
        self._executor = executor or concurrent.futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="cooperativa-api"
        )
        self._inflight: set[concurrent.futures.Future] = set()
        self._inflight_lock = threading.Lock()
        kwargs.setdefault("seed_demo", False)
        super().__init__(persistence, **kwargs)
        if auto_refresh:
            self.refresh()

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def refresh(self) -> concurrent.futures.Future:
        """Load every remote collection in the background."""
        return self._submit("refresh", lambda: None, REMOTE_COLLECTIONS)

    def drain(self, timeout: float | None = None) -> bool:
        """Wait for in-flight requests. Returns False if some are still running."""
        with self._inflight_lock:
            pending = list(self._inflight)
        if not pending:
            return True
        _, not_done = concurrent.futures.wait(pending, timeout=timeout)
        return not not_done

    def close(self) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=True)
        self._api.close()

    # =========================================================================
    # Harvests
    # =========================================================================

    def add_harvest(self, data: HarvestInput) -> MutationResult:
        payload = _entity_payload(build_harvest("", data))
        return self._dispatch(
            "add_harvest",
            lambda: self._api.create_harvest(payload),
            (StorageKeys.HARVESTS, StorageKeys.INVENTORY),
        )

    def update_harvest(self, harvest_id: str, changes: Mapping[str, Any]) -> MutationResult:
        current = _find(self.harvests_snapshot, harvest_id)
        if current is None:
            return MutationResult.unchanged()
        payload = _entity_payload(apply_changes(current, changes))
        return self._dispatch(
            "update_harvest",
            lambda: self._api.update_harvest(harvest_id, payload),
            (StorageKeys.HARVESTS, StorageKeys.INVENTORY),
        )

    def remove_harvest(self, harvest_id: str) -> MutationResult:
        if _find(self.harvests_snapshot, harvest_id) is None:
            return MutationResult.unchanged()
        return self._dispatch(
            "remove_harvest",
            lambda: self._api.delete_harvest(harvest_id),
            (StorageKeys.HARVESTS, StorageKeys.INVENTORY),
        )

    def update_harvest_quantity(
        self,
        harvest_id: str,
        quantity: Any,
        recorded_by: UserRole | str | None = None,
        recorded_by_partner_name: Optional[str] = None,
    ) -> MutationResult:
        if _find(self.harvests_snapshot, harvest_id) is None:
            return MutationResult.unchanged()
        payload = _quantity_payload(quantity, recorded_by, recorded_by_partner_name)
        return self._dispatch(
            "update_harvest_quantity",
            lambda: self._api.update_harvest_quantity(harvest_id, payload),
            (StorageKeys.HARVESTS, StorageKeys.INVENTORY),
        )

    # =========================================================================
    # Inventory
    # =========================================================================

    def add_inventory_item(self, data: InventoryItemInput) -> MutationResult:
        payload = _entity_payload(build_inventory_item("", data))
        return self._dispatch(
            "add_inventory_item",
            lambda: self._api.create_inventory_item(payload),
            (StorageKeys.INVENTORY,),
        )

    def update_inventory_item(self, item_id: str, changes: Mapping[str, Any]) -> MutationResult:
        current = _find(self.inventory_snapshot, item_id)
        if current is None:
            return MutationResult.unchanged()
        payload = _entity_payload(apply_changes(current, changes))
        return self._dispatch(
            "update_inventory_item",
            lambda: self._api.update_inventory_item(item_id, payload),
            (StorageKeys.INVENTORY,),
        )

    def remove_inventory_item(self, item_id: str) -> MutationResult:
        if _find(self.inventory_snapshot, item_id) is None:
            return MutationResult.unchanged()
        return self._dispatch(
            "remove_inventory_item",
            lambda: self._api.delete_inventory_item(item_id),
            (StorageKeys.INVENTORY,),
        )

    def update_inventory_quantity(
        self,
        item_id: str,
        quantity: Any,
        recorded_by: UserRole | str | None = None,
        recorded_by_partner_name: Optional[str] = None,
    ) -> MutationResult:
        if _find(self.inventory_snapshot, item_id) is None:
            return MutationResult.unchanged()
        payload = _quantity_payload(quantity, recorded_by, recorded_by_partner_name)
        return self._dispatch(
            "update_inventory_quantity",
            lambda: self._api.update_inventory_quantity(item_id, payload),
            (StorageKeys.INVENTORY,),
        )

    # =========================================================================
    # Losses
    # =========================================================================

    def add_loss(self, data: LossInput) -> MutationResult:
        payload = _entity_payload(build_loss("", data))
        return self._dispatch("add_loss", lambda: self._api.create_loss(payload), (StorageKeys.LOSSES,))

    def update_loss(self, loss_id: str, changes: Mapping[str, Any]) -> MutationResult:
        logger.warning("Loss updates are not supported by the remote API", loss_id=loss_id)
        return MutationResult.unchanged("unsupported")

    def remove_loss(self, loss_id: str) -> MutationResult:
        if _find(self.losses_snapshot, loss_id) is None:
            return MutationResult.unchanged()
        return self._dispatch("remove_loss", lambda: self._api.delete_loss(loss_id), (StorageKeys.LOSSES,))

    def register_loss(self, data: LossInput) -> MutationResult:
        """
        Create the loss and patch the source's stock, in that order.

        Checked against the last fetched stock. If the loss request fails
        the stock is left alone; if only the stock patch fails the loss
        stays recorded and the failure is logged.
        """
        loss = build_loss("", data)
        if loss.quantity <= 0:
            return MutationResult.unchanged("invalid_quantity")
        if loss.source_type is None:
            return self.add_loss(data)

        source = self.resolve_loss_source(loss)
        if source is None:
            return MutationResult.unchanged("source_not_found")
        if loss.quantity > source.quantity:
            logger.info(
                "Loss rejected: exceeds stock",
                source_id=loss.source_id,
                quantity=loss.quantity,
                stock=source.quantity,
            )
            return MutationResult.unchanged("exceeds_stock")

        payload = _entity_payload(loss)
        quantity_payload = _quantity_payload(
            max(source.quantity - loss.quantity, 0), loss.recorded_by, loss.recorded_by_partner_name
        )
        if LossSourceType(loss.source_type) is LossSourceType.INVENTORY:
            patch = self._api.update_inventory_quantity
            refresh = (StorageKeys.LOSSES, StorageKeys.INVENTORY)
        else:
            patch = self._api.update_harvest_quantity
            refresh = (StorageKeys.LOSSES, StorageKeys.HARVESTS, StorageKeys.INVENTORY)

        def create_and_deplete() -> None:
            self._api.create_loss(payload)
            try:
                patch(source.id, quantity_payload)
            except RemoteApiError as exc:
                logger.error(
                    "Loss recorded but stock depletion failed",
                    source_type=loss.source_type.value,
                    source_id=source.id,
                    error=str(exc),
                )

        return self._dispatch("register_loss", create_and_deplete, refresh)

    # =========================================================================
    # Plumbing
    # =========================================================================

    def _initial_collection(self, key: str) -> list[Any]:
        if key in REMOTE_COLLECTIONS:
            # Filled by refresh()
            return []
        return super()._initial_collection(key)

    def _dispatch(self, operation: str, call: Callable[[], Any], refresh: Iterable[str]) -> MutationResult:
        future = self._submit(operation, call, refresh)
        return MutationResult(changed=True, pending=future)

    def _submit(
        self, operation: str, call: Callable[[], Any], refresh: Iterable[str]
    ) -> concurrent.futures.Future:
        keys = tuple(refresh)

        def run() -> bool:
            try:
                call()
            except RemoteApiError as exc:
                logger.warning(
                    "Remote request failed",
                    operation=operation,
                    status_code=exc.status_code,
                    error=str(exc),
                )
                return False
            results = [self._fetch(key) for key in keys]
            return all(results)

        # Worker threads do not inherit context vars; carry the correlation id over
        context = contextvars.copy_context()
        future = self._executor.submit(context.run, run)
        with self._inflight_lock:
            self._inflight.add(future)
        future.add_done_callback(self._forget)
        return future

    def _forget(self, future: concurrent.futures.Future) -> None:
        with self._inflight_lock:
            self._inflight.discard(future)

    def _fetch(self, key: str) -> bool:
        loaders: dict[str, Callable[[], list[Harvest] | list[InventoryItem] | list[Loss]]] = {
            StorageKeys.HARVESTS: self._api.list_harvests,
            StorageKeys.INVENTORY: self._api.list_inventory,
            StorageKeys.LOSSES: self._api.list_losses,
        }
        try:
            items = loaders[key]()
        except RemoteApiError as exc:
            logger.warning("Remote fetch failed", collection=key, error=str(exc))
            return False
        self._replace_collection(key, items)
        logger.debug("Collection synced", collection=key, count=len(items))
        return True


__all__ = ["RemoteDataService", "REMOTE_COLLECTIONS"]
