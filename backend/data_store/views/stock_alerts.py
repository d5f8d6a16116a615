"""Stock alerts: inventory items and harvest lots merged into one list, lowest stock first."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal, Optional, Sequence

from shared.config.constants import Limits
from data_store.models import Harvest, InventoryItem
from data_store.views.common import is_critical

AlertSource = Literal["inventario", "cosecha"]


@dataclass(frozen=True)
class StockAlertItem:
    id: str
    name: str
    quantity: int
    category: str
    source: AlertSource
    critical: bool
    icon: str
    date: Optional[datetime] = None


@dataclass(frozen=True)
class StockAlertsView:
    ordered: list[StockAlertItem]
    critical_count: int


def _inventory_alert(item: InventoryItem, threshold: int) -> StockAlertItem:
    critical = is_critical(item.quantity, threshold)
    return StockAlertItem(
        id=f"inventory-{item.id}",
        name=item.name,
        quantity=item.quantity,
        category=f"Inventario · {item.category.value}",
        source="inventario",
        critical=critical,
        icon="warning" if critical else "check_circle",
    )


def _harvest_alert(harvest: Harvest, threshold: int) -> StockAlertItem:
    critical = is_critical(harvest.quantity, threshold)
    return StockAlertItem(
        id=f"harvest-{harvest.id}",
        name=harvest.crop,
        quantity=harvest.quantity,
        category=f"Cosecha · {harvest.category.value}",
        source="cosecha",
        critical=critical,
        icon="warning" if critical else "spa",
        date=harvest.date,
    )


def build_stock_alerts(
    inventory: Sequence[InventoryItem],
    harvests: Sequence[Harvest],
    threshold: int = Limits.CRITICAL_STOCK_THRESHOLD,
) -> StockAlertsView:
    alerts = [_inventory_alert(item, threshold) for item in inventory]
    alerts.extend(_harvest_alert(harvest, threshold) for harvest in harvests)
    ordered = sorted(alerts, key=lambda alert: alert.quantity)
    return StockAlertsView(ordered=ordered, critical_count=sum(1 for alert in ordered if alert.critical))
