"""Dashboard summary: headline counts, critical stock, recent lots and margins."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from shared.config.constants import Limits
from data_store.models import Harvest, InventoryItem
from data_store.views.common import (
    CategoryTotal,
    ProfitStats,
    aggregate_by_category,
    critical_items,
    healthy_count,
    profit_stats,
    total_quantity,
)


@dataclass(frozen=True)
class DashboardSummary:
    total_harvests: int
    total_harvest_quantity: int
    inventory_count: int
    healthy_inventory: int
    critical_items: list[InventoryItem]
    recent_harvests: list[Harvest]
    stock_by_category: list[CategoryTotal]
    max_category_total: int
    top_inventory_items: list[InventoryItem]
    economic_stats: ProfitStats


def build_dashboard_summary(
    harvests: Sequence[Harvest],
    inventory: Sequence[InventoryItem],
    threshold: int = Limits.CRITICAL_STOCK_THRESHOLD,
) -> DashboardSummary:
    stock_by_category = aggregate_by_category(inventory)
    top_inventory = sorted(inventory, key=lambda item: item.quantity, reverse=True)

    return DashboardSummary(
        total_harvests=len(harvests),
        total_harvest_quantity=total_quantity(harvests),
        inventory_count=len(inventory),
        healthy_inventory=healthy_count(inventory, threshold),
        critical_items=critical_items(inventory, threshold),
        # The store keeps harvests newest first
        recent_harvests=list(harvests[: Limits.DASHBOARD_RECENT_HARVESTS]),
        stock_by_category=stock_by_category,
        max_category_total=max((stat.total for stat in stock_by_category), default=0),
        top_inventory_items=top_inventory[: Limits.DASHBOARD_TOP_INVENTORY],
        economic_stats=profit_stats(harvests, Limits.DASHBOARD_PROFIT_ENTRIES),
    )
