"""
Inventory and harvest report.

Aggregates stock health, category totals, harvest volume and margins, and
the loss ledger, over the current snapshots of the store.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from shared.config.constants import Limits
from data_store.models import Harvest, InventoryItem, Loss
from data_store.normalization import sort_losses
from data_store.views.common import (
    ProfitStats,
    category_totals,
    critical_items,
    healthy_count,
    profit_stats,
    total_quantity,
)


@dataclass(frozen=True)
class HarvestSummary:
    total_harvests: int
    total_quantity: int
    average_quantity: float
    by_category: dict[str, int]
    recent_harvests: list[Harvest]


@dataclass(frozen=True)
class LossesSummary:
    losses: list[Loss]
    total_quantity: int


@dataclass(frozen=True)
class Report:
    items: list[InventoryItem]
    total_stock: int
    inventory_stock: int
    harvest_stock: int
    healthy_count: int
    critical_items: list[InventoryItem]
    category_totals: dict[str, int]
    highest_stock: Optional[InventoryItem]
    lowest_stock: Optional[InventoryItem]
    average_stock: float
    harvest_summary: HarvestSummary
    harvest_profit: ProfitStats
    losses_summary: LossesSummary


def build_harvest_summary(harvests: Sequence[Harvest]) -> HarvestSummary:
    harvest_stock = total_quantity(harvests)
    recent = sorted(harvests, key=lambda harvest: harvest.date, reverse=True)
    return HarvestSummary(
        total_harvests=len(harvests),
        total_quantity=harvest_stock,
        average_quantity=harvest_stock / len(harvests) if harvests else 0.0,
        by_category=category_totals(harvests),
        recent_harvests=recent[: Limits.REPORT_RECENT_HARVESTS],
    )


def build_losses_summary(losses: Sequence[Loss]) -> LossesSummary:
    ordered = sort_losses(losses)
    return LossesSummary(losses=ordered, total_quantity=total_quantity(ordered))


def build_report(
    inventory: Sequence[InventoryItem],
    harvests: Sequence[Harvest],
    losses: Sequence[Loss] = (),
    threshold: int = Limits.CRITICAL_STOCK_THRESHOLD,
) -> Report:
    """
    Build the report view.

    average_stock is inventory stock per inventory item. Harvest stock is
    reported separately and does not inflate it.
    """
    inventory_stock = total_quantity(inventory)
    harvest_stock = total_quantity(harvests)

    # max()/min() return the first of equal candidates
    highest = max(inventory, key=lambda item: item.quantity, default=None)
    lowest = min(inventory, key=lambda item: item.quantity, default=None)

    return Report(
        items=list(inventory),
        total_stock=inventory_stock + harvest_stock,
        inventory_stock=inventory_stock,
        harvest_stock=harvest_stock,
        healthy_count=healthy_count(inventory, threshold),
        critical_items=critical_items(inventory, threshold),
        category_totals=category_totals(inventory),
        highest_stock=highest,
        lowest_stock=lowest,
        average_stock=inventory_stock / len(inventory) if inventory else 0.0,
        harvest_summary=build_harvest_summary(harvests),
        harvest_profit=profit_stats(harvests, Limits.REPORT_PROFIT_ENTRIES),
        losses_summary=build_losses_summary(losses),
    )
