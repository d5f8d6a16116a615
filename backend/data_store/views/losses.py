"""
Losses (mermas) view.

Filters the ledger by the role that recorded each loss and lays out the
per-product distribution as donut-chart arcs: each slice gets an arc
length proportional to its share, offset by the arcs drawn before it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from shared.config.constants import ALL_ROLES_FILTER, LossSourceType, UserRole
from data_store.models import Harvest, InventoryItem, Loss
from data_store.normalization import sort_losses
from data_store.views.common import total_quantity

CHART_PALETTE = ["#1b5e20", "#2e7d32", "#388e3c", "#43a047", "#66bb6a", "#81c784", "#a5d6a7"]
CHART_RADIUS = 64
CHART_CIRCUMFERENCE = 2 * math.pi * CHART_RADIUS


@dataclass(frozen=True)
class LossDistributionSlice:
    label: str
    total: int
    percentage: float
    color: str
    dash_array: str
    dash_offset: float


@dataclass(frozen=True)
class LossesView:
    losses: list[Loss]
    total_quantity: int
    distribution: list[LossDistributionSlice]
    selected_filter: str


@dataclass(frozen=True)
class LossSourceStatus:
    """Where a loss came from and how much of that source is left now."""

    source_type: LossSourceType
    label: str
    name: Optional[str]
    remaining: Optional[int]

    @property
    def resolved(self) -> bool:
        return self.remaining is not None


def _round_one_decimal(ratio: float) -> float:
    # Halves round up, as on the chart legend
    return math.floor(ratio * 1000 + 0.5) / 10


def build_distribution(losses: Sequence[Loss], total: int | None = None) -> list[LossDistributionSlice]:
    """Donut slices per product, largest first. Empty when there is nothing to chart."""
    total = total_quantity(losses) if total is None else total
    if not total:
        return []

    totals: dict[str, int] = {}
    for loss in losses:
        totals[loss.product_name] = totals.get(loss.product_name, 0) + loss.quantity
    entries = sorted(
        ((label, value) for label, value in totals.items() if value > 0),
        key=lambda entry: entry[1],
        reverse=True,
    )

    slices = []
    offset = 0.0
    for index, (label, value) in enumerate(entries):
        ratio = value / total
        length = ratio * CHART_CIRCUMFERENCE
        slices.append(
            LossDistributionSlice(
                label=label,
                total=value,
                percentage=_round_one_decimal(ratio),
                color=CHART_PALETTE[index % len(CHART_PALETTE)],
                dash_array=f"{max(length, 0)} {CHART_CIRCUMFERENCE}",
                dash_offset=-offset if offset else 0.0,
            )
        )
        offset += length
    return slices


def filter_by_role(losses: Sequence[Loss], role_filter: UserRole | str = ALL_ROLES_FILTER) -> list[Loss]:
    if role_filter == ALL_ROLES_FILTER:
        return list(losses)
    role = UserRole(role_filter)
    return [loss for loss in losses if loss.recorded_by is role]


def build_losses_view(losses: Sequence[Loss], role_filter: UserRole | str = ALL_ROLES_FILTER) -> LossesView:
    ordered = sort_losses(filter_by_role(losses, role_filter))
    total = total_quantity(ordered)
    selected = role_filter.value if isinstance(role_filter, UserRole) else role_filter
    return LossesView(
        losses=ordered,
        total_quantity=total,
        distribution=build_distribution(ordered, total),
        selected_filter=selected,
    )


def loss_source_status(
    loss: Loss,
    inventory: Sequence[InventoryItem],
    harvests: Sequence[Harvest],
) -> Optional[LossSourceStatus]:
    """
    Current state of the entity a loss depleted.

    None when the loss names no source. When the source was deleted since,
    name and remaining are None.
    """
    if loss.source_type is None or loss.source_id is None:
        return None

    if loss.source_type is LossSourceType.INVENTORY:
        item = next((entry for entry in inventory if entry.id == loss.source_id), None)
        return LossSourceStatus(
            source_type=LossSourceType.INVENTORY,
            label="Inventario",
            name=item.name if item else None,
            remaining=item.quantity if item else None,
        )

    harvest = next((entry for entry in harvests if entry.id == loss.source_id), None)
    return LossSourceStatus(
        source_type=LossSourceType.HARVEST,
        label="Cosecha",
        name=harvest.crop if harvest else None,
        remaining=harvest.quantity if harvest else None,
    )
