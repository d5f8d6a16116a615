"""
Building blocks shared by the dashboard, report and alert views.

All functions are pure: they never mutate their inputs and every sort is
stable, so ties keep the order of the source collection.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence, TypeVar

from shared.config.constants import Limits
from data_store.models import Harvest


class HasQuantity(Protocol):
    quantity: int


class HasCategory(HasQuantity, Protocol):
    category: object


Q = TypeVar("Q", bound=HasQuantity)


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    total: int


@dataclass(frozen=True)
class ProfitEntry:
    id: str
    crop: str
    margin: float
    purchase_price_clp: int
    sale_price_clp: int


@dataclass(frozen=True)
class ProfitStats:
    average_margin: float
    entries: list[ProfitEntry]


def is_critical(quantity: int, threshold: int = Limits.CRITICAL_STOCK_THRESHOLD) -> bool:
    """Critical means at or below the threshold (10 is critical, 11 is not)."""
    return quantity <= threshold


def critical_items(items: Iterable[Q], threshold: int = Limits.CRITICAL_STOCK_THRESHOLD) -> list[Q]:
    """Critical entries, lowest stock first."""
    return sorted((item for item in items if is_critical(item.quantity, threshold)), key=lambda item: item.quantity)


def healthy_count(items: Iterable[HasQuantity], threshold: int = Limits.CRITICAL_STOCK_THRESHOLD) -> int:
    return sum(1 for item in items if not is_critical(item.quantity, threshold))


def _category_key(category: object) -> str:
    return getattr(category, "value", category)


def category_totals(items: Iterable[HasCategory]) -> dict[str, int]:
    """Sum of quantities per category, in order of first appearance."""
    totals: dict[str, int] = {}
    for item in items:
        key = _category_key(item.category)
        totals[key] = totals.get(key, 0) + item.quantity
    return totals


def aggregate_by_category(items: Iterable[HasCategory]) -> list[CategoryTotal]:
    """Category totals, largest first."""
    totals = category_totals(items)
    ordered = sorted(totals.items(), key=lambda entry: entry[1], reverse=True)
    return [CategoryTotal(category=category, total=total) for category, total in ordered]


def margin_of(harvest: Harvest) -> float | None:
    """
    Percentage margin of a harvest lot.

    None when either price is missing or the purchase price is not positive;
    such lots are left out of margin statistics instead of counting as zero.
    """
    purchase = harvest.purchase_price_clp
    sale = harvest.sale_price_clp
    if not purchase or not sale or purchase <= 0:
        return None
    return (sale - purchase) / purchase * 100


def profit_entries(harvests: Iterable[Harvest]) -> list[ProfitEntry]:
    """Lots with a computable margin, best margin first."""
    entries = []
    for harvest in harvests:
        margin = margin_of(harvest)
        if margin is None:
            continue
        entries.append(
            ProfitEntry(
                id=harvest.id,
                crop=harvest.crop,
                margin=margin,
                purchase_price_clp=harvest.purchase_price_clp,
                sale_price_clp=harvest.sale_price_clp,
            )
        )
    return sorted(entries, key=lambda entry: entry.margin, reverse=True)


def average_margin(entries: Sequence[ProfitEntry]) -> float:
    if not entries:
        return 0.0
    return sum(entry.margin for entry in entries) / len(entries)


def profit_stats(harvests: Iterable[Harvest], limit: int) -> ProfitStats:
    entries = profit_entries(harvests)
    return ProfitStats(average_margin=average_margin(entries), entries=entries[:limit])


def total_quantity(items: Iterable[HasQuantity]) -> int:
    return sum(item.quantity for item in items)
