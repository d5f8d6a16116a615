"""
Demo records shown on a fresh install.

Quantities are whole units and every inventory item is counted in
"unidades", the same normalization the store applies to user input.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable

from shared.config.constants import HarvestCategory, InventoryCategory, UserRole
from data_store.models import Harvest, HarvestInput, InventoryItem, InventoryItemInput
from data_store.normalization import build_harvest, build_inventory_item

IdFactory = Callable[[], str]


def demo_harvests(now: datetime, id_factory: IdFactory) -> list[Harvest]:
    inputs = [
        HarvestInput(
            crop="Café Arábica",
            category=HarvestCategory.PRIMERA,
            quantity=12,
            date=now - timedelta(hours=24 + 3),
            recorded_by=UserRole.SOCIO,
            recorded_by_partner_name="Coop Andina",
        ),
        HarvestInput(
            crop="Cacao Premium",
            category=HarvestCategory.SEGUNDA,
            quantity=8,
            date=now - timedelta(days=4, hours=6),
            recorded_by=UserRole.SOCIO,
            recorded_by_partner_name="Finca Aurora",
        ),
    ]
    return [build_harvest(id_factory(), data) for data in inputs]


_DEMO_INVENTORY = [
    ("Fertilizante orgánico A", 18, InventoryCategory.FERTILIZANTE),
    ("Pesticida biológico X", 9, InventoryCategory.PESTICIDA),
    ("Semillas de quinoa", 25, InventoryCategory.PLANTA),
    ("Guantes de nitrilo", 6, InventoryCategory.HERRAMIENTA),
    ("Mangueras de riego", 14, InventoryCategory.HERRAMIENTA),
    ("Trampas para insectos", 4, InventoryCategory.PESTICIDA),
]


def demo_inventory(id_factory: IdFactory) -> list[InventoryItem]:
    return [
        build_inventory_item(id_factory(), InventoryItemInput(name=name, quantity=quantity, category=category))
        for name, quantity, category in _DEMO_INVENTORY
    ]
