"""
Tests for entity builders and the shared validators.

Every add and update goes through these rules, so they are tested once
here rather than through every mutation.
"""

from datetime import datetime, timedelta, timezone

import pytest

from shared.config.constants import INVENTORY_UNIT, LossSourceType, UserRole
from shared.utils.validators import (
    clean_text,
    normalize_partner_name,
    normalize_price,
    normalize_quantity,
    round_half_up,
    to_naive_local,
)
from data_store.models import HarvestInput, InventoryItemInput, LossInput, ReminderInput
from data_store.normalization import (
    apply_changes,
    build_harvest,
    build_inventory_item,
    build_loss,
    build_reminder,
)

HARVEST_DATE = datetime(2026, 10, 1, 8, 0)


class TestValidators:
    """Rounding and clean-up rules."""

    @pytest.mark.parametrize(
        "value, expected",
        [(2.5, 3), (2.4, 2), (-2.5, -3), (12, 12), (0.5, 1)],
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [(12.5, 13), ("12,5", 13), (-4, 0), ("abc", 0), (None, 0), (float("nan"), 0), (True, 0)],
    )
    def test_normalize_quantity(self, value, expected):
        assert normalize_quantity(value) == expected

    @pytest.mark.parametrize(
        "value, expected",
        [(1500, 1500), (1499.5, 1500), (0, None), (-10, None), ("", None), ("caro", None), (None, None), (0.2, None)],
    )
    def test_normalize_price(self, value, expected):
        assert normalize_price(value) == expected

    def test_partner_name_only_for_socio(self):
        assert normalize_partner_name(UserRole.SOCIO, "  Finca Aurora ") == "Finca Aurora"
        assert normalize_partner_name("socio", "") is None
        assert normalize_partner_name(UserRole.PRESIDENTE, "Finca Aurora") is None
        assert normalize_partner_name(None, "Finca Aurora") is None

    def test_clean_text(self):
        assert clean_text("  Cacao ") == "Cacao"
        assert clean_text("   ") is None
        assert clean_text("abcdef", max_length=3) == "abc"

    def test_to_naive_local_keeps_naive_values(self):
        assert to_naive_local(HARVEST_DATE) == HARVEST_DATE

    def test_to_naive_local_converts_aware_values(self):
        aware = datetime(2026, 10, 1, 8, 0, tzinfo=timezone(timedelta(hours=-3)))

        result = to_naive_local(aware)

        assert result.tzinfo is None
        assert result == aware.astimezone().replace(tzinfo=None)


class TestBuilders:
    """Builders normalize user input into entities."""

    def test_build_harvest_normalizes_numbers_and_attribution(self):
        harvest = build_harvest(
            "h-1",
            HarvestInput(
                crop="  Cacao ",
                quantity=7.5,
                date=HARVEST_DATE,
                recorded_by=UserRole.PRESIDENTE,
                recorded_by_partner_name="Finca Aurora",
                purchase_price_clp="abc",
                sale_price_clp=2500.4,
            ),
        )

        assert harvest.crop == "Cacao"
        assert harvest.quantity == 8
        assert harvest.recorded_by_partner_name is None
        assert harvest.purchase_price_clp is None
        assert harvest.sale_price_clp == 2500

    def test_build_inventory_item_fixes_unit(self):
        item = build_inventory_item("i-1", InventoryItemInput(name="Guantes", quantity=3, unit="cajas"))

        assert item.unit == INVENTORY_UNIT

    def test_build_loss_keeps_source_only_as_pair(self):
        loss = build_loss(
            "l-1",
            LossInput(
                product_name="Semillas",
                quantity=2,
                reason="Humedad",
                date=HARVEST_DATE,
                source_type=LossSourceType.INVENTORY,
                source_id=None,
            ),
        )

        assert loss.source_type is None
        assert loss.source_id is None

    def test_build_loss_with_full_source(self):
        loss = build_loss(
            "l-1",
            LossInput(
                product_name="Semillas",
                quantity=2,
                reason="Humedad",
                date=HARVEST_DATE,
                source_type="harvest",
                source_id="h-9",
            ),
        )

        assert loss.source_type is LossSourceType.HARVEST
        assert loss.source_id == "h-9"

    def test_build_reminder_truncates_to_minute(self):
        reminder = build_reminder(
            "r-1",
            ReminderInput(title=" Riego ", scheduled_at=datetime(2026, 10, 20, 7, 30, 45, 123), note="  "),
        )

        assert reminder.title == "Riego"
        assert reminder.scheduled_at == datetime(2026, 10, 20, 7, 30)
        assert reminder.note is None

    def test_build_reminder_from_aware_schedule(self):
        scheduled_at = datetime(2026, 10, 20, 10, 30, 15, tzinfo=timezone.utc)

        reminder = build_reminder("r-1", ReminderInput(title="Riego", scheduled_at=scheduled_at))

        assert reminder.scheduled_at.tzinfo is None
        assert reminder.scheduled_at.second == 0


class TestApplyChanges:
    """Partial updates are merged and re-normalized."""

    def test_ignores_id_and_unknown_keys(self):
        item = build_inventory_item("i-1", InventoryItemInput(name="Guantes", quantity=3))

        updated = apply_changes(item, {"id": "other", "color": "azul", "quantity": 4.5})

        assert updated.id == "i-1"
        assert updated.quantity == 5
        assert updated.name == "Guantes"

    def test_changing_role_clears_partner_name(self):
        harvest = build_harvest(
            "h-1",
            HarvestInput(
                crop="Cacao",
                quantity=5,
                date=HARVEST_DATE,
                recorded_by=UserRole.SOCIO,
                recorded_by_partner_name="Coop Andina",
            ),
        )

        updated = apply_changes(harvest, {"recorded_by": UserRole.TESORERO})

        assert updated.recorded_by is UserRole.TESORERO
        assert updated.recorded_by_partner_name is None
