"""
Centralized constants for the cooperative application.
Avoid magic strings and repeated constants.

Usage:
    from shared.config.constants import UserRole, requires_partner_name, Limits

    if requires_partner_name(role):
        ...

    if item.quantity <= Limits.CRITICAL_STOCK_THRESHOLD:
        ...
"""

from enum import Enum
from typing import Final


# =============================================================================
# User Roles
# =============================================================================


class UserRole(str, Enum):
    """Role of the cooperative member who recorded an entry."""

    PRESIDENTE = "presidente"
    ADMINISTRADOR = "administrador"
    SECRETARIA = "secretaria"
    TESORERO = "tesorero"
    SOCIO = "socio"

    @property
    def label(self) -> str:
        return USER_ROLE_LABELS[self]


USER_ROLE_OPTIONS: Final[list[tuple[UserRole, str]]] = [
    (UserRole.PRESIDENTE, "Presidente"),
    (UserRole.ADMINISTRADOR, "Administrador"),
    (UserRole.SECRETARIA, "Secretaria"),
    (UserRole.TESORERO, "Tesorero"),
    (UserRole.SOCIO, "Socio"),
]

USER_ROLE_LABELS: Final[dict[UserRole, str]] = dict(USER_ROLE_OPTIONS)

DEFAULT_ROLE: Final[UserRole] = USER_ROLE_OPTIONS[0][0]


def requires_partner_name(role: UserRole | str | None) -> bool:
    """Only entries recorded by a partner (socio) carry the partner's name."""
    if role is None:
        return False
    try:
        return UserRole(role) is UserRole.SOCIO
    except ValueError:
        return False


# =============================================================================
# Entity Categories
# =============================================================================


class HarvestCategory(str, Enum):
    """Quality grade of a harvest lot."""

    PRIMERA = "primera"
    SEGUNDA = "segunda"
    TERCERA = "tercera"


class InventoryCategory(str, Enum):
    """Kind of input held in inventory."""

    PLANTA = "planta"
    FERTILIZANTE = "fertilizante"
    PESTICIDA = "pesticida"
    HERRAMIENTA = "herramienta"


class LossSourceType(str, Enum):
    """Collection a loss depletes stock from."""

    INVENTORY = "inventory"
    HARVEST = "harvest"


# Inventory quantities are always counted in whole units
INVENTORY_UNIT: Final[str] = "unidades"

# Filter value meaning "every role" in the losses view
ALL_ROLES_FILTER: Final[str] = "todos"


# =============================================================================
# Persistence Keys
# =============================================================================


class StorageKeys:
    """One key-value entry per collection, each holding a JSON array."""

    HARVESTS: Final[str] = "harvests"
    INVENTORY: Final[str] = "inventory"
    LOSSES: Final[str] = "losses"
    REMINDERS: Final[str] = "reminders"

    ALL: Final[list[str]] = [HARVESTS, INVENTORY, LOSSES, REMINDERS]


# =============================================================================
# Limits
# =============================================================================


class Limits:
    """Thresholds and validation limits."""

    # Stock alerts
    CRITICAL_STOCK_THRESHOLD: Final[int] = 10

    # Calendar
    UPCOMING_REMINDERS_LIMIT: Final[int] = 8
    CALENDAR_WEEKS: Final[int] = 6
    DEFAULT_REMINDER_HOUR: Final[int] = 9

    # Dashboard / report list sizes
    DASHBOARD_RECENT_HARVESTS: Final[int] = 3
    DASHBOARD_TOP_INVENTORY: Final[int] = 5
    DASHBOARD_PROFIT_ENTRIES: Final[int] = 5
    REPORT_RECENT_HARVESTS: Final[int] = 5
    REPORT_PROFIT_ENTRIES: Final[int] = 6

    # String lengths (form limits of the original screens)
    MAX_NAME_LENGTH: Final[int] = 80
    MAX_REASON_LENGTH: Final[int] = 160
    MAX_REMINDER_TITLE_LENGTH: Final[int] = 100
    MAX_REMINDER_NOTE_LENGTH: Final[int] = 250
