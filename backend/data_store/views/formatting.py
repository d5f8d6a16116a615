"""Display formatting in the es-CL style (dot as thousands separator)."""

from typing import Any, Optional

from shared.utils.validators import round_half_up


def _group_thousands(value: int) -> str:
    return f"{value:,}".replace(",", ".")


def format_quantity(value: Optional[float | int]) -> str:
    """Whole-unit quantity, e.g. 12500 -> "12.500". None renders as an empty string."""
    if value is None:
        return ""
    return _group_thousands(round_half_up(value))


def format_clp(value: Optional[int]) -> str:
    if value is None:
        return "-"
    return f"${_group_thousands(round_half_up(value))}"


def format_percentage(value: float, decimals: int = 1) -> str:
    return f"{value:.{decimals}f}%".replace(".", ",")


def format_date(value: Any) -> str:
    """dd/mm/yyyy, the short date format of the screens."""
    return value.strftime("%d/%m/%Y")
