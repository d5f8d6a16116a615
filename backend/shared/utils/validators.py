"""
Shared validators for entity normalization.

Used by the store when building entities and by the REST API when
persisting them, so both sides apply identical rules.
"""

import math
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from shared.config.constants import UserRole, requires_partner_name


def round_half_up(value: float | int | Decimal) -> int:
    """
    Round to the nearest integer, halves away from zero.

    Python's round() uses banker's rounding (round(2.5) == 2); quantities
    and prices entered by users are expected to round 2.5 up to 3.
    """
    try:
        rounded = Decimal(str(value)).to_integral_value(rounding=ROUND_HALF_UP)
    except InvalidOperation as exc:
        raise ValueError(f"Cannot round value: {value!r}") from exc
    if not rounded.is_finite():
        raise ValueError(f"Cannot round non-finite value: {value!r}")
    return int(rounded)


def _as_finite_number(value: Any) -> Optional[float]:
    """Return value as a float if it is a finite real number, else None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", ".")
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def normalize_quantity(value: Any) -> int:
    """
    Normalize a stock quantity to whole units, never negative.

    Non-numeric input counts as zero stock.
    """
    number = _as_finite_number(value)
    if number is None:
        return 0
    return max(round_half_up(number), 0)


def normalize_price(value: Any) -> Optional[int]:
    """
    Normalize an optional CLP price.

    A price that is not a finite number or is <= 0 is treated as absent.
    Valid prices are rounded to whole pesos.
    """
    number = _as_finite_number(value)
    if number is None or number <= 0:
        return None
    rounded = round_half_up(number)
    return rounded if rounded > 0 else None


def clean_text(value: Any, max_length: int | None = None) -> Optional[str]:
    """Trim a free-text value; empty strings become None."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if max_length is not None:
        text = text[:max_length]
    return text


def normalize_partner_name(role: UserRole | str | None, name: Any) -> Optional[str]:
    """The partner name is kept only for roles that require it, otherwise cleared."""
    if not requires_partner_name(role):
        return None
    return clean_text(name)


def truncate_to_minute(value: datetime) -> datetime:
    """Drop seconds and microseconds."""
    return value.replace(second=0, microsecond=0)


def to_naive_local(value: datetime) -> datetime:
    """
    Store datetimes as naive local time.

    Aware values are converted to the local zone first; mixing naive and
    aware values in one collection would make sorting raise.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=None)
    return value.astimezone().replace(tzinfo=None)
