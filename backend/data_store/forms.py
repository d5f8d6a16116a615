"""
Parsing helpers for user-entered form values.

The store trusts its callers to validate input; these helpers are what the
CLI (and any other front-end) uses to do so.
"""

from __future__ import annotations

import math
import re
from datetime import date, datetime
from typing import Optional

from shared.config.constants import Limits

_TIME_PATTERN = re.compile(r"^([01][0-9]|2[0-3]):([0-5][0-9])$")
_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})$")


def parse_quantity(text: str | None, *, allow_zero: bool = True) -> Optional[float]:
    """
    Parse a quantity typed by a user.

    Accepts "," as decimal separator ("12,5" -> 12.5). Returns None for
    blank, non-numeric, non-finite or negative input, and for zero when
    allow_zero is False (losses must be positive).
    """
    if text is None:
        return None
    normalized = text.strip().replace(",", ".", 1)
    if not normalized:
        return None
    try:
        value = float(normalized)
    except ValueError:
        return None
    if not math.isfinite(value) or value < 0:
        return None
    if value == 0 and not allow_zero:
        return None
    return value


def parse_date(text: str | None) -> Optional[date]:
    """YYYY-MM-DD to a date; None for anything that is not a real calendar day."""
    if not text:
        return None
    match = _DATE_PATTERN.match(text.strip())
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_reminder_schedule(date_text: str | None, time_text: str | None = None) -> Optional[datetime]:
    """
    Combine a date and an optional HH:MM time into a reminder schedule.

    Without a time the reminder is set at 09:00. Impossible dates such as
    2024-02-30 and malformed times return None.
    """
    day = parse_date(date_text)
    if day is None:
        return None

    hour, minute = Limits.DEFAULT_REMINDER_HOUR, 0
    if time_text and time_text.strip():
        match = _TIME_PATTERN.match(time_text.strip())
        if not match:
            return None
        hour, minute = int(match.group(1)), int(match.group(2))

    return datetime(day.year, day.month, day.day, hour, minute)


def format_time(value: datetime) -> str:
    """HH:MM, the value a time input expects."""
    return f"{value.hour:02d}:{value.minute:02d}"
