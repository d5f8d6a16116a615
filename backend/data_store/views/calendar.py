"""
Reminder calendar.

A month is shown as a 6 x 7 grid of days starting on Monday, each day
carrying its reminders in time order. Labels are in Spanish.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

from shared.config.constants import Limits
from data_store.models import Reminder
from data_store.normalization import sort_reminders

WEEKDAY_LABELS = ["L", "M", "X", "J", "V", "S", "D"]

MONTH_NAMES = [
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
]

WEEKDAY_NAMES = ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"]


@dataclass(frozen=True)
class CalendarDay:
    date: date
    iso_date: str
    label: int
    in_current_month: bool
    is_today: bool
    reminders: list[Reminder]


@dataclass(frozen=True)
class CalendarView:
    month_label: str
    today_label: str
    weeks: list[list[CalendarDay]]
    upcoming_reminders: list[Reminder]


def _as_date(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def _capitalize(value: str) -> str:
    return value[:1].upper() + value[1:]


def to_iso_date(value: date | datetime) -> str:
    """YYYY-MM-DD of the local calendar day."""
    return _as_date(value).isoformat()


def start_of_month(value: date | datetime) -> date:
    return _as_date(value).replace(day=1)


def start_of_week(value: date | datetime) -> date:
    """Monday of the week containing value."""
    day = _as_date(value)
    return day - timedelta(days=day.weekday())


def shift_month(month: date | datetime, step: int) -> date:
    """First day of the month `step` months away."""
    first = start_of_month(month)
    index = first.year * 12 + (first.month - 1) + step
    return date(index // 12, index % 12 + 1, 1)


def month_label(month: date | datetime) -> str:
    first = start_of_month(month)
    return _capitalize(f"{MONTH_NAMES[first.month - 1]} de {first.year}")


def day_label(value: date | datetime) -> str:
    day = _as_date(value)
    return _capitalize(
        f"{WEEKDAY_NAMES[day.weekday()]}, {day.day} de {MONTH_NAMES[day.month - 1]} de {day.year}"
    )


def group_reminders_by_day(reminders: Iterable[Reminder]) -> dict[str, list[Reminder]]:
    grouped: dict[str, list[Reminder]] = {}
    for reminder in reminders:
        grouped.setdefault(to_iso_date(reminder.scheduled_at), []).append(reminder)
    return {key: sort_reminders(bucket) for key, bucket in grouped.items()}


def upcoming_reminders(
    reminders: Iterable[Reminder],
    today: date | datetime,
    limit: int = Limits.UPCOMING_REMINDERS_LIMIT,
) -> list[Reminder]:
    """Reminders on today or later (whole days, so earlier today still counts), soonest first."""
    first_day = _as_date(today)
    pending = [reminder for reminder in reminders if reminder.scheduled_at.date() >= first_day]
    return sort_reminders(pending)[:limit]


def build_calendar(
    month: date | datetime,
    reminders: Sequence[Reminder],
    today: date | datetime,
    limit: int = Limits.UPCOMING_REMINDERS_LIMIT,
) -> CalendarView:
    today = _as_date(today)
    first = start_of_month(month)
    by_day = group_reminders_by_day(reminders)

    weeks = []
    cursor = start_of_week(first)
    for _ in range(Limits.CALENDAR_WEEKS):
        week = []
        for _ in range(7):
            iso = cursor.isoformat()
            week.append(
                CalendarDay(
                    date=cursor,
                    iso_date=iso,
                    label=cursor.day,
                    in_current_month=cursor.month == first.month,
                    is_today=cursor == today,
                    reminders=by_day.get(iso, []),
                )
            )
            cursor += timedelta(days=1)
        weeks.append(week)

    return CalendarView(
        month_label=month_label(first),
        today_label=day_label(today),
        weeks=weeks,
        upcoming_reminders=upcoming_reminders(reminders, today, limit),
    )
