"""
Live view streams over a DataService.

Each stream recomputes its view whenever one of the collections it reads
publishes. Call dispose() on the returned observable to detach it.

Usage:
    alerts = stock_alerts_stream(data)
    alerts.subscribe(lambda view: print(view.critical_count))
    ...
    alerts.dispose()
"""

from __future__ import annotations

from datetime import date
from functools import partial
from typing import Callable

from shared.config.constants import ALL_ROLES_FILTER
from shared.config.settings import settings
from data_store.service import DataService
from data_store.subject import BehaviorSubject, DerivedObservable, Observable, combine_latest
from data_store.views.calendar import CalendarView, build_calendar, start_of_month
from data_store.views.dashboard import DashboardSummary, build_dashboard_summary
from data_store.views.losses import LossesView, build_losses_view
from data_store.views.reports import Report, build_report
from data_store.views.stock_alerts import StockAlertsView, build_stock_alerts


def _threshold(threshold: int | None) -> int:
    return settings.critical_stock_threshold if threshold is None else threshold


def dashboard_stream(data: DataService, threshold: int | None = None) -> DerivedObservable[DashboardSummary]:
    return combine_latest(
        [data.harvests, data.inventory],
        partial(build_dashboard_summary, threshold=_threshold(threshold)),
        name="dashboard",
    )


def report_stream(data: DataService, threshold: int | None = None) -> DerivedObservable[Report]:
    return combine_latest(
        [data.inventory, data.harvests, data.losses],
        partial(build_report, threshold=_threshold(threshold)),
        name="report",
    )


def stock_alerts_stream(data: DataService, threshold: int | None = None) -> DerivedObservable[StockAlertsView]:
    return combine_latest(
        [data.inventory, data.harvests],
        partial(build_stock_alerts, threshold=_threshold(threshold)),
        name="stock_alerts",
    )


def losses_stream(
    data: DataService,
    role_filter: Observable[str] | BehaviorSubject[str] | str = ALL_ROLES_FILTER,
) -> DerivedObservable[LossesView]:
    """Losses view; pass a BehaviorSubject as role_filter to change the filter live."""
    filter_source = BehaviorSubject(role_filter) if isinstance(role_filter, str) else role_filter
    return combine_latest([data.losses, filter_source], build_losses_view, name="losses")


def calendar_stream(
    data: DataService,
    month: Observable[date] | BehaviorSubject[date],
    today: Callable[[], date] = date.today,
    limit: int | None = None,
) -> DerivedObservable[CalendarView]:
    upcoming_limit = settings.upcoming_reminders_limit if limit is None else limit

    def project(current_month: date, reminders) -> CalendarView:
        return build_calendar(start_of_month(current_month), reminders, today(), upcoming_limit)

    return combine_latest([month, data.reminders], project, name="calendar")


__all__ = [
    "dashboard_stream",
    "report_stream",
    "stock_alerts_stream",
    "losses_stream",
    "calendar_stream",
]
