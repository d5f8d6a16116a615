"""
Derived views: pure functions from store snapshots to display-ready data.

Live streams over a DataService are in data_store.views.streams.
"""

from data_store.views.common import (
    CategoryTotal,
    ProfitEntry,
    ProfitStats,
    aggregate_by_category,
    average_margin,
    critical_items,
    is_critical,
    profit_entries,
)
from data_store.views.dashboard import DashboardSummary, build_dashboard_summary
from data_store.views.reports import Report, build_report
from data_store.views.stock_alerts import StockAlertItem, StockAlertsView, build_stock_alerts
from data_store.views.losses import (
    LossDistributionSlice,
    LossesView,
    LossSourceStatus,
    build_losses_view,
    loss_source_status,
)
from data_store.views.calendar import (
    CalendarDay,
    CalendarView,
    build_calendar,
    group_reminders_by_day,
    shift_month,
    to_iso_date,
    upcoming_reminders,
)
from data_store.views.formatting import format_quantity

__all__ = [
    # common
    "CategoryTotal",
    "ProfitEntry",
    "ProfitStats",
    "aggregate_by_category",
    "average_margin",
    "critical_items",
    "is_critical",
    "profit_entries",
    # dashboard / report / alerts
    "DashboardSummary",
    "build_dashboard_summary",
    "Report",
    "build_report",
    "StockAlertItem",
    "StockAlertsView",
    "build_stock_alerts",
    # losses
    "LossDistributionSlice",
    "LossesView",
    "LossSourceStatus",
    "build_losses_view",
    "loss_source_status",
    # calendar
    "CalendarDay",
    "CalendarView",
    "build_calendar",
    "group_reminders_by_day",
    "shift_month",
    "to_iso_date",
    "upcoming_reminders",
    # formatting
    "format_quantity",
]
