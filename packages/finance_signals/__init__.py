"""Public interface for the ``finance_signals`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .anomalies import detect_anomalies
from .api import dashboard_summary, detect_signals, recurring_overview
from .cashflow import calculate_cashflow, category_breakdown, summarize_month
from .categories import normalize_category
from .dates import MonthKey, parse_local_date
from .feasibility import calculate_feasibility, forecast_goal
from .ingest import IngestError, load_known_charges, load_transactions
from .insights import GoalInsightPacket, build_goal_insight_packet, signals_to_insights
from .models import (
    Anomaly,
    Cashflow,
    CategoryTrend,
    DashboardSummary,
    GoalFeasibility,
    GoalForecast,
    Insight,
    KnownCharge,
    RecurringCharge,
    RecurringOverview,
    Signal,
    SignalKind,
    TrackedCharge,
    Transaction,
    Transactions,
)
from .recurring import detect_recurring_charges, merge_known_status
from .trends import detect_category_trends

__all__ = [
    # Detectors
    "calculate_cashflow",
    "calculate_feasibility",
    "detect_anomalies",
    "detect_category_trends",
    "detect_recurring_charges",
    # API
    "build_goal_insight_packet",
    "category_breakdown",
    "dashboard_summary",
    "detect_signals",
    "forecast_goal",
    "merge_known_status",
    "recurring_overview",
    "signals_to_insights",
    "summarize_month",
    # Ingest / utilities
    "IngestError",
    "MonthKey",
    "load_known_charges",
    "load_transactions",
    "normalize_category",
    "parse_local_date",
    # Models / types
    "Anomaly",
    "Cashflow",
    "CategoryTrend",
    "DashboardSummary",
    "GoalFeasibility",
    "GoalForecast",
    "GoalInsightPacket",
    "Insight",
    "KnownCharge",
    "RecurringCharge",
    "RecurringOverview",
    "Signal",
    "SignalKind",
    "TrackedCharge",
    "Transaction",
    "Transactions",
]
