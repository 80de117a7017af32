"""Public API composition for the ``finance_signals`` package.

The detector modules each answer one question. The functions here bundle them
the way the dashboard, insights and subscriptions views consume them.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from .anomalies import detect_anomalies
from .cashflow import MonthLike, calculate_cashflow, category_breakdown
from .dates import MonthKey, parse_local_date
from .logging_setup import get_logger
from .models import (
    DashboardSummary,
    KnownCharge,
    RecurringOverview,
    Signal,
    SignalKind,
    Transactions,
    as_transactions,
)
from .recurring import (
    detect_recurring_charges,
    filter_by_confidence,
    merge_known_status,
    monthly_total,
)
from .trends import detect_category_trends

_logger = get_logger("finance_signals.api")


def detect_signals(transactions: Transactions, today: date | str) -> list[Signal]:
    """Run all four detectors for the month containing ``today``.

    The result lists category trends (this month versus the previous one),
    anomalies, recurring charges, and finally the month's cashflow.
    """

    txns = as_transactions(transactions)
    current = MonthKey.of(parse_local_date(today))

    signals: list[Signal] = []
    signals.extend(detect_category_trends(txns, current, current.previous()))
    signals.extend(detect_anomalies(txns))
    signals.extend(detect_recurring_charges(txns))
    signals.append(calculate_cashflow(txns, current))
    _logger.info(
        "signals for %s: %d transactions, %d trends, %d anomalies, %d recurring",
        current,
        len(txns),
        sum(1 for s in signals if s.kind is SignalKind.CATEGORY_TREND),
        sum(1 for s in signals if s.kind is SignalKind.ANOMALY),
        sum(1 for s in signals if s.kind is SignalKind.RECURRING_CHARGE),
    )
    return signals


def dashboard_summary(transactions: Transactions, target_month: MonthLike) -> DashboardSummary:
    """Cashflow, category breakdown and "what changed" for one month."""

    txns = as_transactions(transactions)
    month = MonthKey.coerce(target_month)
    return DashboardSummary(
        month=month,
        cashflow=calculate_cashflow(txns, month),
        category_breakdown=tuple(category_breakdown(txns, month)),
        changes=tuple(detect_category_trends(txns, month, month.previous())),
    )


def recurring_overview(
    transactions: Transactions,
    known: Iterable[KnownCharge] = (),
    confidence: str | None = None,
) -> RecurringOverview:
    """Detected recurring charges merged with user labels.

    ``confidence`` optionally restricts the list to one bucket
    (``high``/``medium``/``low``); the monthly total covers the filtered,
    non-cancelled charges.
    """

    tracked = merge_known_status(detect_recurring_charges(transactions), known)
    filtered = filter_by_confidence(tracked, confidence)
    return RecurringOverview(charges=tuple(filtered), monthly_total=monthly_total(filtered))


__all__ = ["dashboard_summary", "detect_signals", "recurring_overview"]
