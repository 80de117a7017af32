"""Category Trend Detector.

Compares per-category expense totals between two months and reports the
categories whose change is material. Small categories wobble from month to
month, so a change must clear either a relative or an absolute gate.
"""

from __future__ import annotations

from .cashflow import MonthLike, expense_totals_by_category
from .dates import MonthKey
from .logging_setup import get_logger
from .models import CategoryTrend, Transactions, as_transactions
from .rounding import round_half_up, round_money

# Materiality gates: emit when |delta%| > 10 or |current - previous| > $20.
MIN_DELTA_PERCENT = 10.0
MIN_DELTA_AMOUNT = 20.0

# Confidence grows with the smaller of the two monthly totals.
BASE_CONFIDENCE = 0.7
MAX_CONFIDENCE = 0.95
CONFIDENCE_SCALE = 1000.0

_logger = get_logger("finance_signals.trends")


def _delta_percent(current: float, previous: float) -> float:
    if previous == 0:
        return 100.0 if current > 0 else 0.0
    return (current - previous) / previous * 100


def _confidence(current: float, previous: float) -> float:
    return min(
        MAX_CONFIDENCE,
        BASE_CONFIDENCE + (min(current, previous) / CONFIDENCE_SCALE) * 0.25,
    )


def detect_category_trends(
    transactions: Transactions,
    current_month: MonthLike,
    previous_month: MonthLike,
) -> list[CategoryTrend]:
    """Return material month-over-month category changes.

    Only expenses contribute. Categories are grouped by
    :func:`~finance_signals.categories.normalize_category`. The result is
    sorted by absolute monthly impact (largest first) for convenience; callers
    must not rely on the ordering.
    """

    txns = as_transactions(transactions)
    cur_key = MonthKey.coerce(current_month)
    prev_key = MonthKey.coerce(previous_month)

    current_totals = expense_totals_by_category(txns, cur_key)
    previous_totals = expense_totals_by_category(txns, prev_key)

    signals: list[CategoryTrend] = []
    for category in current_totals.keys() | previous_totals.keys():
        current = current_totals.get(category, 0.0)
        previous = previous_totals.get(category, 0.0)
        if current == 0 and previous == 0:
            continue

        delta = _delta_percent(current, previous)
        impact = current - previous
        if abs(delta) <= MIN_DELTA_PERCENT and abs(impact) <= MIN_DELTA_AMOUNT:
            continue

        signals.append(
            CategoryTrend(
                category=category,
                delta_percent=round_half_up(delta, 1),
                monthly_impact=round_money(impact),
                confidence=_confidence(current, previous),
                current_month_total=round_money(current),
                previous_month_total=round_money(previous),
            )
        )

    signals.sort(key=lambda s: (-abs(s.monthly_impact), s.category))
    _logger.debug(
        "category trends %s vs %s: %d categories, %d material",
        cur_key,
        prev_key,
        len(current_totals.keys() | previous_totals.keys()),
        len(signals),
    )
    return signals


__all__ = ["MIN_DELTA_AMOUNT", "MIN_DELTA_PERCENT", "detect_category_trends"]
