"""Cashflow Calculator and per-month summaries.

``calculate_cashflow`` aggregates income, expenses, net and savings rate for a
target month and classifies the trend against the month before it. The month
summary helpers feed the dashboard view and the goal history.
"""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Iterable
from datetime import date
from typing import TypeAlias

from .categories import normalize_category
from .dates import MonthKey
from .logging_setup import get_logger
from .models import (
    Cashflow,
    CashflowTrend,
    CategoryAmount,
    MonthSummary,
    Transaction,
    Transactions,
    as_transactions,
)
from .rounding import round_money

# Relative change in net (percent) beyond which the trend is not "stable".
TREND_THRESHOLD_PCT = 5.0

_logger = get_logger("finance_signals.cashflow")

MonthLike: TypeAlias = MonthKey | tuple[int, int] | date | str


def _month_totals(txns: Iterable[Transaction], month: MonthKey) -> tuple[float, float]:
    """Return unrounded ``(income, expenses)`` for ``month``."""

    in_month = [t for t in txns if month.contains(t.date)]
    income = math.fsum(t.amount for t in in_month if t.is_income)
    expenses = math.fsum(-t.amount for t in in_month if t.is_expense)
    return income, expenses


def _classify_trend(net: float, prev_net: float) -> CashflowTrend:
    if prev_net == 0:
        return "stable"
    change = (net - prev_net) / abs(prev_net) * 100
    if change > TREND_THRESHOLD_PCT:
        return "improving"
    if change < -TREND_THRESHOLD_PCT:
        return "declining"
    return "stable"


def calculate_cashflow(transactions: Transactions, target_month: MonthLike) -> Cashflow:
    """Summarize cashflow for ``target_month``.

    Parameters
    ----------
    transactions:
        The caller's transaction snapshot (not mutated).
    target_month:
        A :class:`~finance_signals.dates.MonthKey`, a ``(year, month)`` tuple,
        a ``date`` inside the month, or a ``"YYYY-MM"`` string.

    Returns
    -------
    Cashflow
        Monetary fields and ``savings_rate`` rounded to 2 decimals.
        ``savings_rate`` is ``None`` when the month has no income.
    """

    txns = as_transactions(transactions)
    month = MonthKey.coerce(target_month)

    income, expenses = _month_totals(txns, month)
    net = income - expenses
    savings_rate = net / income * 100 if income > 0 else None

    prev_income, prev_expenses = _month_totals(txns, month.previous())
    trend = _classify_trend(net, prev_income - prev_expenses)

    _logger.debug(
        "cashflow %s: income=%.2f expenses=%.2f trend=%s", month, income, expenses, trend
    )
    return Cashflow(
        monthly_income=round_money(income),
        monthly_expenses=round_money(expenses),
        net=round_money(net),
        savings_rate=round_money(savings_rate) if savings_rate is not None else None,
        trend=trend,
    )


def expense_totals_by_category(
    txns: Iterable[Transaction], month: MonthKey | None = None
) -> dict[str, float]:
    """Sum absolute expense amounts per normalized category (unrounded).

    When ``month`` is ``None`` every expense contributes.
    """

    parts: defaultdict[str, list[float]] = defaultdict(list)
    for t in txns:
        if not t.is_expense:
            continue
        if month is not None and not month.contains(t.date):
            continue
        parts[normalize_category(t.category)].append(-t.amount)
    return {cat: math.fsum(vals) for cat, vals in parts.items()}


def _sorted_amounts(totals: dict[str, float], scale: float = 1.0) -> tuple[CategoryAmount, ...]:
    rows = [CategoryAmount(cat, round_money(total / scale)) for cat, total in totals.items()]
    rows.sort(key=lambda c: (-c.amount, c.category))
    return tuple(rows)


def category_breakdown(transactions: Transactions, month: MonthLike) -> list[CategoryAmount]:
    """Expense totals per category for ``month``, largest first."""

    txns = as_transactions(transactions)
    return list(_sorted_amounts(expense_totals_by_category(txns, MonthKey.coerce(month))))


def summarize_month(transactions: Transactions, month: MonthLike) -> MonthSummary:
    """Income, spend, net and category breakdown for one month.

    Months without transactions summarize to zeros, never to a missing entry.
    """

    txns = as_transactions(transactions)
    key = MonthKey.coerce(month)
    income, expenses = _month_totals(txns, key)
    return MonthSummary(
        month=key,
        income=round_money(income),
        spend=round_money(expenses),
        net=round_money(income - expenses),
        categories=_sorted_amounts(expense_totals_by_category(txns, key)),
    )


def average_monthly_spend_by_category(
    txns: Iterable[Transaction], months: Iterable[MonthKey], *, top: int | None = None
) -> list[CategoryAmount]:
    """Average monthly expense per category across ``months``, largest first."""

    window = set(months)
    if not window:
        return []
    in_window = [t for t in txns if MonthKey.of(t.date) in window]
    rows = list(_sorted_amounts(expense_totals_by_category(in_window), scale=len(window)))
    return rows[:top] if top is not None else rows


__all__ = [
    "TREND_THRESHOLD_PCT",
    "average_monthly_spend_by_category",
    "calculate_cashflow",
    "category_breakdown",
    "expense_totals_by_category",
    "summarize_month",
]
