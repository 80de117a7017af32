"""Goal Feasibility Calculator and goal forecast.

A savings goal (target amount by a target date) is compared against what the
user's recent history suggests they can put aside: the average monthly net
over the trailing three calendar months, current month included.
"""

from __future__ import annotations

import math
from datetime import date

from .cashflow import calculate_cashflow, summarize_month
from .dates import parse_local_date, trailing_months
from .logging_setup import get_logger
from .models import (
    FeasibilityStatus,
    GoalFeasibility,
    GoalForecast,
    Lever,
    Transaction,
    Transactions,
    as_transactions,
)
from .rounding import round_half_up, round_money

# Months are approximated as 30 days when counting down to a target date.
DAYS_PER_MONTH = 30
BASELINE_MONTHS = 3

_logger = get_logger("finance_signals.feasibility")


def months_remaining(target_date: date | str, now: date | str) -> int:
    """Whole 30-day periods until ``target_date``, never less than 1."""

    days = (parse_local_date(target_date) - parse_local_date(now)).days
    return max(1, math.ceil(days / DAYS_PER_MONTH))


def baseline_surplus(txns: list[Transaction], now: date) -> float:
    """Average Cashflow ``net`` across the trailing months ending at ``now``.

    A month without transactions contributes a net of zero.
    """

    months = trailing_months(now, BASELINE_MONTHS)
    nets = [calculate_cashflow(txns, m).net for m in months]
    return math.fsum(nets) / len(nets)


def _status(gap_per_month: float) -> FeasibilityStatus:
    return "on_track" if gap_per_month <= 0 else "off_track"


def calculate_feasibility(
    transactions: Transactions,
    target_amount: float,
    target_date: date | str,
    now: date | str,
) -> GoalFeasibility:
    """Assess whether the recent surplus covers the goal's monthly requirement.

    ``status`` is ``"on_track"`` when the gap is zero or negative.
    """

    txns = as_transactions(transactions)
    today = parse_local_date(now)
    remaining = months_remaining(target_date, today)
    required = target_amount / remaining
    baseline = baseline_surplus(txns, today)
    gap = required - baseline

    _logger.debug(
        "feasibility: months=%d required=%.2f baseline=%.2f gap=%.2f",
        remaining,
        required,
        baseline,
        gap,
    )
    return GoalFeasibility(
        required_per_month=round_money(required),
        estimated_surplus_per_month=round_money(baseline),
        gap_per_month=round_money(gap),
        status=_status(gap),
    )


# ---------------------------------------------------------------------------
# Forecast: probability and levers
# ---------------------------------------------------------------------------


def on_track_probability(baseline: float, required: float) -> float:
    if baseline >= required:
        return 0.9
    if baseline > 0:
        return min(0.8, 0.5 + (baseline / required) * 0.3)
    return 0.2


def recommend_levers(
    target_amount: float, required: float, baseline: float, remaining: int
) -> list[Lever]:
    """Suggest ways to close the gap between ``baseline`` and ``required``."""

    if baseline >= required:
        return [
            Lever(
                "Maintain current savings rate",
                0.0,
                "You're on track! Continue saving at your current rate.",
            )
        ]

    shortfall = required - baseline
    levers = [
        Lever(
            "Reduce monthly expenses",
            round_money(shortfall),
            f"Reduce expenses by ${shortfall:.2f}/month to meet your goal",
        ),
        Lever(
            "Increase monthly income",
            round_money(shortfall),
            f"Increase income by ${shortfall:.2f}/month to meet your goal",
        ),
    ]
    extended = math.ceil(target_amount / max(baseline, 1))
    if extended > remaining:
        levers.append(
            Lever(
                "Extend target date",
                0.0,
                f"Extend target date by {extended - remaining} months to make goal achievable",
            )
        )
    return levers


def forecast_goal(
    transactions: Transactions,
    target_amount: float,
    target_date: date | str,
    now: date | str,
    *,
    current_progress: float = 0.0,
) -> GoalForecast:
    """Feasibility plus probability, recent history and recommended levers."""

    txns = as_transactions(transactions)
    today = parse_local_date(now)
    remaining = months_remaining(target_date, today)
    required = target_amount / remaining
    baseline = baseline_surplus(txns, today)
    feasibility = calculate_feasibility(txns, target_amount, target_date, today)

    history = tuple(summarize_month(txns, m) for m in trailing_months(today, BASELINE_MONTHS))
    return GoalForecast(
        months_remaining=remaining,
        required_monthly_savings=round_money(required),
        current_progress=round_money(current_progress),
        gap=round_money(target_amount - current_progress),
        on_track_probability=round_half_up(on_track_probability(baseline, required), 2),
        avg_monthly_net=round_money(baseline),
        feasibility=feasibility,
        history=history,
        levers=tuple(recommend_levers(target_amount, required, baseline, remaining)),
    )


__all__ = [
    "baseline_surplus",
    "calculate_feasibility",
    "forecast_goal",
    "months_remaining",
    "on_track_probability",
    "recommend_levers",
]
