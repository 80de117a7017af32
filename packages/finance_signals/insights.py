"""Deterministic insights and the goal insight packet.

Two consumers sit downstream of the detectors:

- the insights feed, which renders each signal as a short, prioritized card
  (:func:`signals_to_insights`); and
- the goal coach, which forwards a structured packet describing a savings
  goal and the user's recent history to an external natural-language step
  (:func:`build_goal_insight_packet`). Generating the text itself happens
  outside this package.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .anomalies import detect_anomalies
from .cashflow import average_monthly_spend_by_category, summarize_month
from .dates import MonthKey, add_months, parse_local_date, trailing_months
from .feasibility import BASELINE_MONTHS, calculate_feasibility, months_remaining
from .models import (
    Anomaly,
    Cashflow,
    CategoryTrend,
    Insight,
    KnownCharge,
    RecurringCharge,
    Signal,
    Transactions,
    as_transactions,
)
from .recurring import detect_recurring_charges, merge_known_status, monthly_equivalent
from .rounding import round_money
from .trends import detect_category_trends

_PRIORITY_ORDER = {"p0": 0, "p1": 1, "p2": 2}

# Recurring charges below this confidence do not produce an insight card.
RECURRING_INSIGHT_MIN_CONFIDENCE = 0.7

# Packet thresholds
PACKET_RECURRING_MIN_CONFIDENCE = 0.7
PACKET_SPIKE_DELTA_PCT = 15.0
PACKET_SPIKE_IMPACT = 50.0
PACKET_MAX_ANOMALIES = 3
PACKET_MAX_DRIVERS = 5


# ---------------------------------------------------------------------------
# Signal -> insight rendering
# ---------------------------------------------------------------------------


def _signed(amount: float) -> str:
    return f"{'+' if amount >= 0 else ''}{amount:.2f}"


def _trend_insight(s: CategoryTrend) -> Insight:
    increased = s.delta_percent > 0
    if increased:
        message = (
            f"Your {s.category.lower()} spending increased by ${abs(s.monthly_impact):.2f} "
            "this month compared to last month."
        )
        actions = (
            "Review recent transactions in this category",
            "Consider setting a monthly budget limit",
        )
    else:
        message = (
            f"Great! Your {s.category.lower()} spending decreased by "
            f"${abs(s.monthly_impact):.2f} this month."
        )
        actions = ("Keep up the good work!",)
    return Insight(
        id=f"trend-{s.category}",
        priority="p0" if abs(s.delta_percent) > 20 else "p1",
        title=(
            f"{s.category} spending {'increased' if increased else 'decreased'} "
            f"{abs(s.delta_percent):.1f}%"
        ),
        message=message,
        signal_id=f"CATEGORY_TREND_{s.category}",
        evidence=(
            f"Current month: ${s.current_month_total:.2f}",
            f"Previous month: ${s.previous_month_total:.2f}",
            f"Change: {'+' if s.delta_percent > 0 else ''}{s.delta_percent:.1f}%",
        ),
        impact_monthly=s.monthly_impact,
        impact_annual=round_money(s.monthly_impact * 12),
        actions=actions,
    )


def _anomaly_insight(s: Anomaly) -> Insight:
    return Insight(
        id=f"anomaly-{s.transaction_id}",
        priority="p1",
        title="Unusual transaction detected",
        message=s.reason,
        signal_id=f"ANOMALY_{s.transaction_id}",
        evidence=(f"Amount: ${abs(s.amount):.2f}", f"Date: {s.date.isoformat()}"),
        impact_monthly=abs(s.amount),
        impact_annual=None,
        actions=(
            "Verify this transaction is legitimate",
            "Check if this is a one-time expense or recurring",
        ),
    )


def _recurring_insight(s: RecurringCharge) -> Insight:
    if s.frequency == "weekly":
        annual = s.amount * 52
    elif s.frequency == "yearly":
        annual = s.amount
    else:
        annual = s.amount * 12
    return Insight(
        id=f"recurring-{s.name}",
        priority="p2",
        title=f"Recurring charge: {s.name}",
        message=f"You have a {s.frequency} charge of ${s.amount:.2f} for {s.name}.",
        signal_id=f"RECURRING_{s.name}",
        evidence=(
            f"Amount: ${s.amount:.2f}",
            f"Frequency: {s.frequency}",
            f"Confidence: {s.confidence * 100:.0f}%",
            f"Based on {s.transaction_count} transactions",
        ),
        impact_monthly=round_money(monthly_equivalent(s.amount, s.frequency)),
        impact_annual=round_money(annual),
        actions=(
            "Review if this subscription is still needed",
            "Consider canceling unused services",
        ),
    )


def _cashflow_insight(s: Cashflow) -> Insight:
    label = {"improving": "improvement", "declining": "decline"}.get(s.trend, "summary")
    rate = (
        f" Savings rate: {s.savings_rate:.1f}%." if s.savings_rate is not None else ""
    )
    evidence = [
        f"Income: ${s.monthly_income:.2f}",
        f"Expenses: ${s.monthly_expenses:.2f}",
        f"Net: ${_signed(s.net)}",
    ]
    if s.savings_rate is not None:
        evidence.append(f"Savings rate: {s.savings_rate:.1f}%")

    if s.net < 0:
        actions: tuple[str, ...] = (
            "Review your largest expense categories",
            "Consider reducing discretionary spending",
        )
    elif s.savings_rate is not None and s.savings_rate < 10:
        actions = (
            "Consider increasing your savings rate",
            "Set up automatic transfers to savings",
        )
    else:
        actions = ("You're on track! Consider setting a savings goal.",)

    return Insight(
        id="cashflow-summary",
        priority="p0",
        title=f"Monthly {label}",
        message=(
            f"This month: ${s.monthly_income:.2f} income, ${s.monthly_expenses:.2f} "
            f"expenses, ${_signed(s.net)} net.{rate}"
        ),
        signal_id="CASHFLOW",
        evidence=tuple(evidence),
        impact_monthly=s.net,
        impact_annual=round_money(s.net * 12),
        actions=actions,
    )


def signals_to_insights(signals: Iterable[Signal]) -> list[Insight]:
    """Render signals as insight cards, ``p0`` first.

    Recurring charges at or below 0.7 confidence are skipped. Within a
    priority the input order is kept.
    """

    insights: list[Insight] = []
    for signal in signals:
        match signal:
            case CategoryTrend():
                insights.append(_trend_insight(signal))
            case Anomaly():
                insights.append(_anomaly_insight(signal))
            case RecurringCharge(confidence=conf) if conf > RECURRING_INSIGHT_MIN_CONFIDENCE:
                insights.append(_recurring_insight(signal))
            case RecurringCharge():
                pass
            case Cashflow():
                insights.append(_cashflow_insight(signal))
            case _:
                raise TypeError(f"unsupported signal: {type(signal).__name__}")
    insights.sort(key=lambda i: _PRIORITY_ORDER[i.priority])
    return insights


# ---------------------------------------------------------------------------
# Goal insight packet
# ---------------------------------------------------------------------------


class _PacketModel(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)


class CoachProfile(_PacketModel):
    """Coaching preferences stored with the user profile."""

    style: list[str] = Field(default_factory=list)
    additional_notes: str | None = None

    @field_validator("style")
    @classmethod
    def _strip_styles(cls, v: list[str]) -> list[str]:
        return [s.strip() for s in v if s and s.strip()]


class PacketGoal(_PacketModel):
    type: Literal["save_amount"] = "save_amount"
    target_amount: float
    deadline: str
    months_remaining: int


class PacketFeasibility(_PacketModel):
    required_per_month: float
    estimated_surplus_per_month: float
    gap_per_month: float
    status: Literal["on_track", "off_track"]


class PacketCategory(_PacketModel):
    category: str
    amount: float


class PacketMonth(_PacketModel):
    month: str
    income: float
    spend: float
    net: float
    categories: list[PacketCategory]


class SpendDriver(_PacketModel):
    category: str
    avg_monthly: float
    trend: Literal["up", "down", "flat"]


class PacketRecurring(_PacketModel):
    name: str
    amount: float
    frequency: Literal["monthly", "weekly", "yearly"]


class CategorySpike(_PacketModel):
    type: Literal["category_spike"] = "category_spike"
    category: str
    delta_pct: float
    impact_monthly: float


class UnusualTransaction(_PacketModel):
    type: Literal["unusual_transaction"] = "unusual_transaction"
    amount: float
    reason: str


PacketAnomaly = Annotated[CategorySpike | UnusualTransaction, Field(discriminator="type")]


class GoalInsightPacket(_PacketModel):
    """Everything the external coaching step needs to explain a goal."""

    coach_profile: CoachProfile
    goal: PacketGoal
    feasibility: PacketFeasibility
    history_summary: list[PacketMonth]
    spend_drivers: list[SpendDriver]
    recurring_charges: list[PacketRecurring]
    anomalies: list[PacketAnomaly]


def _driver_trend(category: str, trends: dict[str, CategoryTrend]) -> str:
    t = trends.get(category)
    if t is None or t.delta_percent == 0:
        return "flat"
    return "up" if t.delta_percent > 0 else "down"


def build_goal_insight_packet(
    transactions: Transactions,
    *,
    target_amount: float,
    target_date: date | str,
    now: date | str,
    known: Iterable[KnownCharge] = (),
    coach_profile: CoachProfile | None = None,
) -> GoalInsightPacket:
    """Assemble the goal insight packet from the detectors' outputs.

    - ``history_summary``: the trailing three months (oldest first) with
      per-category spend.
    - ``spend_drivers``: top five categories by average monthly spend over the
      same window, tagged with this month's direction of change.
    - ``recurring_charges``: active charges with confidence of at least 0.7.
    - ``anomalies``: material category spikes plus the three most recent
      unusual transactions from the last three months.
    """

    txns = as_transactions(transactions)
    today = parse_local_date(now)
    deadline = parse_local_date(target_date)
    window = trailing_months(today, BASELINE_MONTHS)

    feasibility = calculate_feasibility(txns, target_amount, deadline, today)
    history = [summarize_month(txns, m) for m in window]

    current = MonthKey.of(today)
    trends = detect_category_trends(txns, current, current.previous())
    trends_by_cat = {t.category: t for t in trends}

    drivers = [
        SpendDriver(
            category=c.category,
            avg_monthly=c.amount,
            trend=_driver_trend(c.category, trends_by_cat),
        )
        for c in average_monthly_spend_by_category(txns, window, top=PACKET_MAX_DRIVERS)
    ]

    tracked = merge_known_status(detect_recurring_charges(txns), known)
    recurring = [
        PacketRecurring(name=c.name, amount=c.amount, frequency=c.frequency)
        for c in tracked
        if c.confidence >= PACKET_RECURRING_MIN_CONFIDENCE and c.status == "active"
    ]

    cutoff = add_months(today, -BASELINE_MONTHS)
    recent = [t for t in txns if t.date >= cutoff]
    unusual = sorted(
        detect_anomalies(recent), key=lambda a: (a.date, a.transaction_id), reverse=True
    )

    anomalies: list[CategorySpike | UnusualTransaction] = [
        CategorySpike(
            category=t.category,
            delta_pct=t.delta_percent,
            impact_monthly=t.monthly_impact,
        )
        for t in trends
        if abs(t.delta_percent) > PACKET_SPIKE_DELTA_PCT
        or abs(t.monthly_impact) > PACKET_SPIKE_IMPACT
    ]
    anomalies.extend(
        UnusualTransaction(amount=a.amount, reason=a.reason)
        for a in unusual[:PACKET_MAX_ANOMALIES]
    )

    return GoalInsightPacket(
        coach_profile=coach_profile or CoachProfile(),
        goal=PacketGoal(
            target_amount=target_amount,
            deadline=deadline.isoformat(),
            months_remaining=months_remaining(deadline, today),
        ),
        feasibility=PacketFeasibility(
            required_per_month=feasibility.required_per_month,
            estimated_surplus_per_month=feasibility.estimated_surplus_per_month,
            gap_per_month=feasibility.gap_per_month,
            status=feasibility.status,
        ),
        history_summary=[
            PacketMonth(
                month=str(m.month),
                income=m.income,
                spend=m.spend,
                net=m.net,
                categories=[
                    PacketCategory(category=c.category, amount=c.amount) for c in m.categories
                ],
            )
            for m in history
        ],
        spend_drivers=drivers,
        recurring_charges=recurring,
        anomalies=anomalies,
    )


__all__ = [
    "CoachProfile",
    "GoalInsightPacket",
    "build_goal_insight_packet",
    "signals_to_insights",
]
