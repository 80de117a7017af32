from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from finance_signals.insights import (
    CoachProfile,
    build_goal_insight_packet,
    signals_to_insights,
)
from finance_signals.models import (
    Anomaly,
    Cashflow,
    CategoryTrend,
    KnownCharge,
    RecurringCharge,
)
from tests.helpers.factories import monthly_series, tx

# ---- signals_to_insights -----------------------------------------------------


def _trend(delta: float, impact: float) -> CategoryTrend:
    return CategoryTrend("Dining", delta, impact, 0.8, 200.0, 200.0 - impact)


def test_priorities_and_ordering():
    signals = [
        RecurringCharge("Netflix", 15.99, "monthly", 0.95, 3),
        _trend(-15.0, -30.0),
        Anomaly(
            "big", -900.0, date(2024, 2, 3), "Unusually large expense (450% above average)", 0.9
        ),
        _trend(100.0, 100.0),
        Cashflow(1000.0, 400.0, 600.0, 60.0, "improving"),
    ]

    insights = signals_to_insights(signals)

    assert [(i.priority, i.signal_id) for i in insights] == [
        ("p0", "CATEGORY_TREND_Dining"),
        ("p0", "CASHFLOW"),
        ("p1", "CATEGORY_TREND_Dining"),
        ("p1", "ANOMALY_big"),
        ("p2", "RECURRING_Netflix"),
    ]


def test_trend_insight_text():
    (insight,) = signals_to_insights([_trend(100.0, 100.0)])
    assert insight.id == "trend-Dining"
    assert insight.title == "Dining spending increased 100.0%"
    assert insight.message.startswith("Your dining spending increased by $100.00")
    assert insight.impact_annual == 1200.0
    assert "Change: +100.0%" in insight.evidence


def test_low_confidence_recurring_is_skipped():
    signals = [
        RecurringCharge("Maybe", 5.0, "monthly", 0.7, 2),
        RecurringCharge("Weekly", 10.0, "weekly", 0.71, 4),
    ]
    (insight,) = signals_to_insights(signals)
    assert insight.id == "recurring-Weekly"
    assert insight.impact_monthly == 43.3
    assert insight.impact_annual == 520.0


def test_cashflow_actions_follow_net_and_rate():
    negative = signals_to_insights([Cashflow(0.0, 50.0, -50.0, None, "improving")])[0]
    assert negative.title == "Monthly improvement"
    assert negative.actions[0] == "Review your largest expense categories"
    assert negative.message == "This month: $0.00 income, $50.00 expenses, $-50.00 net."

    thin = signals_to_insights([Cashflow(1000.0, 950.0, 50.0, 5.0, "stable")])[0]
    assert thin.title == "Monthly summary"
    assert thin.actions[0] == "Consider increasing your savings rate"


def test_unknown_signal_type_is_rejected():
    with pytest.raises(TypeError):
        signals_to_insights([object()])  # type: ignore[list-item]


# ---- goal insight packet -----------------------------------------------------

NOW = date(2024, 3, 15)


def _history():
    txns = [tx(3000, f"2024-{m:02d}-01", "Income", name="Payroll") for m in (1, 2, 3)]
    txns += monthly_series(-15.99, date(2023, 12, 10), 4, name="Netflix", category="Streaming")
    txns += [
        tx(-200, "2024-01-08", "Groceries"),
        tx(-210, "2024-02-08", "Groceries"),
        tx(-400, "2024-03-08", "Groceries"),
        tx(-50, "2024-03-09", "Coffee"),
    ]
    return txns


def test_packet_contents():
    packet = build_goal_insight_packet(
        _history(), target_amount=6000, target_date="2024-09-11", now=NOW
    )

    assert packet.goal.months_remaining == 6
    assert packet.goal.deadline == "2024-09-11"
    assert packet.feasibility.required_per_month == 1000.0
    assert [m.month for m in packet.history_summary] == ["2024-01", "2024-02", "2024-03"]
    assert packet.history_summary[2].categories[0].category == "Groceries"

    drivers = {d.category: d for d in packet.spend_drivers}
    assert drivers["Groceries"].avg_monthly == 270.0
    assert drivers["Groceries"].trend == "up"
    assert drivers["Streaming"].trend == "flat"

    assert [(r.name, r.frequency) for r in packet.recurring_charges] == [("Netflix", "monthly")]

    spikes = [a for a in packet.anomalies if a.type == "category_spike"]
    assert {s.category for s in spikes} == {"Groceries", "Coffee"}


def test_packet_excludes_cancelled_recurring_and_serializes():
    packet = build_goal_insight_packet(
        _history(),
        target_amount=6000,
        target_date=date(2024, 9, 11),
        now=NOW,
        known=[KnownCharge("Netflix", status="cancelled")],
        coach_profile=CoachProfile(style=[" direct ", ""], additional_notes="be brief"),
    )

    assert packet.recurring_charges == []
    dumped = packet.model_dump(mode="json")
    assert dumped["coach_profile"] == {"style": ["direct"], "additional_notes": "be brief"}
    assert dumped["goal"]["type"] == "save_amount"
    assert all("type" in a for a in dumped["anomalies"])


def test_coach_profile_rejects_unknown_fields():
    with pytest.raises(ValidationError):
        CoachProfile(style=[], tone="harsh")  # type: ignore[call-arg]


def test_packet_unusual_transactions_are_recent_newest_first_and_capped():
    now = date(2024, 6, 15)
    txns = [tx(-10, date(2024, 3, 20) + timedelta(days=2 * i)) for i in range(30)]
    txns += [
        tx(-5000, "2024-02-01", id="too-old"),
        tx(-1300, "2024-04-01", id="oldest-recent"),
        tx(-1000, "2024-05-01"),
        tx(-1100, "2024-05-20"),
        tx(-1200, "2024-06-10"),
    ]

    packet = build_goal_insight_packet(
        txns, target_amount=1000, target_date="2024-12-31", now=now
    )

    unusual = [a for a in packet.anomalies if a.type == "unusual_transaction"]
    assert [u.amount for u in unusual] == [-1200, -1100, -1000]
    assert all(u.reason.startswith("Unusually large expense (") for u in unusual)
