from datetime import date, timedelta

import pytest

from finance_signals.models import KnownCharge, RecurringCharge, TrackedCharge
from finance_signals.recurring import (
    classify_intervals,
    confidence_bucket,
    detect_recurring_charges,
    filter_by_confidence,
    merge_known_status,
    monthly_equivalent,
    monthly_total,
)
from tests.helpers.factories import tx


def test_evenly_spaced_monthly_charge():
    # 2024 is a leap year: Jan 1 -> Jan 31 -> Mar 1 are 30 days apart.
    txns = [tx(-15.99, d, name="Netflix") for d in ("2024-01-01", "2024-01-31", "2024-03-01")]

    (charge,) = detect_recurring_charges(txns)

    assert charge == RecurringCharge(
        name="Netflix", amount=15.99, frequency="monthly", confidence=1.0, transaction_count=3
    )


def test_irregular_gaps_in_monthly_band_are_not_reported():
    # intervals 10 and 40: average 25 but variance 225 -> confidence floors at 0.5
    txns = [tx(-9.99, d, name="Gym") for d in ("2024-01-01", "2024-01-11", "2024-02-20")]
    assert classify_intervals([10, 40]) == ("monthly", 0.5)
    assert detect_recurring_charges(txns) == []


def test_weekly_charge():
    start = date(2024, 3, 4)
    txns = [tx(-6.5, start + timedelta(days=7 * i), name="Car Wash") for i in range(5)]

    (charge,) = detect_recurring_charges(txns)

    assert charge.frequency == "weekly"
    assert charge.confidence == 1.0
    assert charge.transaction_count == 5


def test_yearly_charge_has_fixed_confidence():
    txns = [tx(-99, "2023-06-01", name="Domain"), tx(-99, "2024-05-31", name="Domain")]
    (charge,) = detect_recurring_charges(txns)
    assert charge.frequency == "yearly"
    assert charge.confidence == 0.7


def test_single_occurrence_and_income_are_ignored():
    txns = [
        tx(-12, "2024-01-01", name="Once"),
        tx(2500, "2024-01-01", name="Payroll"),
        tx(2500, "2024-01-31", name="Payroll"),
        tx(2500, "2024-03-01", name="Payroll"),
    ]
    assert detect_recurring_charges(txns) == []


def test_price_change_splits_groups_and_merchant_name_wins():
    dates = ("2024-01-01", "2024-01-31", "2024-03-01")
    txns = [tx(-15.99, d, name="NETFLIX.COM 123", merchant="Netflix") for d in dates]
    txns += [tx(-17.99, d, name="NETFLIX.COM 456", merchant="Netflix") for d in dates]

    charges = detect_recurring_charges(txns)

    assert [(c.name, c.amount) for c in charges] == [("Netflix", 15.99), ("Netflix", 17.99)]


def test_gaps_outside_every_band():
    assert classify_intervals([]) is None
    assert classify_intervals([15, 15]) is None
    assert classify_intervals([100]) is None


def test_weekly_confidence_uses_tighter_divisor():
    frequency, confidence = classify_intervals([6, 8])
    assert frequency == "weekly"
    assert confidence == pytest.approx(0.9)


# ---- bookkeeping ------------------------------------------------------------


def _detected():
    return [
        RecurringCharge("Netflix", 15.99, "monthly", 0.95, 4),
        RecurringCharge("Spotify", 9.99, "monthly", 0.65, 3),
        RecurringCharge("Cleaner", 40.0, "weekly", 0.55, 6),
    ]


def test_merge_known_status_matches_names_case_insensitively():
    known = [KnownCharge("netflix", status="cancelled", id="k1")]

    merged = merge_known_status(_detected(), known)

    assert merged[0] == TrackedCharge(
        id="k1",
        name="Netflix",
        amount=15.99,
        frequency="monthly",
        confidence=0.95,
        transaction_count=4,
        status="cancelled",
        is_detected=False,
    )
    assert merged[1].id == "detected-Spotify"
    assert merged[1].status == "active"
    assert merged[1].is_detected is True


@pytest.mark.parametrize(
    ("confidence", "bucket"),
    [(1.0, "high"), (0.8, "high"), (0.79, "medium"), (0.6, "medium"), (0.59, "low")],
)
def test_confidence_bucket(confidence, bucket):
    assert confidence_bucket(confidence) == bucket


def test_filter_by_confidence():
    tracked = merge_known_status(_detected())
    assert [c.name for c in filter_by_confidence(tracked, "high")] == ["Netflix"]
    assert [c.name for c in filter_by_confidence(tracked, " Medium ")] == ["Spotify"]
    assert [c.name for c in filter_by_confidence(tracked, "low")] == ["Cleaner"]
    assert len(filter_by_confidence(tracked, None)) == 3
    with pytest.raises(ValueError):
        filter_by_confidence(tracked, "certain")


def test_monthly_equivalents_and_total_skip_cancelled():
    assert monthly_equivalent(10, "weekly") == pytest.approx(43.3)
    assert monthly_equivalent(120, "yearly") == 10
    assert monthly_equivalent(15, "monthly") == 15

    tracked = merge_known_status(_detected(), [KnownCharge("Netflix", status="cancelled")])
    # 9.99 + 40 * 4.33
    assert monthly_total(tracked) == 183.19


@pytest.mark.parametrize(
    ("gap", "expected"),
    [
        (4, None),
        (5, "weekly"),
        (9, "weekly"),
        (10, None),
        (24, None),
        (25, "monthly"),
        (35, "monthly"),
        (36, None),
        (359, None),
        (360, "yearly"),
        (370, "yearly"),
        (371, None),
    ],
)
def test_band_edges_are_inclusive(gap, expected):
    result = classify_intervals([gap, gap])
    assert (result[0] if result else None) == expected
