"""Recurring Charge Detector and recurring-charge bookkeeping.

Detection groups expenses by merchant identity and exact cent amount, then
infers a frequency from the gaps between successive charge dates. The
bookkeeping helpers merge detections with user labels persisted elsewhere,
bucket them by confidence, and convert amounts to a monthly equivalent.
"""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Iterable, Sequence
from datetime import date

from .logging_setup import get_logger
from .models import (
    ConfidenceBucket,
    Frequency,
    KnownCharge,
    RecurringCharge,
    TrackedCharge,
    Transactions,
    as_transactions,
)
from .rounding import round_half_up, round_money

# Average-interval bands in days (inclusive).
MONTHLY_BAND = (25.0, 35.0)
WEEKLY_BAND = (5.0, 9.0)
YEARLY_BAND = (360.0, 370.0)

# Interval-variance divisors; weekly charges must be more regular.
MONTHLY_VARIANCE_DIVISOR = 100.0
WEEKLY_VARIANCE_DIVISOR = 10.0
YEARLY_CONFIDENCE = 0.7
MIN_CONFIDENCE = 0.5
MIN_OCCURRENCES = 2

HIGH_CONFIDENCE = 0.8
MEDIUM_CONFIDENCE = 0.6

WEEKS_PER_MONTH = 4.33

_CONFIDENCE_BUCKETS: set[str] = {"high", "medium", "low"}

_logger = get_logger("finance_signals.recurring")


# ---------------------------------------------------------------------------
# Periodicity inference
# ---------------------------------------------------------------------------


def _intervals(dates: Sequence[date]) -> list[int]:
    ordered = sorted(dates)
    return [(b - a).days for a, b in zip(ordered, ordered[1:], strict=False)]


def _variance(values: Sequence[int], mean: float) -> float:
    return math.fsum((v - mean) ** 2 for v in values) / len(values)


def classify_intervals(intervals: Sequence[int]) -> tuple[Frequency, float] | None:
    """Infer ``(frequency, unrounded confidence)`` from day gaps.

    Returns ``None`` when the average gap falls outside every band.
    """

    if not intervals:
        return None
    avg = math.fsum(intervals) / len(intervals)

    if MONTHLY_BAND[0] <= avg <= MONTHLY_BAND[1]:
        variance = _variance(intervals, avg)
        return "monthly", max(MIN_CONFIDENCE, 1 - variance / MONTHLY_VARIANCE_DIVISOR)
    if WEEKLY_BAND[0] <= avg <= WEEKLY_BAND[1]:
        variance = _variance(intervals, avg)
        return "weekly", max(MIN_CONFIDENCE, 1 - variance / WEEKLY_VARIANCE_DIVISOR)
    if YEARLY_BAND[0] <= avg <= YEARLY_BAND[1]:
        return "yearly", YEARLY_CONFIDENCE
    return None


def detect_recurring_charges(transactions: Transactions) -> list[RecurringCharge]:
    """Detect repeating expenses.

    Expenses are grouped by ``(merchant_name or name, amount in cents)``; the
    match on amount is exact to the cent, so a merchant billing two different
    amounts yields two independent groups. Groups need at least two
    occurrences and a confidence strictly above 0.5 to be reported.
    """

    txns = as_transactions(transactions)
    groups: defaultdict[tuple[str, int], list[date]] = defaultdict(list)
    for t in txns:
        if not t.is_expense:
            continue
        cents = int(round_half_up(abs(t.amount) * 100, 0))
        groups[(t.merchant_key, cents)].append(t.date)

    signals: list[RecurringCharge] = []
    for (name, cents), dates in groups.items():
        if len(dates) < MIN_OCCURRENCES:
            continue
        classified = classify_intervals(_intervals(dates))
        if classified is None:
            continue
        frequency, confidence = classified
        if confidence <= MIN_CONFIDENCE:
            continue
        signals.append(
            RecurringCharge(
                name=name,
                amount=cents / 100,
                frequency=frequency,
                confidence=round_half_up(confidence, 2),
                transaction_count=len(dates),
            )
        )

    signals.sort(key=lambda s: (s.name, s.amount))
    _logger.debug("recurring: %d groups, %d recurring", len(groups), len(signals))
    return signals


# ---------------------------------------------------------------------------
# User labels, confidence buckets, monthly totals
# ---------------------------------------------------------------------------


def merge_known_status(
    detected: Iterable[RecurringCharge], known: Iterable[KnownCharge] = ()
) -> list[TrackedCharge]:
    """Attach persisted user labels to detected charges.

    Labels match on case-insensitive name. Charges without a label default to
    ``"active"`` and receive a synthetic ``detected-<name>`` id.
    """

    by_name = {k.name.lower(): k for k in known}
    out: list[TrackedCharge] = []
    for charge in detected:
        label = by_name.get(charge.name.lower())
        out.append(
            TrackedCharge(
                id=(label.id if label and label.id else f"detected-{charge.name}"),
                name=charge.name,
                amount=charge.amount,
                frequency=charge.frequency,
                confidence=charge.confidence,
                transaction_count=charge.transaction_count,
                status=label.status if label else "active",
                is_detected=label is None,
            )
        )
    return out


def confidence_bucket(confidence: float) -> ConfidenceBucket:
    if confidence >= HIGH_CONFIDENCE:
        return "high"
    if confidence >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


def filter_by_confidence(
    charges: Iterable[TrackedCharge], bucket: str | None
) -> list[TrackedCharge]:
    """Keep charges in ``bucket`` (``high``/``medium``/``low``); ``None`` keeps all."""

    items = list(charges)
    if bucket is None:
        return items
    b = bucket.strip().lower()
    if b not in _CONFIDENCE_BUCKETS:
        raise ValueError(
            f"Unsupported confidence bucket: {bucket!r}. Allowed: {sorted(_CONFIDENCE_BUCKETS)}"
        )
    return [c for c in items if confidence_bucket(c.confidence) == b]


def monthly_equivalent(amount: float, frequency: Frequency) -> float:
    if frequency == "weekly":
        return amount * WEEKS_PER_MONTH
    if frequency == "yearly":
        return amount / 12
    return amount


def monthly_total(charges: Iterable[TrackedCharge]) -> float:
    """Monthly-equivalent cost of all charges not marked ``cancelled``."""

    return round_money(
        math.fsum(
            monthly_equivalent(c.amount, c.frequency) for c in charges if c.status != "cancelled"
        )
    )


__all__ = [
    "classify_intervals",
    "confidence_bucket",
    "detect_recurring_charges",
    "filter_by_confidence",
    "merge_known_status",
    "monthly_equivalent",
    "monthly_total",
]
