"""Anomaly Detector: unusually large expenses.

An expense is flagged when its absolute amount exceeds the mean plus two
population standard deviations of all expense amounts in the snapshot.
"""

from __future__ import annotations

import math

from .logging_setup import get_logger
from .models import Anomaly, Transactions, as_transactions
from .rounding import round_half_up

MIN_EXPENSES = 3
STD_DEV_MULTIPLIER = 2.0
MAX_CONFIDENCE = 0.9

_logger = get_logger("finance_signals.anomalies")


def detect_anomalies(transactions: Transactions) -> list[Anomaly]:
    """Flag expenses above ``mean + 2 * std_dev`` of expense magnitudes.

    Returns ``[]`` when the snapshot holds fewer than three expenses. Results
    are sorted by date, then transaction id.
    """

    txns = as_transactions(transactions)
    expenses = [t for t in txns if t.is_expense]
    if len(expenses) < MIN_EXPENSES:
        _logger.debug("anomalies: %d expenses, below minimum sample", len(expenses))
        return []

    magnitudes = [-t.amount for t in expenses]
    n = len(magnitudes)
    mean = math.fsum(magnitudes) / n
    variance = math.fsum((v - mean) ** 2 for v in magnitudes) / n
    threshold = mean + STD_DEV_MULTIPLIER * math.sqrt(variance)

    signals: list[Anomaly] = []
    for t in expenses:
        magnitude = -t.amount
        if magnitude <= threshold:
            continue
        pct = int(round_half_up(magnitude / mean * 100, 0))
        signals.append(
            Anomaly(
                transaction_id=t.id,
                amount=t.amount,
                date=t.date,
                reason=f"Unusually large expense ({pct}% above average)",
                confidence=min(MAX_CONFIDENCE, 0.6 + (magnitude / threshold) * 0.3),
            )
        )

    signals.sort(key=lambda a: (a.date, a.transaction_id))
    _logger.debug(
        "anomalies: n=%d mean=%.2f threshold=%.2f flagged=%d", n, mean, threshold, len(signals)
    )
    return signals


__all__ = ["MIN_EXPENSES", "detect_anomalies"]
