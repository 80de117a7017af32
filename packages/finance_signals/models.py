"""Data models and type aliases for ``finance_signals``.

Everything here is a transient, immutable value object: the engine builds
fresh instances on each call and never caches or mutates them.

Signals form a tagged union (:data:`Signal`). Each variant carries a
class-level :class:`SignalKind` tag, and consumers dispatch with structural
pattern matching::

    match signal:
        case CategoryTrend(category=cat, delta_percent=delta):
            ...
        case Cashflow(net=net):
            ...
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Any, ClassVar, Literal, TypeAlias

from .dates import MonthKey, parse_local_date

# ---------------------------------------------------------------------------
# Closed vocabularies
# ---------------------------------------------------------------------------

Frequency: TypeAlias = Literal["monthly", "weekly", "yearly"]
CashflowTrend: TypeAlias = Literal["improving", "declining", "stable"]
FeasibilityStatus: TypeAlias = Literal["on_track", "off_track"]
ChargeStatus: TypeAlias = Literal["active", "cancelled", "unsure"]
ConfidenceBucket: TypeAlias = Literal["high", "medium", "low"]
Priority: TypeAlias = Literal["p0", "p1", "p2"]


class SignalKind(StrEnum):
    CATEGORY_TREND = "CATEGORY_TREND"
    ANOMALY = "ANOMALY"
    RECURRING_CHARGE = "RECURRING_CHARGE"
    CASHFLOW = "CASHFLOW"


# ---------------------------------------------------------------------------
# Input record
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Transaction:
    """A single bank transaction as supplied by the ingestion layer.

    Attributes
    ----------
    id:
        Opaque, stable, unique identifier.
    amount:
        Signed amount; negative is an expense, positive is income. The sign is
        already normalized upstream and never flipped here.
    date:
        Local calendar day (no time-of-day semantics).
    category:
        Raw, free-form category label, if any.
    name:
        Merchant/description string, the fallback grouping key.
    merchant_name:
        Preferred grouping key when present.
    """

    id: str
    amount: float
    date: date
    category: str | None = None
    name: str = ""
    merchant_name: str | None = None

    @property
    def is_expense(self) -> bool:
        return self.amount < 0

    @property
    def is_income(self) -> bool:
        return self.amount > 0

    @property
    def merchant_key(self) -> str:
        """Grouping identity: ``merchant_name`` when set, else ``name``."""

        return self.merchant_name or self.name

    @classmethod
    def from_mapping(cls, record: Mapping[str, Any]) -> Transaction:
        """Build a transaction from a mapping with snake_case or camelCase keys.

        ``date`` goes through :func:`~finance_signals.dates.parse_local_date`,
        so ISO strings, ``datetime`` and ``date`` values all resolve to the
        same local calendar day.
        """

        merchant = record.get("merchant_name", record.get("merchantName"))
        raw_id = record.get("id")
        if raw_id is None or str(raw_id).strip() == "":
            raise ValueError("transaction id is required")
        return cls(
            id=str(raw_id),
            amount=float(record["amount"]),
            date=parse_local_date(record["date"]),
            category=record.get("category"),
            name=str(record.get("name") or ""),
            merchant_name=merchant or None,
        )


Transactions: TypeAlias = Iterable[Transaction | Mapping[str, Any]]
"""Engine input: transactions or transaction-shaped mappings."""


def as_transactions(transactions: Transactions | None) -> list[Transaction]:
    """Materialize the caller's collection into a list of :class:`Transaction`.

    The caller's objects are never mutated. ``None`` and items that are
    neither transactions nor mappings raise ``TypeError``.
    """

    if transactions is None:
        raise TypeError("transactions must not be None")
    out: list[Transaction] = []
    for item in transactions:
        if isinstance(item, Transaction):
            out.append(item)
        elif isinstance(item, Mapping):
            out.append(Transaction.from_mapping(item))
        else:
            raise TypeError(
                "expected Transaction or mapping with keys like 'id', 'amount', "
                f"'date', 'category', 'name', 'merchantName'; got {type(item).__name__}"
            )
    return out


# ---------------------------------------------------------------------------
# Signals
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategoryTrend:
    """Month-over-month change in spending for one normalized category."""

    kind: ClassVar[SignalKind] = SignalKind.CATEGORY_TREND

    category: str
    delta_percent: float
    monthly_impact: float
    confidence: float
    current_month_total: float
    previous_month_total: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": str(self.kind),
            "category": self.category,
            "deltaPercent": self.delta_percent,
            "monthlyImpact": self.monthly_impact,
            "confidence": self.confidence,
            "currentMonth": self.current_month_total,
            "previousMonth": self.previous_month_total,
        }


@dataclass(frozen=True, slots=True)
class Anomaly:
    """An expense that sits well above the user's typical expense size."""

    kind: ClassVar[SignalKind] = SignalKind.ANOMALY

    transaction_id: str
    amount: float
    date: date
    reason: str
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": str(self.kind),
            "transactionId": self.transaction_id,
            "amount": self.amount,
            "date": self.date.isoformat(),
            "reason": self.reason,
            "confidence": self.confidence,
        }


@dataclass(frozen=True, slots=True)
class RecurringCharge:
    kind: ClassVar[SignalKind] = SignalKind.RECURRING_CHARGE

    name: str
    amount: float
    frequency: Frequency
    confidence: float
    transaction_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": str(self.kind),
            "name": self.name,
            "amount": self.amount,
            "frequency": self.frequency,
            "confidence": self.confidence,
            "transactionCount": self.transaction_count,
        }


@dataclass(frozen=True, slots=True)
class Cashflow:
    """Income/expense summary for one month plus the trend versus the prior month."""

    kind: ClassVar[SignalKind] = SignalKind.CASHFLOW

    monthly_income: float
    monthly_expenses: float
    net: float
    savings_rate: float | None
    trend: CashflowTrend

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": str(self.kind),
            "monthlyIncome": self.monthly_income,
            "monthlyExpenses": self.monthly_expenses,
            "net": self.net,
            "savingsRate": self.savings_rate,
            "trend": self.trend,
        }


Signal: TypeAlias = CategoryTrend | Anomaly | RecurringCharge | Cashflow


# ---------------------------------------------------------------------------
# Month summaries (dashboard / goal history)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CategoryAmount:
    category: str
    amount: float

    def to_dict(self) -> dict[str, Any]:
        return {"category": self.category, "amount": self.amount}


@dataclass(frozen=True, slots=True)
class MonthSummary:
    month: MonthKey
    income: float
    spend: float
    net: float
    categories: tuple[CategoryAmount, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "month": str(self.month),
            "income": self.income,
            "spend": self.spend,
            "net": self.net,
            "categories": [c.to_dict() for c in self.categories],
        }


@dataclass(frozen=True, slots=True)
class DashboardSummary:
    month: MonthKey
    cashflow: Cashflow
    category_breakdown: tuple[CategoryAmount, ...]
    changes: tuple[CategoryTrend, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "targetMonth": str(self.month),
            "income": self.cashflow.monthly_income,
            "expenses": self.cashflow.monthly_expenses,
            "net": self.cashflow.net,
            "savingsRate": self.cashflow.savings_rate,
            "trend": self.cashflow.trend,
            "categoryBreakdown": [c.to_dict() for c in self.category_breakdown],
            "changes": [c.to_dict() for c in self.changes],
        }


# ---------------------------------------------------------------------------
# Recurring-charge tracking
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class KnownCharge:
    """A user-labelled recurring charge persisted by the storage layer."""

    name: str
    status: ChargeStatus = "active"
    id: str | None = None


@dataclass(frozen=True, slots=True)
class TrackedCharge:
    """A detected charge merged with any persisted user label."""

    id: str
    name: str
    amount: float
    frequency: Frequency
    confidence: float
    transaction_count: int
    status: ChargeStatus
    is_detected: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "amount": self.amount,
            "frequency": self.frequency,
            "confidence": self.confidence,
            "transactionCount": self.transaction_count,
            "status": self.status,
            "isDetected": self.is_detected,
        }


@dataclass(frozen=True, slots=True)
class RecurringOverview:
    charges: tuple[TrackedCharge, ...]
    monthly_total: float

    @property
    def total_count(self) -> int:
        return len(self.charges)

    def to_dict(self) -> dict[str, Any]:
        return {
            "recurringCharges": [c.to_dict() for c in self.charges],
            "monthlyTotal": self.monthly_total,
            "totalCount": self.total_count,
        }


# ---------------------------------------------------------------------------
# Goals
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class GoalFeasibility:
    required_per_month: float
    estimated_surplus_per_month: float
    gap_per_month: float
    status: FeasibilityStatus

    def to_dict(self) -> dict[str, Any]:
        return {
            "requiredPerMonth": self.required_per_month,
            "estimatedSurplusPerMonth": self.estimated_surplus_per_month,
            "gapPerMonth": self.gap_per_month,
            "status": self.status,
        }


@dataclass(frozen=True, slots=True)
class Lever:
    """A suggested adjustment that would close (part of) a goal's gap."""

    action: str
    impact: float
    description: str

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action, "impact": self.impact, "description": self.description}


@dataclass(frozen=True, slots=True)
class GoalForecast:
    months_remaining: int
    required_monthly_savings: float
    current_progress: float
    gap: float
    on_track_probability: float
    avg_monthly_net: float
    feasibility: GoalFeasibility
    history: tuple[MonthSummary, ...] = ()
    levers: tuple[Lever, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "forecast": {
                "requiredMonthlySavings": self.required_monthly_savings,
                "currentProgress": self.current_progress,
                "gap": self.gap,
                "monthsRemaining": self.months_remaining,
                "onTrackProbability": self.on_track_probability,
                "avgMonthlyNet": self.avg_monthly_net,
            },
            "feasibility": self.feasibility.to_dict(),
            "historySummary": [
                {"month": str(m.month), "income": m.income, "spend": m.spend, "net": m.net}
                for m in self.history
            ],
            "recommendedLevers": [lv.to_dict() for lv in self.levers],
        }


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Insight:
    """A human-readable rendering of one signal."""

    id: str
    priority: Priority
    title: str
    message: str
    signal_id: str
    evidence: tuple[str, ...] = ()
    impact_monthly: float | None = None
    impact_annual: float | None = None
    actions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "priority": self.priority,
            "title": self.title,
            "message": self.message,
            "evidence": list(self.evidence),
            "impact": {"monthly": self.impact_monthly, "annual": self.impact_annual},
            "actions": list(self.actions),
            "signalId": self.signal_id,
        }


__all__ = [
    "Anomaly",
    "CashflowTrend",
    "Cashflow",
    "CategoryAmount",
    "CategoryTrend",
    "ChargeStatus",
    "ConfidenceBucket",
    "DashboardSummary",
    "FeasibilityStatus",
    "Frequency",
    "GoalFeasibility",
    "GoalForecast",
    "Insight",
    "KnownCharge",
    "Lever",
    "MonthSummary",
    "Priority",
    "RecurringCharge",
    "RecurringOverview",
    "Signal",
    "SignalKind",
    "TrackedCharge",
    "Transaction",
    "Transactions",
    "as_transactions",
]
