"""Local calendar-date parsing and month arithmetic.

Every analytics function buckets transactions by calendar month, so dates are
handled in exactly one place. The contract is simple: a transaction date is a
*local* calendar day. Timestamps are never converted between timezones; only
their year/month/day components are read.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime
from typing import NamedTuple


def parse_local_date(value: date | datetime | str) -> date:
    """Return the local calendar day represented by ``value``.

    Accepted inputs
    ---------------
    - ``date``: returned unchanged.
    - ``datetime`` (naive or aware): its own ``.date()``; no offset is applied.
    - ``str``: ``YYYY-MM-DD`` optionally followed by a time component
      (``T`` or space separated, with or without an offset), or
      ``MM/DD/YYYY``. Only the date part is read.

    Raises ``ValueError`` for unparseable strings and ``TypeError`` for other
    value types.
    """

    # datetime is a date subclass, check it first
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise TypeError(f"unsupported date value: {value!r}")

    s = value.strip()
    if not s:
        raise ValueError("date is empty")
    first = s.split()[0].split("T", 1)[0]
    if "/" in first:
        try:
            return datetime.strptime(first, "%m/%d/%Y").date()
        except ValueError as exc:
            raise ValueError(f"invalid MM/DD/YYYY date: {value!r}") from exc
    try:
        return date.fromisoformat(first[:10])
    except ValueError as exc:
        raise ValueError(f"invalid ISO date: {value!r}") from exc


class MonthKey(NamedTuple):
    """A calendar month identified by ``(year, month)``."""

    year: int
    month: int

    @classmethod
    def of(cls, d: date) -> MonthKey:
        return cls(d.year, d.month)

    @classmethod
    def parse(cls, text: str) -> MonthKey:
        """Parse ``"YYYY-MM"``."""

        try:
            y, m = text.strip().split("-")
            key = cls(int(y), int(m))
        except ValueError as exc:
            raise ValueError(f"invalid month (expected YYYY-MM): {text!r}") from exc
        return key.validated()

    @classmethod
    def coerce(cls, value: MonthKey | tuple[int, int] | date | str) -> MonthKey:
        if isinstance(value, MonthKey):
            return value.validated()
        if isinstance(value, date):
            return cls.of(value)
        if isinstance(value, str):
            return cls.parse(value)
        y, m = value
        return cls(int(y), int(m)).validated()

    def validated(self) -> MonthKey:
        if not 1 <= self.month <= 12:
            raise ValueError(f"month must be within 1..12, got {self.month}")
        return self

    def shift(self, months: int) -> MonthKey:
        idx = self.year * 12 + (self.month - 1) + months
        return MonthKey(idx // 12, idx % 12 + 1)

    def previous(self) -> MonthKey:
        return self.shift(-1)

    def contains(self, d: date) -> bool:
        return d.year == self.year and d.month == self.month

    def __str__(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def add_months(d: date, months: int) -> date:
    """Shift ``d`` by whole calendar months, clamping the day to month end."""

    target = MonthKey.of(d).shift(months)
    last_day = calendar.monthrange(target.year, target.month)[1]
    return date(target.year, target.month, min(d.day, last_day))


def trailing_months(anchor: date | MonthKey, count: int) -> list[MonthKey]:
    """Return the ``count`` months ending at ``anchor``'s month, oldest first."""

    end = anchor if isinstance(anchor, MonthKey) else MonthKey.of(anchor)
    return [end.shift(-i) for i in range(count - 1, -1, -1)]


__all__ = [
    "MonthKey",
    "add_months",
    "parse_local_date",
    "trailing_months",
]
