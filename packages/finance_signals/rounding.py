"""Half-up rounding for money and percentages.

The builtin :func:`round` uses banker's rounding (``round(0.125, 2) == 0.12``),
which is not what users expect for currency. Values are rounded through
:class:`~decimal.Decimal` using their shortest ``repr`` so ``2.675`` rounds to
``2.68``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext


def round_half_up(value: float, places: int = 2) -> float:
    """Round ``value`` to ``places`` decimals, halves away from zero."""

    d = Decimal(repr(float(value)))
    if not d.is_finite():
        return float(value)
    with localcontext() as ctx:
        # Enough digits for the integer part plus the requested places.
        ctx.prec = max(ctx.prec, d.adjusted() + places + 2)
        return float(d.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP))


def round_money(value: float) -> float:
    return round_half_up(value, 2)


__all__ = ["round_half_up", "round_money"]
