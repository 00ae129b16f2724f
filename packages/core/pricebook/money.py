"""Money helpers — two-decimal rounding and display formatting."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def cents(value: float) -> float:
    """Round to cents, half-up (70.5375 -> 70.54, unlike binary ``round``)."""
    return float(Decimal(str(value)).quantize(_CENT, rounding=ROUND_HALF_UP))


def clamp_percent(value: object, upper: float | None = 100.0) -> float:
    """Coerce a user-entered percentage into range instead of rejecting it.

    Booleans and non-numeric input count as 0. Infinity clamps to ``upper``,
    or counts as 0 when there is no upper bound.
    """
    if isinstance(value, bool):
        return 0.0
    try:
        pct = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(pct) or pct < 0:
        return 0.0
    if upper is not None and pct > upper:
        return upper
    if math.isinf(pct):
        return 0.0
    return pct


def format_currency(value: float) -> str:
    return f"${value:,.2f}"
