"""Decimal helpers for ledger math.

Every monetary step is quantised to cents before it feeds the next step
(round-then-accumulate). Ties round half towards positive infinity.
"""

from __future__ import annotations

from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Iterable

ZERO = Decimal("0")
HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value: Any, default: Decimal | None = ZERO) -> Decimal | None:
    """Convert int/float/str/Decimal to Decimal; anything non-numeric yields ``default``."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            # str() first so 0.1 stays 0.1 instead of its binary expansion
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return default
    if not result.is_finite():
        return default
    return result


def round2(value: Decimal) -> Decimal:
    rounding = ROUND_HALF_UP if value >= 0 else ROUND_HALF_DOWN
    return value.quantize(CENT, rounding=rounding)


def sum2(values: Iterable[Decimal]) -> Decimal:
    """Sum then quantise to cents."""
    return round2(sum(values, ZERO))


def percent_of(amount: Decimal, percent: Decimal) -> Decimal:
    return round2(amount * percent / HUNDRED)


def safe_ratio(numerator: Decimal, denominator: Decimal) -> Decimal:
    """numerator / denominator, or 0 unless the denominator is positive."""
    if denominator <= 0:
        return ZERO
    return numerator / denominator
