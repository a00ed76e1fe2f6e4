"""
Rate and delta calculator.

Both functions are total: they never divide by zero and never return NaN or
infinity. ``delta`` returns None whenever no meaningful comparison exists.
"""
from __future__ import annotations

from typing import Optional

DELTA_OUTLIER_CAP = 999.0


def rate(numerator: float, denominator: float) -> float:
    """numerator / denominator as a percentage; 0 when denominator <= 0."""
    if not denominator or denominator <= 0:
        return 0.0
    return (numerator or 0) * 100 / denominator


def delta(
    current: Optional[float],
    previous: Optional[float],
    cap: float = DELTA_OUTLIER_CAP,
) -> Optional[float]:
    """
    Period-over-period change in percent.

    None when previous is missing, zero or negative, or when the change
    exceeds ``cap`` percent in either direction (a 1 → 50 jump is noise,
    not a trend).
    """
    if previous is None or previous <= 0:
        return None
    change = ((current or 0) - previous) * 100 / previous
    if abs(change) > cap:
        return None
    return change

