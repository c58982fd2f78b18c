"""Half-up rounding used by dashboard figures."""

import math


def round_half_up(value: float) -> int:
    """Round a non-negative number to the nearest integer, ties away from zero."""
    return math.floor(value + 0.5)


def percentage(part: int, whole: int) -> int:
    """Integer percentage of part in whole, rounded half-up. Returns 0 for an empty whole."""
    if whole <= 0:
        return 0
    return (part * 200 + whole) // (2 * whole)
