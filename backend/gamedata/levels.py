"""
Level-threshold resolution over sparse level tables

Rule documents describe anything that scales with level as a sparse mapping
from the level at which a value takes effect to the value itself, e.g.
``{1: "1d6", 5: "1d8", 11: "1d10"}``. Levels between two thresholds use the
value of the lower one.
"""

from bisect import bisect_right
from typing import Mapping, TypeVar

T = TypeVar('T')


def resolve_at_level(table: Mapping[int, T], level: int, default: T) -> T:
    """
    Resolve the value in effect at a level

    Args:
        table: Sparse mapping of level threshold -> value
        level: Target level
        default: Value returned when no threshold is <= level

    Returns:
        Value at the greatest key <= level, or default
    """
    if not table:
        return default
    thresholds = sorted(table)
    index = bisect_right(thresholds, level)
    if index == 0:
        return default
    return table[thresholds[index - 1]]
