"""
Closed numeric range.

Bounds valid hit distances along a ray and clamps color channels.
"""

from __future__ import annotations
import math


class Interval:
    """A range [min, max] of real numbers. Bounds may be infinite."""

    __slots__ = ('min', 'max')

    def __init__(self, min_val: float = -math.inf, max_val: float = math.inf):
        if min_val > max_val:
            raise ValueError(f"invalid interval: min {min_val} > max {max_val}")
        self.min = min_val
        self.max = max_val

    def size(self) -> float:
        return self.max - self.min

    def contains(self, x: float) -> bool:
        """True if min <= x <= max."""
        return self.min <= x <= self.max

    def surrounds(self, x: float) -> bool:
        """True if min < x < max."""
        return self.min < x < self.max

    def clamp(self, x: float) -> float:
        if x < self.min:
            return self.min
        if x > self.max:
            return self.max
        return x

    def with_max(self, max_val: float) -> Interval:
        """Return a copy with a new upper bound."""
        return Interval(self.min, max_val)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Interval):
            return NotImplemented
        return self.min == other.min and self.max == other.max

    def __repr__(self) -> str:
        return f"Interval({self.min}, {self.max})"


Interval.UNIVERSE = Interval(-math.inf, math.inf)
Interval.UNIT = Interval(0.0, 1.0)
