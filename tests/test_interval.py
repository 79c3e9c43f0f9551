"""Tests for Interval class."""

import math
import pytest

from lumentrace.interval import Interval


class TestIntervalCreation:
    """Test Interval construction."""

    def test_default_is_universe(self):
        interval = Interval()
        assert interval.min == -math.inf
        assert interval.max == math.inf

    def test_degenerate_allowed(self):
        interval = Interval(2.0, 2.0)
        assert interval.size() == 0

    def test_inverted_rejected(self):
        with pytest.raises(ValueError):
            Interval(1.0, 0.0)

    def test_constants(self):
        assert Interval.UNIT == Interval(0.0, 1.0)
        assert Interval.UNIVERSE == Interval(-math.inf, math.inf)


class TestIntervalQueries:
    """Test containment and clamping."""

    def test_contains_is_closed(self):
        interval = Interval(0.0, 1.0)
        assert interval.contains(0.0)
        assert interval.contains(1.0)
        assert interval.contains(0.5)
        assert not interval.contains(1.5)

    def test_surrounds_is_open(self):
        interval = Interval(0.0, 1.0)
        assert not interval.surrounds(0.0)
        assert not interval.surrounds(1.0)
        assert interval.surrounds(0.5)

    def test_clamp(self):
        interval = Interval(0.0, 1.0)
        assert interval.clamp(-3.0) == 0.0
        assert interval.clamp(0.25) == 0.25
        assert interval.clamp(7.0) == 1.0

    def test_size(self):
        assert Interval(-1.0, 3.0).size() == 4.0

    def test_with_max(self):
        narrowed = Interval(0.001, math.inf).with_max(5.0)
        assert narrowed == Interval(0.001, 5.0)

    def test_with_max_below_min_rejected(self):
        with pytest.raises(ValueError):
            Interval(1.0, 2.0).with_max(0.5)
