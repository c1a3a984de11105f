"""
Unit tests for angle wrapping and unwrapping utilities.

Tests cover:
    - wrap_angle at and around ±π
    - Degree wrapping helpers
    - Shortest angular difference across the ±π seam
    - unwrap_degrees on ±180° jumps
    - median on empty input
"""

import unittest

import numpy as np
import pytest
from numpy.testing import assert_allclose

from pdrnav.exceptions import InvalidInputError
from pdrnav.utils import (
    angle_diff,
    median,
    unwrap_degrees,
    wrap_angle,
    wrap_angle_array,
    wrap_to_2pi,
    wrap_to_180,
    wrap_to_360,
)


class TestWrapping(unittest.TestCase):
    """Angle wrapping in radians and degrees."""

    def test_wrap_angle_range(self) -> None:
        """Wrapped angles lie in [-π, π]."""
        for angle in np.linspace(-10 * np.pi, 10 * np.pi, 101):
            wrapped = wrap_angle(angle)
            assert -np.pi <= wrapped <= np.pi
            self.assertAlmostEqual(np.sin(wrapped), np.sin(angle))
            self.assertAlmostEqual(np.cos(wrapped), np.cos(angle))

    def test_wrap_angle_known_values(self) -> None:
        """Multiples of 2π wrap to zero; 3π/2 wraps to -π/2."""
        self.assertAlmostEqual(wrap_angle(2 * np.pi), 0.0)
        self.assertAlmostEqual(wrap_angle(1.5 * np.pi), -0.5 * np.pi)
        self.assertAlmostEqual(wrap_angle(-1.5 * np.pi), 0.5 * np.pi)

    def test_wrap_angle_array(self) -> None:
        """Vectorized version matches the scalar one."""
        angles = np.array([0.0, 4.0, -4.0, 7.0])
        assert_allclose(wrap_angle_array(angles), [wrap_angle(a) for a in angles])

    def test_degree_helpers(self) -> None:
        """wrap_to_180, wrap_to_360 and wrap_to_2pi."""
        assert_allclose(wrap_to_180(np.array([190.0, -190.0, 180.0, 45.0])), [-170.0, 170.0, -180.0, 45.0])
        assert_allclose(wrap_to_360(np.array([-10.0, 370.0, 360.0])), [350.0, 10.0, 0.0])
        self.assertAlmostEqual(float(wrap_to_2pi(-np.pi / 2)), 1.5 * np.pi)


class TestAngleDiff(unittest.TestCase):
    """Shortest signed difference."""

    def test_across_seam(self) -> None:
        """Differences across ±π take the short way round."""
        self.assertAlmostEqual(angle_diff(np.pi - 0.1, -np.pi + 0.1), -0.2)
        self.assertAlmostEqual(angle_diff(-np.pi + 0.1, np.pi - 0.1), 0.2)

    def test_array_input(self) -> None:
        """Array inputs are wrapped element-wise."""
        result = angle_diff(np.array([0.1, 3.0]), np.array([0.0, -3.0]))
        assert_allclose(result, [0.1, 6.0 - 2 * np.pi])


class TestUnwrapDegrees(unittest.TestCase):
    """Unwrapping of heading traces."""

    def test_positive_crossing(self) -> None:
        """A jump from +179° to -178° continues upward."""
        assert_allclose(unwrap_degrees([170.0, 179.0, -178.0, -170.0]), [170.0, 179.0, 182.0, 190.0])

    def test_negative_crossing(self) -> None:
        """A jump from -179° to +178° continues downward."""
        assert_allclose(unwrap_degrees([-170.0, -179.0, 178.0]), [-170.0, -179.0, -182.0])

    def test_multiple_turns_accumulate(self) -> None:
        """Two full turns accumulate two offsets."""
        raw = [0.0, 170.0, -20.0, 150.0, -40.0]
        assert_allclose(unwrap_degrees(raw), [0.0, 170.0, 340.0, 510.0, 680.0])

    def test_continuous_trace_unchanged(self) -> None:
        """Traces without jumps are returned as is."""
        raw = np.array([10.0, 20.0, 30.0, 10.0])
        assert_allclose(unwrap_degrees(raw), raw)

    def test_empty_and_invalid(self) -> None:
        """Empty input gives an empty trace; 2D input is rejected."""
        assert unwrap_degrees([]).size == 0
        with pytest.raises(InvalidInputError, match="must be 1D"):
            unwrap_degrees(np.zeros((2, 2)))


class TestMedian(unittest.TestCase):
    """Median helper."""

    def test_odd_and_even(self) -> None:
        """Odd and even length inputs."""
        assert median([3.0, 1.0, 2.0]) == 2.0
        assert median([4.0, 1.0, 2.0, 3.0]) == 2.5

    def test_empty_raises(self) -> None:
        """Empty input is an error."""
        with pytest.raises(InvalidInputError):
            median([])


if __name__ == "__main__":
    unittest.main()
