"""
Angle wrapping, unwrapping and small numeric helpers.

Heading traces from a phone's orientation sensor jump between +180° and
-180°; step and heading processing needs both wrapped angles (for display
and Euler normalization) and unwrapped, continuous traces (for filtering).
"""

from typing import Sequence, Union

import numpy as np

from pdrnav.exceptions import InvalidInputError

DEG_TO_RAD = np.pi / 180.0
RAD_TO_DEG = 180.0 / np.pi
GRAVITY = 9.81

ArrayLike = Union[float, np.ndarray]


def wrap_angle(angle: float) -> float:
    """
    Wrap angle to [-π, π].

    Example:
        >>> wrap_angle(3.5 * np.pi)
        -1.5707963267948966
    """
    return float(np.arctan2(np.sin(angle), np.cos(angle)))


def wrap_angle_array(angles: np.ndarray) -> np.ndarray:
    """Vectorized wrap_angle."""
    return np.arctan2(np.sin(angles), np.cos(angles))


def wrap_to_2pi(angle: ArrayLike) -> ArrayLike:
    """Wrap radians to [0, 2π)."""
    return np.mod(angle, 2.0 * np.pi)


def wrap_to_180(angle_deg: ArrayLike) -> ArrayLike:
    """Wrap degrees to [-180, 180)."""
    return np.mod(np.asarray(angle_deg) + 180.0, 360.0) - 180.0


def wrap_to_360(angle_deg: ArrayLike) -> ArrayLike:
    """Wrap degrees to [0, 360)."""
    return np.mod(angle_deg, 360.0)


def angle_diff(angle1: ArrayLike, angle2: ArrayLike) -> ArrayLike:
    """
    Shortest signed difference angle1 - angle2 in [-π, π].

    Example:
        >>> round(angle_diff(np.pi - 0.1, -np.pi + 0.1), 6)
        -0.2
    """
    if isinstance(angle1, np.ndarray) or isinstance(angle2, np.ndarray):
        return wrap_angle_array(np.asarray(angle1) - np.asarray(angle2))
    return wrap_angle(angle1 - angle2)


def unwrap_degrees(heading_deg: Sequence[float]) -> np.ndarray:
    """
    Remove ±360° jumps from a heading trace in degrees.

    Consecutive samples are compared; a difference below -180° adds 360° to
    the running offset and a difference above +180° subtracts 360°. The
    first sample is kept as is.

    Args:
        heading_deg: Raw heading samples in degrees, shape (N,).

    Returns:
        Continuous heading trace in degrees, shape (N,).

    Example:
        >>> unwrap_degrees([170.0, 179.0, -178.0, -170.0])
        array([170., 179., 182., 190.])
    """
    heading_deg = np.asarray(heading_deg, dtype=np.float64)
    if heading_deg.ndim != 1:
        raise InvalidInputError(f"heading_deg must be 1D, got shape {heading_deg.shape}")
    if heading_deg.size == 0:
        return heading_deg.copy()

    steps = np.diff(heading_deg)
    corrections = np.where(steps < -180.0, 360.0, 0.0) + np.where(steps > 180.0, -360.0, 0.0)
    offset = np.concatenate(([0.0], np.cumsum(corrections)))
    return heading_deg + offset


def median(values: Sequence[float]) -> float:
    """
    Median of a non-empty sequence.

    Raises:
        InvalidInputError: If values is empty.
    """
    values = np.asarray(values, dtype=np.float64)
    if values.size == 0:
        raise InvalidInputError("median of an empty sequence is undefined")
    return float(np.median(values))
