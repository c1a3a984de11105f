"""
Utility functions shared across the PDR pipeline.

Angle wrapping/unwrapping, the median helper and unit constants.
"""

from .angles import (
    DEG_TO_RAD,
    GRAVITY,
    RAD_TO_DEG,
    angle_diff,
    median,
    unwrap_degrees,
    wrap_angle,
    wrap_angle_array,
    wrap_to_180,
    wrap_to_2pi,
    wrap_to_360,
)

__all__ = [
    'DEG_TO_RAD',
    'RAD_TO_DEG',
    'GRAVITY',
    'wrap_angle',
    'wrap_angle_array',
    'wrap_to_2pi',
    'wrap_to_180',
    'wrap_to_360',
    'angle_diff',
    'unwrap_degrees',
    'median',
]
