"""Pedestrian dead reckoning for indoor navigation.

Subpackages:
- coords: Vector, quaternion, DCM and Euler angle types and conversions
- utils: Angle wrapping and small numeric helpers
- estimators: Kalman, extended Kalman and particle filters
- sensors: Signal filters, step detection, step length, heading and attitude
- navigation: Configuration, dead reckoning, map matching, particle tracking
- data: Sensor sources and result sinks
- eval: Plots of navigation runs
"""

__version__ = "0.1.0"
