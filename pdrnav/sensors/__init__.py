"""
Sensor processing for pedestrian dead reckoning.

This package turns raw accelerometer, gyroscope and orientation samples into
step events, step lengths, a smoothed heading trace and (optionally) an
independent attitude estimate:
    - SensorData container (time-aligned streams at a fixed rate)
    - Low-pass and FIR filters
    - Gravity removal, peak/valley step detection and step length models
    - Corner detection and map-aided heading smoothing
    - Quaternion attitude EKF
"""

from pdrnav.sensors.types import DEFAULT_SAMPLE_RATE_HZ, SensorData
from pdrnav.sensors.filters import FIRFilter, LowPassFilter
from pdrnav.sensors.pdr import (
    PeakValleyDetector,
    StepDetector,
    StepFeatures,
    StepLengthModel,
    adaptive_k,
    clamp_step_length,
    estimate_step_lengths,
    extract_step_features,
    linear_accel_magnitude,
    pdr_step_update,
    remove_gravity,
    step_length,
    total_distance,
)
from pdrnav.sensors.heading import CornerDetector, HeadingEstimator
from pdrnav.sensors.attitude import AttitudeEstimator

__all__ = [
    # Data types
    "SensorData",
    "DEFAULT_SAMPLE_RATE_HZ",
    # Filters
    "LowPassFilter",
    "FIRFilter",
    # Step detection
    "remove_gravity",
    "linear_accel_magnitude",
    "PeakValleyDetector",
    "StepDetector",
    # Step length
    "StepLengthModel",
    "StepFeatures",
    "extract_step_features",
    "step_length",
    "estimate_step_lengths",
    "adaptive_k",
    "clamp_step_length",
    "total_distance",
    "pdr_step_update",
    # Heading and attitude
    "CornerDetector",
    "HeadingEstimator",
    "AttitudeEstimator",
]
