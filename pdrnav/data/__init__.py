"""
Boundary collaborators: where sensor data comes from and results go.
"""

from pdrnav.data.io import (
    ACCEL_FILE,
    GYRO_FILE,
    ORIENTATION_FILE,
    ArraySensorSource,
    MemoryResultSink,
    ResultSink,
    SensorSource,
    TextResultSink,
    TextSensorSource,
    read_navigation_result,
    save_sensor_data,
)

__all__ = [
    "SensorSource",
    "ResultSink",
    "ArraySensorSource",
    "TextSensorSource",
    "save_sensor_data",
    "MemoryResultSink",
    "TextResultSink",
    "read_navigation_result",
    # Recording layout
    "ACCEL_FILE",
    "GYRO_FILE",
    "ORIENTATION_FILE",
]
