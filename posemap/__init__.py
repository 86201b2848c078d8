"""The posemap library: calibration and hierarchical retargeting of wireless IMU orientation streams."""

__version__ = "0.1.0"
