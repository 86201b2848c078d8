"""The capture session that processes the live samples of all sensors."""
from posemap.session._capture_session import CaptureSession

__all__ = ["CaptureSession"]
