"""Calibration of the mounting orientation of body worn sensors."""
from posemap.calibration._calibration_controller import CalibrationController, CalibrationState
from posemap.calibration._calibration_corrector import CalibrationCorrector

__all__ = ["CalibrationController", "CalibrationState", "CalibrationCorrector"]
