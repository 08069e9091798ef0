"""
Camera calibration binding: pattern detection and intrinsic estimation.
"""

from cloudcv.modules.camera_calibration.algorithm import CameraCalibrationAlgorithm, IntrinsicParameters
from cloudcv.modules.camera_calibration.calibration_binding import (
    CALIBRATE_CAMERA_BINDER,
    DETECT_PATTERN_BINDER,
    calibrate_camera,
    calibration_pattern_detect,
)
from cloudcv.modules.camera_calibration.tasks import ComputeIntrinsicParametersTask, DetectPatternTask
from cloudcv.modules.camera_calibration.types import PATTERN_TYPE_OPTIONS, PatternType

__all__ = [
    "CameraCalibrationAlgorithm",
    "IntrinsicParameters",
    "CALIBRATE_CAMERA_BINDER",
    "DETECT_PATTERN_BINDER",
    "calibrate_camera",
    "calibration_pattern_detect",
    "ComputeIntrinsicParametersTask",
    "DetectPatternTask",
    "PATTERN_TYPE_OPTIONS",
    "PatternType",
]
