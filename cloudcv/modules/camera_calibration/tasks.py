"""
Calibration tasks.

Each task owns copies of its inputs; the image buffer is a private bytes copy
made by the binder, so the caller may reuse its buffer right after the call.
"""

import logging
from typing import List, Optional, Sequence

import cv2

from cloudcv.framework.logger import trace_function
from cloudcv.framework.marshal import ObjectBuilder, Size
from cloudcv.framework.task import Task
from cloudcv.modules.camera_calibration.algorithm import (
    CameraCalibrationAlgorithm,
    IntrinsicParameters,
    VectorOf2DPoints,
    VectorOfVectorOf2DPoints,
)
from cloudcv.modules.camera_calibration.types import PatternType
from cloudcv.modules.codecs import decode_image

logger = logging.getLogger(__name__)


class DetectPatternTask(Task):
    """Decode a grayscale image and look for the calibration pattern."""

    def __init__(self, image_data: bytes, pattern_size: Size, pattern_type: PatternType, square_size: float = 1.0):
        super().__init__()
        self._algorithm = CameraCalibrationAlgorithm(pattern_size, pattern_type, square_size)
        self._image_data = bytes(image_data)
        self._pattern_found = False
        self._corners: VectorOf2DPoints = []

    @trace_function
    def execute_native(self) -> None:
        frame = decode_image(self._image_data, cv2.IMREAD_GRAYSCALE)
        if frame is None:
            self.set_error("Cannot decode input image")
            return
        self._pattern_found, self._corners = self._algorithm.detect_corners(frame)

    @trace_function
    def create_result(self):
        result = ObjectBuilder()
        result["patternFound"] = self._pattern_found
        if self._pattern_found:
            result["corners"] = self._corners
        return result.build()

    def release(self) -> None:
        self._image_data = b""
        self._corners = []


class ComputeIntrinsicParametersTask(Task):
    """Estimate camera intrinsics from image files or from pre-detected grid corners."""

    def __init__(
        self,
        pattern_size: Size,
        pattern_type: PatternType,
        image_files: Sequence[str] = (),
        grid_corners: VectorOfVectorOf2DPoints = (),
        image_size: Optional[Size] = None,
        square_size: float = 1.0,
    ):
        super().__init__()
        self._algorithm = CameraCalibrationAlgorithm(pattern_size, pattern_type, square_size)
        self._image_files: List[str] = list(image_files)
        self._grid_corners: VectorOfVectorOf2DPoints = [list(view) for view in grid_corners]
        self._image_size = image_size
        self._parameters: Optional[IntrinsicParameters] = None

    @trace_function
    def execute_native(self) -> None:
        if self._image_files:
            self._parameters = self._algorithm.calibrate_from_files(self._image_files)
            if self._parameters is None:
                self.set_error("Camera calibration failed: pattern not found in any image")
        elif self._grid_corners:
            if self._image_size is None:
                self.set_error("Image size is required to calibrate from grid corners")
                return
            self._parameters = self._algorithm.calibrate_from_corners(self._grid_corners, self._image_size)
            if self._parameters is None:
                self.set_error(
                    f"Camera calibration failed: no view has {self._algorithm.points_per_view} points"
                )
        else:
            self.set_error("Neither image files nor grid corners were passed")

    @trace_function
    def create_result(self):
        result = ObjectBuilder()
        result["intrinsic"] = self._parameters.camera_matrix
        result["distCoeffs"] = self._parameters.dist_coeffs
        result["rms"] = self._parameters.reprojection_error
        result["viewsUsed"] = self._parameters.views_used
        return result.build()

    def release(self) -> None:
        self._grid_corners = []
        self._parameters = None
