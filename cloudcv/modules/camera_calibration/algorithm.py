"""
Camera Calibration Algorithm
----------------------------

Pattern detection and intrinsic-parameter estimation on top of OpenCV.
Pure computation: safe to call from any thread, never touches dynamic values.
"""

# -----------------------------------------------------------------------------
# Standard library
# -----------------------------------------------------------------------------
import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

# -----------------------------------------------------------------------------
# Third-party
# -----------------------------------------------------------------------------
import cv2
import numpy as np

# -----------------------------------------------------------------------------
# Application
# -----------------------------------------------------------------------------
from cloudcv.framework.marshal import Point2f, Size
from cloudcv.modules.camera_calibration.types import PatternType

logger = logging.getLogger(__name__)

VectorOf2DPoints = List[Point2f]
VectorOfVectorOf2DPoints = List[VectorOf2DPoints]

_SUBPIX_CRITERIA = (cv2.TERM_CRITERIA_EPS + cv2.TERM_CRITERIA_MAX_ITER, 30, 0.001)
_CHESSBOARD_FLAGS = cv2.CALIB_CB_ADAPTIVE_THRESH | cv2.CALIB_CB_NORMALIZE_IMAGE | cv2.CALIB_CB_FAST_CHECK


@dataclass
class IntrinsicParameters:
    """Output of a successful calibration."""

    camera_matrix: np.ndarray      # 3x3
    dist_coeffs: np.ndarray        # 1xN
    reprojection_error: float      # RMS, pixels
    views_used: int


class CameraCalibrationAlgorithm:
    """
    Detects a calibration pattern and estimates camera intrinsics.

    Args:
        pattern_size: Inner corners (chessboard) or circles per row/column
        pattern_type: Which pattern is printed on the target
        square_size: Distance between neighbouring pattern points, in world units
    """

    def __init__(self, pattern_size: Size, pattern_type: PatternType, square_size: float = 1.0):
        self.pattern_size = Size(int(pattern_size[0]), int(pattern_size[1]))
        self.pattern_type = pattern_type
        self.square_size = float(square_size)

    @property
    def points_per_view(self) -> int:
        return self.pattern_size.width * self.pattern_size.height

    def detect_corners(self, gray: np.ndarray) -> Tuple[bool, VectorOf2DPoints]:
        """
        Find the pattern in an 8-bit grayscale image.

        Returns:
            (found, corners) - corners are ordered row by row; empty when not found
        """
        size = tuple(self.pattern_size)
        if self.pattern_type is PatternType.CHESSBOARD:
            found, corners = cv2.findChessboardCorners(gray, size, flags=_CHESSBOARD_FLAGS)
            if found:
                corners = cv2.cornerSubPix(gray, corners, (11, 11), (-1, -1), _SUBPIX_CRITERIA)
        elif self.pattern_type is PatternType.CIRCLES_GRID:
            found, corners = cv2.findCirclesGrid(gray, size, flags=cv2.CALIB_CB_SYMMETRIC_GRID)
        else:
            found, corners = cv2.findCirclesGrid(gray, size, flags=cv2.CALIB_CB_ASYMMETRIC_GRID)

        if not found or corners is None:
            return False, []
        return True, [Point2f(float(x), float(y)) for x, y in corners.reshape(-1, 2)]

    def object_points(self) -> np.ndarray:
        """Pattern point positions in the target plane (z = 0), same order as detect_corners."""
        points = []
        for row in range(self.pattern_size.height):
            for column in range(self.pattern_size.width):
                if self.pattern_type is PatternType.ACIRCLES_GRID:
                    x = (2 * column + row % 2) * self.square_size
                else:
                    x = column * self.square_size
                points.append((x, row * self.square_size, 0.0))
        return np.array(points, dtype=np.float32)

    def calibrate_from_files(self, image_files: Sequence[str]) -> Optional[IntrinsicParameters]:
        """
        Detect the pattern in each image file and calibrate from the detections.

        Unreadable files and images without a detectable pattern are skipped.
        Returns None when no view could be used.
        """
        views: VectorOfVectorOf2DPoints = []
        image_size: Optional[Size] = None
        for path in image_files:
            gray = cv2.imread(path, cv2.IMREAD_GRAYSCALE)
            if gray is None:
                logger.warning("Skipping unreadable calibration image: %s", path)
                continue
            current_size = Size(gray.shape[1], gray.shape[0])
            if image_size is None:
                image_size = current_size
            elif current_size != image_size:
                logger.warning("Skipping %s: size %s differs from %s", path, current_size, image_size)
                continue
            found, corners = self.detect_corners(gray)
            if not found:
                logger.info("Pattern not found in %s", path)
                continue
            views.append(corners)

        if image_size is None or not views:
            return None
        return self.calibrate_from_corners(views, image_size)

    def calibrate_from_corners(
        self,
        views: VectorOfVectorOf2DPoints,
        image_size: Size,
    ) -> Optional[IntrinsicParameters]:
        """
        Estimate intrinsics from already-detected pattern points.

        Views whose point count does not match the pattern are skipped.
        Returns None when no view is usable.
        """
        image_points = []
        for index, view in enumerate(views):
            if len(view) != self.points_per_view:
                logger.warning(
                    "Skipping view %d: %d point(s), pattern has %d", index, len(view), self.points_per_view
                )
                continue
            image_points.append(np.array(view, dtype=np.float32).reshape(-1, 1, 2))

        if not image_points:
            return None

        object_points = [self.object_points()] * len(image_points)
        rms, camera_matrix, dist_coeffs, _, _ = cv2.calibrateCamera(
            object_points,
            image_points,
            (int(image_size.width), int(image_size.height)),
            None,
            None,
        )
        logger.debug("Calibrated from %d view(s), rms=%.4f", len(image_points), rms)
        return IntrinsicParameters(
            camera_matrix=camera_matrix,
            dist_coeffs=dist_coeffs.reshape(1, -1),
            reprojection_error=float(rms),
            views_used=len(image_points),
        )
