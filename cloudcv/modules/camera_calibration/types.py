"""
Calibration pattern types and their call-site labels.
"""

import enum

from cloudcv.framework.binding import string_enum


class PatternType(enum.Enum):
    CHESSBOARD = "CHESSBOARD"
    CIRCLES_GRID = "CIRCLES_GRID"
    ACIRCLES_GRID = "ACIRCLES_GRID"


# Labels accepted from the dynamic side (case-sensitive)
PATTERN_TYPE_OPTIONS = string_enum({
    "CHESSBOARD": PatternType.CHESSBOARD,
    "CIRCLES_GRID": PatternType.CIRCLES_GRID,
    "ACIRCLES_GRID": PatternType.ACIRCLES_GRID,
})
