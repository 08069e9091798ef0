"""
Camera calibration call sites.

    calibration_pattern_detect(image_buffer, pattern_size, pattern, callback)
    calibrate_camera(image_files, pattern_size, pattern, callback)
    calibrate_camera(image_corners, image_size, pattern_size, pattern, callback)

Both return immediately; the callback later receives ``(error, result)`` on
the event loop. Malformed arguments raise BindingError synchronously.
"""

import logging
from typing import List

from cloudcv.core.config import get_settings
from cloudcv.framework.binding import (
    Argument,
    ArgumentBinder,
    BindingSpec,
    is_array,
    is_buffer,
    is_function,
    is_number_pair,
)
from cloudcv.framework.dispatcher import get_dispatcher
from cloudcv.framework.exceptions import BindingError
from cloudcv.framework.logger import trace_function
from cloudcv.framework.marshal import Point2f, Size
from cloudcv.modules.camera_calibration.tasks import ComputeIntrinsicParametersTask, DetectPatternTask
from cloudcv.modules.camera_calibration.types import PATTERN_TYPE_OPTIONS

logger = logging.getLogger(__name__)


DETECT_PATTERN_BINDER = ArgumentBinder(
    BindingSpec("image_buffer", (
        Argument("image_buffer", is_buffer, native_type=bytes),
        Argument("pattern_size", is_number_pair, native_type=Size),
        Argument("pattern", options=PATTERN_TYPE_OPTIONS),
        Argument("callback", is_function),
    )),
)

CALIBRATE_CAMERA_BINDER = ArgumentBinder(
    BindingSpec("image_files", (
        Argument("image_files", is_array, native_type=List[str]),
        Argument("pattern_size", is_number_pair, native_type=Size),
        Argument("pattern", options=PATTERN_TYPE_OPTIONS),
        Argument("callback", is_function),
    )),
    BindingSpec("image_corners", (
        Argument("image_corners", is_array, native_type=List[List[Point2f]]),
        Argument("image_size", is_number_pair, native_type=Size),
        Argument("pattern_size", is_number_pair, native_type=Size),
        Argument("pattern", options=PATTERN_TYPE_OPTIONS),
        Argument("callback", is_function),
    )),
)


@trace_function
def calibration_pattern_detect(*args) -> None:
    """Detect a calibration pattern in an encoded grayscale image buffer."""
    logger.debug("Begin parsing arguments")
    try:
        bound = DETECT_PATTERN_BINDER.bind(args)
    except BindingError as exc:
        logger.debug("calibration_pattern_detect: %s", exc)
        raise
    logger.debug("Parsed function arguments")

    task = DetectPatternTask(
        bound["image_buffer"],
        bound["pattern_size"],
        bound["pattern"],
        square_size=get_settings().square_size,
    )
    get_dispatcher().submit(task, bound["callback"])


@trace_function
def calibrate_camera(*args) -> bool:
    """Estimate intrinsics from image files or from pre-detected grid corners."""
    try:
        bound = CALIBRATE_CAMERA_BINDER.bind(args)
    except BindingError as exc:
        logger.debug("calibrate_camera: %s", exc)
        raise

    square_size = get_settings().square_size
    if bound.form == "image_files":
        task = ComputeIntrinsicParametersTask(
            bound["pattern_size"],
            bound["pattern"],
            image_files=bound["image_files"],
            square_size=square_size,
        )
    else:
        task = ComputeIntrinsicParametersTask(
            bound["pattern_size"],
            bound["pattern"],
            grid_corners=bound["image_corners"],
            image_size=bound["image_size"],
            square_size=square_size,
        )
    get_dispatcher().submit(task, bound["callback"])
    return True
