"""
cloudcv
-------

Asynchronous OpenCV bindings for a single-threaded asyncio runtime.

Call sites bind and validate their dynamic arguments synchronously, run the
computation on a native thread pool and deliver ``(error, result)`` to a
callback back on the event loop.
"""

from cloudcv.framework.exceptions import (
    BindingError,
    CloudCVError,
    DomainError,
    InternalError,
    MarshalError,
    TaskError,
)
from cloudcv.framework.dispatcher import Dispatcher, get_dispatcher, shutdown_dispatcher
from cloudcv.modules.camera_calibration import PatternType, calibrate_camera, calibration_pattern_detect
from cloudcv.modules.image_view import ImageView

__version__ = "0.1.0"

__all__ = [
    "BindingError",
    "CloudCVError",
    "DomainError",
    "InternalError",
    "MarshalError",
    "TaskError",
    "Dispatcher",
    "get_dispatcher",
    "shutdown_dispatcher",
    "PatternType",
    "calibrate_camera",
    "calibration_pattern_detect",
    "ImageView",
]
