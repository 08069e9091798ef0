"""
ImageView binding
-----------------

Wraps a decoded image for the dynamic runtime. Loading and the size/shape
accessors are synchronous; encoding runs on the native pool and reports
through a callback:

    view = ImageView("logo.jpg")            # or ImageView(buffer)
    view.width(), view.height()
    view.as_jpeg_stream(callback)           # callback(None, bytes)
    view.as_png_data_uri(callback)          # callback(None, "data:image/png;base64,...")
"""

import logging
from typing import Any, Dict

import cv2

from cloudcv.core.config import get_settings
from cloudcv.framework.binding import Argument, ArgumentBinder, BindingSpec, is_buffer, is_function, is_string
from cloudcv.framework.dispatcher import get_dispatcher
from cloudcv.framework.exceptions import DomainError
from cloudcv.framework.logger import trace_function
from cloudcv.framework.marshal import ObjectBuilder
from cloudcv.modules.codecs import decode_image
from cloudcv.modules.image_view.tasks import EncodeImageTask

logger = logging.getLogger(__name__)


CONSTRUCT_BINDER = ArgumentBinder(
    BindingSpec("path", (Argument("path", is_string, native_type=str),)),
    BindingSpec("buffer", (Argument("buffer", is_buffer, native_type=bytes),)),
)
CALLBACK_BINDER = ArgumentBinder(
    BindingSpec("callback", (Argument("callback", is_function),)),
)
NO_ARGUMENTS_BINDER = ArgumentBinder(BindingSpec("none", ()))


class ImageView:
    """A BGR image loaded from a file path or an encoded buffer."""

    @trace_function
    def __init__(self, *args):
        bound = CONSTRUCT_BINDER.bind(args)
        if bound.form == "path":
            image = cv2.imread(bound["path"], cv2.IMREAD_COLOR)
            if image is None:
                raise DomainError(f"Cannot load image: {bound['path']}")
        else:
            image = decode_image(bound["buffer"], cv2.IMREAD_COLOR)
            if image is None:
                raise DomainError("Cannot decode input image")
        self._image = image
        logger.debug("ImageView %dx%d loaded from %s", image.shape[1], image.shape[0], bound.form)

    def width(self, *args) -> int:
        NO_ARGUMENTS_BINDER.bind(args)
        return int(self._image.shape[1])

    def height(self, *args) -> int:
        NO_ARGUMENTS_BINDER.bind(args)
        return int(self._image.shape[0])

    def as_object(self, *args) -> Dict[str, Any]:
        NO_ARGUMENTS_BINDER.bind(args)
        result = ObjectBuilder()
        result["width"] = self._image.shape[1]
        result["height"] = self._image.shape[0]
        result["channels"] = 1 if self._image.ndim == 2 else self._image.shape[2]
        return result.build()

    def as_jpeg_stream(self, *args) -> None:
        self._encode(args, ".jpg", data_uri=False)

    def as_jpeg_data_uri(self, *args) -> None:
        self._encode(args, ".jpg", data_uri=True)

    def as_png_stream(self, *args) -> None:
        self._encode(args, ".png", data_uri=False)

    def as_png_data_uri(self, *args) -> None:
        self._encode(args, ".png", data_uri=True)

    def _encode(self, args, extension: str, data_uri: bool) -> None:
        bound = CALLBACK_BINDER.bind(args)
        settings = get_settings()
        if extension == ".jpg":
            params = [cv2.IMWRITE_JPEG_QUALITY, settings.jpeg_quality]
        else:
            params = [cv2.IMWRITE_PNG_COMPRESSION, settings.png_compression]
        task = EncodeImageTask(self._image, extension, params, data_uri=data_uri)
        get_dispatcher().submit(task, bound["callback"])
