"""
Image encoding task used by ImageView.
"""

import base64
from typing import Sequence, Union

import numpy as np

from cloudcv.framework.marshal import to_dynamic
from cloudcv.framework.task import Task
from cloudcv.modules.codecs import encode_image

MIME_TYPES = {
    ".jpg": "image/jpeg",
    ".png": "image/png",
}


class EncodeImageTask(Task):
    """
    Encode a private copy of an image to JPEG/PNG.

    With ``data_uri`` the result is a ``data:<mime>;base64,...`` string,
    otherwise the raw encoded bytes.
    """

    def __init__(self, image: np.ndarray, extension: str, params: Sequence[int] = (), data_uri: bool = False):
        super().__init__()
        if extension not in MIME_TYPES:
            raise ValueError(f"Unsupported image extension: {extension}")
        self._image = image.copy()
        self._extension = extension
        self._params = list(params)
        self._data_uri = data_uri
        self._payload: Union[bytes, str] = b""

    def execute_native(self) -> None:
        encoded = encode_image(self._image, self._extension, self._params)
        if encoded is None:
            self.set_error(f"Cannot encode image as {MIME_TYPES[self._extension]}")
            return
        if self._data_uri:
            self._payload = f"data:{MIME_TYPES[self._extension]};base64,{base64.b64encode(encoded).decode('ascii')}"
        else:
            self._payload = encoded

    def create_result(self):
        return to_dynamic(self._payload)

    def release(self) -> None:
        self._image = None
        self._payload = b""
