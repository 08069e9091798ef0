"""
Image decode/encode helpers shared by the bindings.
"""

import logging
from typing import Optional, Sequence

import cv2
import numpy as np

logger = logging.getLogger(__name__)


def decode_image(data: bytes, flags: int = cv2.IMREAD_COLOR) -> Optional[np.ndarray]:
    """
    Decode an encoded image (JPEG, PNG, ...) from bytes.

    Returns:
        Image array, or None when the bytes are empty or not a decodable image
    """
    if not data:
        return None
    try:
        image = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), flags)
    except cv2.error as exc:
        logger.debug("cv2.imdecode rejected %d byte(s): %s", len(data), exc)
        return None
    if image is None or image.size == 0:
        return None
    return image


def encode_image(image: np.ndarray, extension: str, params: Sequence[int] = ()) -> Optional[bytes]:
    """Encode an image to ``extension`` (".jpg", ".png"); None if OpenCV refuses."""
    ok, encoded = cv2.imencode(extension, image, list(params))
    if not ok:
        return None
    return encoded.tobytes()
