"""ImageView binding: synchronous image inspection, asynchronous encoding."""

from cloudcv.modules.image_view.image_view import ImageView
from cloudcv.modules.image_view.tasks import EncodeImageTask

__all__ = ["ImageView", "EncodeImageTask"]
