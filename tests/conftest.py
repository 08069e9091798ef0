"""
Shared pytest fixtures for cloudcv tests.
"""
import asyncio
import os
import threading
from unittest.mock import patch

import cv2
import numpy as np
import pytest

from cloudcv.core.config import reset_settings
from cloudcv.framework.dispatcher import Dispatcher, shutdown_dispatcher


class CallbackRecorder:
    """Callable passed as a task callback; records every call and the thread it ran on."""

    def __init__(self):
        self.calls = []
        self.thread_ids = []
        self._first_call = asyncio.get_running_loop().create_future()

    def __call__(self, error, result):
        self.calls.append((error, result))
        self.thread_ids.append(threading.get_ident())
        if not self._first_call.done():
            self._first_call.set_result((error, result))

    async def wait(self, timeout: float = 30.0):
        """Wait for the first call, then give stray duplicate calls a chance to show up."""
        outcome = await asyncio.wait_for(asyncio.shield(self._first_call), timeout)
        await asyncio.sleep(0.05)
        return outcome


def make_chessboard(columns: int = 10, rows: int = 7, square: int = 40, margin: int = 40) -> np.ndarray:
    """Grayscale chessboard with (columns - 1) x (rows - 1) inner corners on a white border."""
    height = rows * square + 2 * margin
    width = columns * square + 2 * margin
    image = np.full((height, width), 255, dtype=np.uint8)
    for row in range(rows):
        for column in range(columns):
            if (row + column) % 2 == 0:
                top = margin + row * square
                left = margin + column * square
                image[top:top + square, left:left + square] = 0
    return image


def encode_png(image: np.ndarray) -> bytes:
    ok, encoded = cv2.imencode(".png", image)
    assert ok
    return encoded.tobytes()


@pytest.fixture(autouse=True)
def _fresh_runtime_state():
    """Every test starts with freshly read settings and a new default dispatcher."""
    reset_settings()
    yield
    shutdown_dispatcher()
    reset_settings()


@pytest.fixture
def mock_env():
    """Fixture to set cloudcv environment variables."""
    env_vars = {
        "CLOUDCV_MAX_WORKERS": "3",
        "CLOUDCV_SQUARE_SIZE": "2.5",
        "CLOUDCV_JPEG_QUALITY": "80",
        "CLOUDCV_PNG_COMPRESSION": "6",
    }
    with patch.dict(os.environ, env_vars, clear=False):
        reset_settings()
        yield env_vars


@pytest.fixture
def recorder_factory():
    """Returns the CallbackRecorder class; instantiate it inside an async test."""
    return CallbackRecorder


@pytest.fixture
def dispatcher():
    instance = Dispatcher(max_workers=4)
    yield instance
    instance.shutdown(wait=True)


@pytest.fixture
def chessboard_image() -> np.ndarray:
    return make_chessboard()


@pytest.fixture
def chessboard_png(chessboard_image) -> bytes:
    return encode_png(chessboard_image)


@pytest.fixture
def blank_png() -> bytes:
    return encode_png(np.full((240, 320), 255, dtype=np.uint8))
