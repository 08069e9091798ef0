"""
Trace logging helpers.

Every module logs through ``logging.getLogger(__name__)``; handler setup is left
to the host process. ``trace_function`` adds DEBUG entry/exit lines around a
callable.
"""

import functools
import logging
from typing import Callable, TypeVar

F = TypeVar("F", bound=Callable)


def trace_function(func: F) -> F:
    """Log entry and exit of ``func`` at DEBUG on the defining module's logger."""
    logger = logging.getLogger(func.__module__)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        if not logger.isEnabledFor(logging.DEBUG):
            return func(*args, **kwargs)
        logger.debug("-> %s", func.__qualname__)
        try:
            return func(*args, **kwargs)
        finally:
            logger.debug("<- %s", func.__qualname__)

    return wrapper  # type: ignore[return-value]
