"""
Exception hierarchy for the cloudcv bridge.

Binding errors are raised synchronously at the call site. Task errors
(domain and internal) only ever travel through the async callback.
Task state errors are programming mistakes, not recoverable failures.
"""

# -----------------------------------------------------------------------------
# Standard library
# -----------------------------------------------------------------------------
from typing import Any, Dict, Optional, Sequence, Tuple, Union


# -----------------------------------------------------------------------------
# Base
# -----------------------------------------------------------------------------


class CloudCVError(Exception):
    """Base exception for all cloudcv errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# -----------------------------------------------------------------------------
# Call site
# -----------------------------------------------------------------------------


class BindingError(CloudCVError, TypeError):
    """Raised when a dynamic argument list does not match any accepted call form."""

    def __init__(self, message: str, argument: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.argument = argument


class MarshalError(CloudCVError, ValueError):
    """
    Raised when a dynamic value cannot be converted to the requested native type.

    The path records where inside a composite value the conversion failed,
    e.g. ``(1, 4, "x")`` renders as ``[1][4].x``.
    """

    def __init__(self, reason: str, path: Sequence[Union[int, str]] = ()):
        self.reason = reason
        self.path: Tuple[Union[int, str], ...] = tuple(path)
        super().__init__(self._render(), details={"path": self.format_path()})

    def format_path(self) -> str:
        parts = []
        for segment in self.path:
            if isinstance(segment, int):
                parts.append(f"[{segment}]")
            else:
                parts.append(f".{segment}")
        return "".join(parts).lstrip(".")

    def prefixed(self, segment: Union[int, str]) -> "MarshalError":
        """Return a copy of this error located one level further out."""
        return MarshalError(self.reason, (segment,) + self.path)

    def _render(self) -> str:
        if not self.path:
            return self.reason
        return f"{self.reason} (at {self.format_path()})"


# -----------------------------------------------------------------------------
# Async task failures
# -----------------------------------------------------------------------------


class TaskError(CloudCVError):
    """Base for failures delivered through a task callback."""
    pass


class DomainError(TaskError):
    """The native operation cannot proceed with the given inputs (e.g. undecodable image)."""
    pass


class InternalError(TaskError):
    """Unexpected fault during native execution. The message is always generic."""

    GENERIC_MESSAGE = "Internal exception"

    def __init__(self, message: str = GENERIC_MESSAGE, **kwargs):
        super().__init__(message, **kwargs)


# -----------------------------------------------------------------------------
# Programming errors
# -----------------------------------------------------------------------------


class TaskStateError(AssertionError):
    """Raised when a task is driven out of order (run twice, built before run, ...)."""
    pass
