"""
Task
----

One asynchronous unit of work spanning both execution contexts:

- ``execute_native()`` runs on a pool thread and must not touch dynamic values.
- ``create_result()`` runs back on the event loop and marshals the outputs.

Subclasses implement those two hooks; ``run_native()`` / ``build_result()``
enforce ordering and convert failures. Inputs must be owned by the task
(copied buffers/arrays) before it is submitted.
"""

import enum
import logging
import threading
from abc import ABC, abstractmethod
from typing import Any, Optional

from cloudcv.framework.exceptions import DomainError, InternalError, TaskError, TaskStateError

logger = logging.getLogger(__name__)


class TaskState(str, enum.Enum):
    CREATED = "created"
    SUBMITTED = "submitted"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    DELIVERED = "delivered"
    DISPOSED = "disposed"


class Task(ABC):
    """
    Base class for native tasks.

    A task is single-use: it runs once, builds its result at most once, and
    is disposed after its callback returns. Driving it out of order raises
    TaskStateError.
    """

    def __init__(self) -> None:
        self._state = TaskState.CREATED
        self._error: Optional[TaskError] = None
        self._result_built = False
        self._lock = threading.Lock()

    # -------------------------------------------------------------------------
    # Hooks
    # -------------------------------------------------------------------------

    @abstractmethod
    def execute_native(self) -> None:
        """Do the computation. Call set_error() (or raise DomainError) to fail."""
        ...

    @abstractmethod
    def create_result(self) -> Any:
        """Return the dynamic result value (usually via ObjectBuilder)."""
        ...

    def release(self) -> None:
        """Free captured resources. Called once, after the callback returned."""
        pass

    # -------------------------------------------------------------------------
    # Public
    # -------------------------------------------------------------------------

    @property
    def state(self) -> TaskState:
        return self._state

    @property
    def error(self) -> Optional[TaskError]:
        return self._error

    @property
    def failed(self) -> bool:
        return self._error is not None

    def set_error(self, message: str) -> None:
        """Record a domain failure. execute_native() should return right after."""
        self._error = DomainError(message)

    def mark_submitted(self) -> None:
        self._transition((TaskState.CREATED,), TaskState.SUBMITTED)

    def run_native(self) -> None:
        """Run ``execute_native()`` exactly once. Never raises task failures."""
        self._transition((TaskState.CREATED, TaskState.SUBMITTED), TaskState.RUNNING)
        try:
            self.execute_native()
        except TaskError as exc:
            self._error = exc
        except Exception:
            logger.exception("Native execution of %s raised", type(self).__name__)
            self._error = InternalError()

        if self._error is not None:
            logger.debug("%s failed: %s", type(self).__name__, self._error)
            self._transition((TaskState.RUNNING,), TaskState.FAILED)
        else:
            self._transition((TaskState.RUNNING,), TaskState.SUCCEEDED)

    def build_result(self) -> Any:
        """Build the dynamic result exactly once, after a successful run."""
        with self._lock:
            if self._state is not TaskState.SUCCEEDED:
                raise TaskStateError(
                    f"{type(self).__name__}.build_result() called in state '{self._state.value}'"
                )
            if self._result_built:
                raise TaskStateError(f"{type(self).__name__}.build_result() called twice")
            self._result_built = True
        return self.create_result()

    def mark_delivered(self) -> None:
        self._transition((TaskState.SUCCEEDED, TaskState.FAILED), TaskState.DELIVERED)

    def dispose(self) -> None:
        """Release captured resources. Safe to call more than once."""
        with self._lock:
            if self._state is TaskState.DISPOSED:
                return
            self._state = TaskState.DISPOSED
        self.release()

    # -------------------------------------------------------------------------
    # Internal
    # -------------------------------------------------------------------------

    def _transition(self, allowed, target: TaskState) -> None:
        with self._lock:
            if self._state not in allowed:
                raise TaskStateError(
                    f"{type(self).__name__} cannot move from '{self._state.value}' to '{target.value}'"
                )
            self._state = target
