"""
Dispatcher
----------

Runs a Task's native step on a thread pool and delivers the outcome back on
the event loop:

    submit -> run_native (pool) -> build_result (loop) -> callback(error, result) -> dispose

The callback is invoked exactly once, on the loop thread, and the task is
disposed only after it returns. There are no retries and no cancellation.
"""

# -----------------------------------------------------------------------------
# Standard library
# -----------------------------------------------------------------------------
import asyncio
import functools
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Callable, Optional

# -----------------------------------------------------------------------------
# Application
# -----------------------------------------------------------------------------
from cloudcv.core.config import get_settings
from cloudcv.framework.exceptions import InternalError, TaskError, TaskStateError
from cloudcv.framework.task import Task, TaskState

logger = logging.getLogger(__name__)

Callback = Callable[[Optional[TaskError], Any], Any]


class Dispatcher:
    """
    Submits tasks to a native executor and resumes their callbacks on the loop.

    Must be used from a running asyncio event loop; the loop that calls
    submit() is the one the callback comes back on.
    """

    def __init__(self, max_workers: Optional[int] = None, executor: Optional[Executor] = None):
        """
        Args:
            max_workers: Pool size; defaults to settings.max_workers
            executor: Use an existing executor instead of creating a thread pool
        """
        if executor is None:
            workers = max_workers or get_settings().max_workers
            executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="cloudcv-native")
            logger.info("Native thread pool started with %d worker(s)", workers)
        self._executor = executor
        self._pending = 0

    @property
    def pending(self) -> int:
        """Tasks submitted whose callback has not been invoked yet."""
        return self._pending

    def submit(self, task: Task, callback: Callback) -> None:
        """
        Schedule ``task`` and return immediately.

        Raises:
            TypeError: if callback is not callable
            RuntimeError: if called outside a running event loop
            TaskStateError: if the task was already submitted or run
        """
        if not callable(callback):
            raise TypeError("callback must be callable")
        loop = asyncio.get_running_loop()

        task.mark_submitted()
        try:
            future = loop.run_in_executor(self._executor, task.run_native)
        except Exception:
            task.dispose()
            raise

        self._pending += 1
        logger.debug("Submitted %s (pending=%d)", type(task).__name__, self._pending)
        future.add_done_callback(functools.partial(self._on_native_done, task, callback))

    async def run(self, task: Task) -> Any:
        """
        Submit ``task`` and wait for it.

        Returns:
            The dynamic result built by the task

        Raises:
            TaskError: the DomainError or InternalError the task failed with
        """
        outcome = asyncio.get_running_loop().create_future()

        def deliver(error: Optional[TaskError], result: Any) -> None:
            if outcome.cancelled():
                return
            if error is not None:
                outcome.set_exception(error)
            else:
                outcome.set_result(result)

        self.submit(task, deliver)
        return await outcome

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    # -------------------------------------------------------------------------
    # Completion (always on the loop thread)
    # -------------------------------------------------------------------------

    def _on_native_done(self, task: Task, callback: Callback, future: "asyncio.Future") -> None:
        error: Optional[TaskError] = None
        result: Any = None
        try:
            if future.cancelled():
                logger.error("Native execution of %s was cancelled by the executor", type(task).__name__)
                error = InternalError()
            elif future.exception() is not None:
                exc = future.exception()
                if isinstance(exc, TaskStateError):
                    raise exc
                logger.error("Native execution of %s raised outside the task: %r", type(task).__name__, exc)
                error = InternalError()
            elif task.failed:
                error = task.error
            else:
                error, result = self._build(task)

            if task.state in (TaskState.SUCCEEDED, TaskState.FAILED):
                task.mark_delivered()
            logger.debug("Delivering %s (error=%s)", type(task).__name__, error)
            callback(error, result)
        finally:
            self._pending -= 1
            task.dispose()

    @staticmethod
    def _build(task: Task):
        try:
            return None, task.build_result()
        except TaskStateError:
            raise
        except TaskError as exc:
            return exc, None
        except Exception:
            logger.exception("Building the result of %s raised", type(task).__name__)
            return InternalError(), None


# -----------------------------------------------------------------------------
# Default dispatcher (singleton pattern)
# -----------------------------------------------------------------------------

_dispatcher: Optional[Dispatcher] = None


def get_dispatcher() -> Dispatcher:
    """Get the process-wide dispatcher, creating its thread pool on first use."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = Dispatcher()
    return _dispatcher


def shutdown_dispatcher(wait: bool = True) -> None:
    """Shut down the process-wide dispatcher; the next get_dispatcher() starts a new one."""
    global _dispatcher
    if _dispatcher is not None:
        _dispatcher.shutdown(wait=wait)
        _dispatcher = None
