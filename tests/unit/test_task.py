"""
Unit tests for the Task lifecycle (no dispatcher involved).
"""
import pytest

from cloudcv.framework.exceptions import DomainError, InternalError, TaskStateError
from cloudcv.framework.marshal import ObjectBuilder
from cloudcv.framework.task import Task, TaskState


class SquareTask(Task):
    """Squares a number; fails on negative input."""

    def __init__(self, value):
        super().__init__()
        self.value = value
        self.squared = None
        self.release_count = 0
        self.create_count = 0

    def execute_native(self):
        if self.value < 0:
            self.set_error("negative input")
            return
        self.squared = self.value * self.value

    def create_result(self):
        self.create_count += 1
        result = ObjectBuilder()
        result["squared"] = self.squared
        return result.build()

    def release(self):
        self.release_count += 1


class RaisingTask(SquareTask):
    def __init__(self, exc):
        super().__init__(1)
        self.exc = exc

    def execute_native(self):
        raise self.exc


class TestRunNative:
    """Tests for the native step"""

    def test_success(self):
        task = SquareTask(4)
        task.run_native()
        assert task.state is TaskState.SUCCEEDED
        assert task.error is None
        assert task.build_result() == {"squared": 16}

    def test_domain_failure_via_set_error(self):
        task = SquareTask(-1)
        task.run_native()
        assert task.state is TaskState.FAILED
        assert isinstance(task.error, DomainError)
        assert task.error.message == "negative input"

    def test_raised_domain_error_kept(self):
        task = RaisingTask(DomainError("Cannot decode input image"))
        task.run_native()
        assert isinstance(task.error, DomainError)
        assert str(task.error) == "Cannot decode input image"

    def test_unexpected_exception_becomes_internal_error(self):
        task = RaisingTask(ZeroDivisionError("boom"))
        task.run_native()
        assert task.failed
        assert isinstance(task.error, InternalError)
        assert task.error.message == "Internal exception"

    def test_run_twice_is_a_programming_error(self):
        task = SquareTask(2)
        task.run_native()
        with pytest.raises(TaskStateError):
            task.run_native()


class TestBuildResult:
    """Tests for the result step"""

    def test_build_before_run_is_a_programming_error(self):
        task = SquareTask(2)
        with pytest.raises(TaskStateError):
            task.build_result()
        assert task.create_count == 0

    def test_build_twice_is_a_programming_error(self):
        task = SquareTask(2)
        task.run_native()
        task.build_result()
        with pytest.raises(TaskStateError, match="called twice"):
            task.build_result()
        assert task.create_count == 1

    def test_build_after_failure_is_a_programming_error(self):
        task = SquareTask(-2)
        task.run_native()
        with pytest.raises(TaskStateError):
            task.build_result()
        assert task.create_count == 0

    def test_task_state_error_is_assertion(self):
        assert issubclass(TaskStateError, AssertionError)


class TestDispose:
    """Tests for resource release"""

    def test_dispose_releases_once(self):
        task = SquareTask(2)
        task.run_native()
        task.dispose()
        task.dispose()
        assert task.release_count == 1
        assert task.state is TaskState.DISPOSED

    def test_submit_after_dispose_rejected(self):
        task = SquareTask(2)
        task.dispose()
        with pytest.raises(TaskStateError):
            task.mark_submitted()
