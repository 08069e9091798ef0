"""
Unit tests for the Dispatcher: exactly-once, loop-thread callback delivery.
"""
import asyncio
import threading
import time
from concurrent.futures import ThreadPoolExecutor

import pytest

from cloudcv.framework.dispatcher import Dispatcher, get_dispatcher, shutdown_dispatcher
from cloudcv.framework.exceptions import DomainError, InternalError, TaskStateError
from cloudcv.framework.marshal import ObjectBuilder
from cloudcv.framework.task import Task, TaskState


class RecordingTask(Task):
    """Records which thread each step ran on and the order of lifecycle events."""

    def __init__(self, value, delay=0.0, fail_with=None, events=None):
        super().__init__()
        self.value = value
        self.delay = delay
        self.fail_with = fail_with
        self.events = events if events is not None else []
        self.output = None
        self.native_thread = None
        self.build_thread = None
        self.build_count = 0

    def execute_native(self):
        self.native_thread = threading.get_ident()
        self.events.append(("native", self.value))
        if self.delay:
            time.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        self.output = [self.value] * 3

    def create_result(self):
        self.build_thread = threading.get_ident()
        self.build_count += 1
        self.events.append(("build", self.value))
        result = ObjectBuilder()
        result["value"] = self.value
        result["output"] = self.output
        return result.build()

    def release(self):
        self.events.append(("release", self.value))


class BrokenResultTask(RecordingTask):
    def create_result(self):
        raise KeyError("missing field")


class TestSubmit:
    """Tests for submit() and callback delivery"""

    @pytest.mark.asyncio
    async def test_success_invokes_callback_once_on_loop_thread(self, dispatcher, recorder_factory):
        recorder = recorder_factory()
        task = RecordingTask(7)
        loop_thread = threading.get_ident()

        assert dispatcher.submit(task, recorder) is None
        error, result = await recorder.wait()

        assert error is None
        assert result == {"value": 7, "output": [7, 7, 7]}
        assert len(recorder.calls) == 1
        assert recorder.thread_ids == [loop_thread]
        assert task.native_thread != loop_thread
        assert task.build_thread == loop_thread
        assert task.build_count == 1

    @pytest.mark.asyncio
    async def test_submit_returns_before_completion(self, dispatcher, recorder_factory):
        recorder = recorder_factory()
        dispatcher.submit(RecordingTask(1, delay=0.2), recorder)
        assert recorder.calls == []
        assert dispatcher.pending == 1
        await recorder.wait()
        assert dispatcher.pending == 0

    @pytest.mark.asyncio
    async def test_domain_failure_skips_build(self, dispatcher, recorder_factory):
        recorder = recorder_factory()
        task = RecordingTask(1, fail_with=DomainError("Cannot decode input image"))

        dispatcher.submit(task, recorder)
        error, result = await recorder.wait()

        assert isinstance(error, DomainError)
        assert error.message == "Cannot decode input image"
        assert result is None
        assert task.build_count == 0
        assert len(recorder.calls) == 1

    @pytest.mark.asyncio
    async def test_native_exception_becomes_internal_error(self, dispatcher, recorder_factory):
        recorder = recorder_factory()
        task = RecordingTask(1, fail_with=MemoryError())

        dispatcher.submit(task, recorder)
        error, result = await recorder.wait()

        assert isinstance(error, InternalError)
        assert str(error) == "Internal exception"
        assert result is None
        assert task.build_count == 0

    @pytest.mark.asyncio
    async def test_result_build_failure_delivered_as_internal_error(self, dispatcher, recorder_factory):
        recorder = recorder_factory()
        dispatcher.submit(BrokenResultTask(1), recorder)
        error, result = await recorder.wait()
        assert isinstance(error, InternalError)
        assert result is None
        assert len(recorder.calls) == 1

    @pytest.mark.asyncio
    async def test_release_happens_after_callback(self, dispatcher, recorder_factory):
        events = []
        recorder = recorder_factory()
        task = RecordingTask(3, events=events)

        def callback(error, result):
            events.append(("callback", 3))
            recorder(error, result)

        dispatcher.submit(task, callback)
        await recorder.wait()

        assert events == [("native", 3), ("build", 3), ("callback", 3), ("release", 3)]
        assert task.state is TaskState.DISPOSED

    @pytest.mark.asyncio
    async def test_task_disposed_even_if_callback_raises(self, dispatcher):
        loop = asyncio.get_running_loop()
        handled = loop.create_future()
        loop.set_exception_handler(lambda _loop, context: handled.done() or handled.set_result(context))
        task = RecordingTask(5)

        def callback(error, result):
            raise RuntimeError("callback bug")

        dispatcher.submit(task, callback)
        context = await asyncio.wait_for(handled, 30)

        assert isinstance(context.get("exception"), RuntimeError)
        assert task.state is TaskState.DISPOSED
        assert dispatcher.pending == 0

    @pytest.mark.asyncio
    async def test_resubmitting_a_task_is_rejected(self, dispatcher, recorder_factory):
        recorder = recorder_factory()
        task = RecordingTask(1)
        dispatcher.submit(task, recorder)
        with pytest.raises(TaskStateError):
            dispatcher.submit(task, recorder)
        await recorder.wait()
        assert len(recorder.calls) == 1

    @pytest.mark.asyncio
    async def test_non_callable_callback_rejected(self, dispatcher):
        task = RecordingTask(1)
        with pytest.raises(TypeError):
            dispatcher.submit(task, None)
        assert task.state is TaskState.CREATED

    def test_submit_requires_running_loop(self, dispatcher):
        with pytest.raises(RuntimeError):
            dispatcher.submit(RecordingTask(1), lambda error, result: None)

    @pytest.mark.asyncio
    async def test_submit_after_shutdown_disposes_task(self, recorder_factory):
        dispatcher = Dispatcher(max_workers=1)
        dispatcher.shutdown()
        task = RecordingTask(1)
        with pytest.raises(RuntimeError):
            dispatcher.submit(task, recorder_factory())
        assert task.state is TaskState.DISPOSED


class TestConcurrency:
    """Independent tasks never see each other's inputs or outputs"""

    @pytest.mark.asyncio
    async def test_concurrent_tasks_do_not_alias(self, dispatcher, recorder_factory):
        recorders = [recorder_factory() for _ in range(8)]
        for value, recorder in enumerate(recorders):
            dispatcher.submit(RecordingTask(value, delay=0.01 * (8 - value)), recorder)

        outcomes = await asyncio.gather(*(recorder.wait() for recorder in recorders))

        for value, (error, result) in enumerate(outcomes):
            assert error is None
            assert result == {"value": value, "output": [value] * 3}

    @pytest.mark.asyncio
    async def test_completion_order_follows_work_not_submission(self, dispatcher):
        order = []
        done = asyncio.Event()

        def callback_for(name):
            def callback(error, result):
                order.append(name)
                if len(order) == 2:
                    done.set()
            return callback

        dispatcher.submit(RecordingTask("slow", delay=0.5), callback_for("slow"))
        dispatcher.submit(RecordingTask("fast"), callback_for("fast"))
        await asyncio.wait_for(done.wait(), 30)

        assert order == ["fast", "slow"]


class TestRun:
    """Tests for the awaitable run() form"""

    @pytest.mark.asyncio
    async def test_run_returns_result(self, dispatcher):
        result = await dispatcher.run(RecordingTask(2))
        assert result["output"] == [2, 2, 2]

    @pytest.mark.asyncio
    async def test_run_raises_task_error(self, dispatcher):
        with pytest.raises(DomainError, match="nope"):
            await dispatcher.run(RecordingTask(2, fail_with=DomainError("nope")))

    @pytest.mark.asyncio
    async def test_custom_executor(self):
        executor = ThreadPoolExecutor(max_workers=1)
        dispatcher = Dispatcher(executor=executor)
        try:
            result = await dispatcher.run(RecordingTask(9))
        finally:
            dispatcher.shutdown()
        assert result["value"] == 9


class TestDefaultDispatcher:
    """Tests for the process-wide dispatcher"""

    def test_singleton(self):
        assert get_dispatcher() is get_dispatcher()

    def test_shutdown_creates_new_instance_next_time(self):
        first = get_dispatcher()
        shutdown_dispatcher()
        assert get_dispatcher() is not first

    def test_pool_size_from_settings(self, mock_env):
        dispatcher = get_dispatcher()
        assert dispatcher._executor._max_workers == 3
