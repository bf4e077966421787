"""
Unit tests for TaskRunner.

These tests start real (tiny) shell processes.
"""

import sys
import threading

import psutil
import pytest

from unibuild.errors import BuildCancelledError, TaskError
from unibuild.tasks import (
    XCRUN_PATH,
    Launch,
    StandardError,
    StandardOutput,
    Success,
    Task,
    TaskRunner,
    xcrun_task,
)

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")


def shell(script: str) -> Task:
    return Task("/bin/sh", ("-c", script))


class TestTask:
    """Tests for Task descriptions."""

    def test_xcrun_task(self, tmp_path):
        """Test xcrun tasks run the developer tool through xcrun."""
        task = xcrun_task(["lipo", "-info", "Foo"], tmp_path)

        assert task.command == [XCRUN_PATH, "lipo", "-info", "Foo"]
        assert task.working_directory == tmp_path
        assert str(task) == f"{XCRUN_PATH} lipo -info Foo"


class TestTaskRunner:
    """Tests for launching processes."""

    def test_launch_success(self):
        """Test a successful process yields Launch, output and its stdout."""
        task = shell("printf hello")

        events = list(TaskRunner().launch(task))

        assert events[0] == Launch(task)
        assert StandardOutput(b"hello") in events
        assert events[-1] == Success(b"hello")

    def test_stderr_is_forwarded(self):
        """Test standard error chunks are yielded as StandardError."""
        events = list(TaskRunner().launch(shell("printf warn >&2")))

        assert StandardError(b"warn") in events
        assert events[-1] == Success(b"")

    def test_working_directory(self, tmp_path):
        """Test the process runs in the task's working directory."""
        task = Task("/bin/sh", ("-c", "pwd -P"), working_directory=tmp_path)

        events = list(TaskRunner().launch(task))

        assert events[-1].value.decode().strip() == str(tmp_path.resolve())

    def test_nonzero_exit_raises(self):
        """Test a failing process raises TaskError with exit code and stderr."""
        with pytest.raises(TaskError) as exc_info:
            list(TaskRunner().launch(shell("echo oops >&2; exit 3")))

        failure = exc_info.value.failure
        assert failure.exit_code == 3
        assert "oops" in failure.stderr
        assert failure.command[0] == "/bin/sh"

    def test_output_precedes_failure(self):
        """Test all output is forwarded before the failure is raised."""
        events = []
        with pytest.raises(TaskError):
            for event in TaskRunner().launch(shell("printf partial; exit 1")):
                events.append(event)

        assert StandardOutput(b"partial") in events
        assert not any(isinstance(event, Success) for event in events)

    def test_launch_failure(self, tmp_path):
        """Test a missing executable raises TaskError with a launch error."""
        task = Task(str(tmp_path / "missing-tool"))

        with pytest.raises(TaskError) as exc_info:
            list(TaskRunner().launch(task))

        assert exc_info.value.failure.exit_code is None
        assert exc_info.value.failure.launch_error

    def test_cancelled_before_launch(self):
        """Test a cancelled runner launches nothing."""
        runner = TaskRunner()
        runner.cancel()

        with pytest.raises(BuildCancelledError):
            list(runner.launch(shell("echo never")))

    def test_cancel_terminates_process(self):
        """Test cancelling a running task stops the process."""
        cancel_event = threading.Event()
        runner = TaskRunner(cancel_event=cancel_event, poll_interval=0.05)

        with pytest.raises(BuildCancelledError):
            for event in runner.launch(shell("sleep 30")):
                if isinstance(event, Launch):
                    cancel_event.set()

        children = [child.name() for child in psutil.Process().children(recursive=True)]
        assert "sleep" not in children

    def test_close_terminates_process(self):
        """Test closing the stream stops the process."""
        stream = TaskRunner(poll_interval=0.05).launch(shell("sleep 30"))
        assert isinstance(next(stream), Launch)

        stream.close()

        children = [child.name() for child in psutil.Process().children(recursive=True)]
        assert "sleep" not in children
