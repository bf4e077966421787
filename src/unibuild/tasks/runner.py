"""
External process runner.

Launches a command with piped stdout/stderr and turns it into a task event
stream. Each pipe is read on its own thread so that output reaches the caller
while the process is still running.

Design:
    - Output chunks are yielded in the order they were read
    - A non-zero exit status raises TaskError once all output was forwarded
    - Closing the stream or setting the cancel event terminates the whole
      process tree
"""

import logging
import queue
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Dict, Iterator, List, Optional, Tuple, Type, Union

from ..errors import BuildCancelledError, TaskError, TaskFailure
from ..interrupt_utils import terminate_process_tree
from .events import Launch, StandardError, StandardOutput, Success, TaskEvent

XCRUN_PATH = "/usr/bin/xcrun"

_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class Task:
    """Description of one external command invocation."""

    launch_path: str
    arguments: Tuple[str, ...] = ()
    working_directory: Optional[Path] = None
    environment: Optional[Dict[str, str]] = None

    @property
    def command(self) -> List[str]:
        return [self.launch_path, *self.arguments]

    def __str__(self) -> str:
        return " ".join(self.command)


def xcrun_task(arguments: List[str], working_directory: Optional[Path] = None) -> Task:
    """Create a task that runs a developer tool through xcrun."""
    return Task(XCRUN_PATH, tuple(arguments), working_directory)


def _pump(pipe: IO[bytes], event_type: Type[Union[StandardOutput, StandardError]],
          output_queue: "queue.Queue") -> None:
    try:
        while True:
            data = pipe.read1(_CHUNK_SIZE)  # type: ignore[attr-defined]
            if not data:
                break
            output_queue.put(event_type(data))
    except (OSError, ValueError) as e:
        logging.debug(f"Stopped reading pipe: {e}")
    finally:
        pipe.close()
        output_queue.put(None)


class TaskRunner:
    """Runs tasks as event streams.

    One runner is shared by all components of a scheme build, so cancelling
    the runner stops whatever tool is currently executing.
    """

    def __init__(self, cancel_event: Optional[threading.Event] = None, poll_interval: float = 0.1):
        """Initialize task runner.

        Args:
            cancel_event: Event that cancels running tasks when set
            poll_interval: Seconds between cancellation checks while waiting for output
        """
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self.poll_interval = poll_interval

    def cancel(self) -> None:
        """Cancel the running task and any task launched afterwards."""
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def launch(self, task: Task) -> Iterator[TaskEvent]:
        """Run the task, yielding its events.

        The final Success value is the complete standard output as bytes.

        Raises:
            TaskError: If the process cannot be launched or exits non-zero
            BuildCancelledError: If the runner was cancelled
        """
        if self.cancelled:
            raise BuildCancelledError(f"Cancelled before launching {task}")

        logging.debug(f"Launching: {task}")
        try:
            process = subprocess.Popen(
                task.command,
                cwd=str(task.working_directory) if task.working_directory else None,
                env=task.environment,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise TaskError(TaskFailure(task.command, None, launch_error=str(e))) from e

        output_queue: "queue.Queue" = queue.Queue()
        readers = [
            threading.Thread(target=_pump, args=(process.stdout, StandardOutput, output_queue), daemon=True),
            threading.Thread(target=_pump, args=(process.stderr, StandardError, output_queue), daemon=True),
        ]
        for reader in readers:
            reader.start()

        stdout_chunks: List[bytes] = []
        stderr_chunks: List[bytes] = []
        try:
            yield Launch(task)

            open_pipes = len(readers)
            while open_pipes:
                if self.cancelled:
                    raise BuildCancelledError(f"Cancelled while running {task}")
                try:
                    event = output_queue.get(timeout=self.poll_interval)
                except queue.Empty:
                    continue
                if event is None:
                    open_pipes -= 1
                    continue
                if isinstance(event, StandardOutput):
                    stdout_chunks.append(event.data)
                else:
                    stderr_chunks.append(event.data)
                yield event

            exit_code = process.wait()
        finally:
            if process.poll() is None:
                logging.info(f"Stopping {task.launch_path} (pid {process.pid})")
                terminate_process_tree(process.pid)
                process.wait()

        if exit_code != 0:
            stderr = b"".join(stderr_chunks).decode("utf-8", errors="replace")
            raise TaskError(TaskFailure(task.command, exit_code, stderr=stderr))

        logging.debug(f"Finished: {task}")
        yield Success(b"".join(stdout_chunks))
