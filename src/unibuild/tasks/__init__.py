"""External task execution and event stream helpers."""

from .events import (
    Launch,
    StandardError,
    StandardOutput,
    Success,
    TaskEvent,
    TaskStream,
    flat_map_task_events,
    fold_task_events,
    forward_output,
    ignore_task_data,
    map_task_values,
    settings_by_target,
    successes,
)
from .runner import XCRUN_PATH, Task, TaskRunner, xcrun_task

__all__ = [
    "Launch",
    "StandardError",
    "StandardOutput",
    "Success",
    "TaskEvent",
    "TaskStream",
    "flat_map_task_events",
    "fold_task_events",
    "forward_output",
    "ignore_task_data",
    "map_task_values",
    "settings_by_target",
    "successes",
    "XCRUN_PATH",
    "Task",
    "TaskRunner",
    "xcrun_task",
]
