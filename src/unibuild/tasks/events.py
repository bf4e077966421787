"""
Task event stream primitives.

Every external tool invocation is exposed as an iterator of task events:
a Launch event, any number of StandardOutput / StandardError chunks in the
order the process produced them, and finally one or more Success events
carrying the typed result. Failures are raised out of the iterator.

The helpers in this module compose such streams so that output keeps flowing
to the caller while results are transformed or aggregated.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Dict,
    Generator,
    Generic,
    Iterable,
    Iterator,
    List,
    Mapping,
    TypeVar,
    Union,
)

if TYPE_CHECKING:
    from ..config.build_settings import BuildSettings
    from .runner import Task

T = TypeVar("T")
U = TypeVar("U")
A = TypeVar("A")


@dataclass(frozen=True)
class Launch:
    """The process for the given task has been started."""

    task: "Task"


@dataclass(frozen=True)
class StandardOutput:
    """A chunk of standard output."""

    data: bytes


@dataclass(frozen=True)
class StandardError:
    """A chunk of standard error."""

    data: bytes


@dataclass(frozen=True)
class Success(Generic[T]):
    """A result value produced by the stream."""

    value: T


TaskEvent = Union[Launch, StandardOutput, StandardError, Success]
TaskStream = Iterator[TaskEvent]


def _close(iterator: Any) -> None:
    close = getattr(iterator, "close", None)
    if close is not None:
        close()


def successes(values: Iterable[T]) -> Iterator[Success]:
    """Wrap plain values as Success events."""
    for value in values:
        yield Success(value)


def flat_map_task_events(
    events: Iterable[TaskEvent],
    transform: Callable[[Any], Iterable[TaskEvent]],
) -> TaskStream:
    """Replace every Success with the events produced by transform.

    Output events of both the outer and the inner streams are forwarded.
    Inner streams run one after the other, in the order of the outer values.
    """
    stream = iter(events)
    try:
        for event in stream:
            if isinstance(event, Success):
                yield from transform(event.value)
            else:
                yield event
    finally:
        _close(stream)


def map_task_values(events: Iterable[TaskEvent], transform: Callable[[Any], Any]) -> TaskStream:
    """Apply transform to every Success value, forwarding output untouched."""
    stream = iter(events)
    try:
        for event in stream:
            if isinstance(event, Success):
                yield Success(transform(event.value))
            else:
                yield event
    finally:
        _close(stream)


def forward_output(events: Iterable[TaskEvent]) -> Generator[TaskEvent, None, List[Any]]:
    """Forward output events and return the collected Success values.

    Intended for ``values = yield from forward_output(stream)`` inside other
    stream generators.
    """
    values: List[Any] = []
    stream = iter(events)
    try:
        for event in stream:
            if isinstance(event, Success):
                values.append(event.value)
            else:
                yield event
    finally:
        _close(stream)
    return values


def ignore_task_data(events: Iterable[TaskEvent]) -> Any:
    """Drain a stream, discarding output, and return its last Success value.

    Returns None if the stream completed without a value.
    """
    result = None
    stream = iter(events)
    try:
        for event in stream:
            if isinstance(event, Success):
                result = event.value
    finally:
        _close(stream)
    return result


def fold_task_events(
    events: Iterable[TaskEvent],
    initial: A,
    combine: Callable[[A, Any], A],
) -> TaskStream:
    """Fold Success values into one aggregate emitted when the input completes.

    The accumulator is owned by this generator alone. Output events pass
    through as they arrive; exactly one Success is emitted at the end, and none
    if the input raises.
    """
    accumulator = initial
    stream = iter(events)
    try:
        for event in stream:
            if isinstance(event, Success):
                accumulator = combine(accumulator, event.value)
            else:
                yield event
    finally:
        _close(stream)
    yield Success(accumulator)


def _add_settings(
    by_target: Mapping[str, "BuildSettings"], settings: "BuildSettings"
) -> Mapping[str, "BuildSettings"]:
    combined: Dict[str, "BuildSettings"] = dict(by_target)
    combined[settings.target] = settings
    return MappingProxyType(combined)


def settings_by_target(events: Iterable[TaskEvent]) -> TaskStream:
    """Aggregate BuildSettings values into a read-only mapping keyed by target."""
    return fold_task_events(events, MappingProxyType({}), _add_settings)
