"""
Error types raised by the unibuild pipeline.

Every failure that can reach a caller derives from BuildError so the CLI and
library users can catch one type. Configuration defects that should never
happen with valid input are reported as InvariantViolationError.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class TaskFailure:
    """Details of an external process that could not run or exited non-zero."""

    command: List[str]
    exit_code: Optional[int]
    stderr: str = ""
    launch_error: Optional[str] = None

    def __str__(self) -> str:
        command = " ".join(self.command)
        if self.launch_error is not None:
            return f"Failed to launch {command}: {self.launch_error}"
        message = f"{command} exited with code {self.exit_code}"
        if self.stderr:
            message += f"\n{self.stderr.rstrip()}"
        return message


class BuildError(Exception):
    """Base class for all unibuild errors."""
    pass


class TaskError(BuildError):
    """Raised when an external tool fails to launch or exits unsuccessfully."""

    def __init__(self, failure: TaskFailure):
        self.failure = failure
        super().__init__(str(failure))


class WriteFailedError(BuildError):
    """Raised when a file or directory cannot be written."""

    def __init__(self, path: Path, cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.cause = cause
        message = f"Failed to write to {self.path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ReadFailedError(BuildError):
    """Raised when a file or package cannot be read."""

    def __init__(self, path: Path, cause: Optional[BaseException] = None):
        self.path = Path(path)
        self.cause = cause
        message = f"Failed to read {self.path}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class ParseError(BuildError):
    """Raised when tool output cannot be parsed."""

    def __init__(self, description: str):
        self.description = description
        super().__init__(description)


class InvalidArchitecturesError(ParseError):
    """Raised when `lipo -info` output has an unknown shape."""
    pass


class InvalidUUIDsError(ParseError):
    """Raised when `dwarfdump --uuid` output contains no UUIDs."""
    pass


class MissingBuildSettingError(ParseError):
    """Raised when a required build setting is absent."""

    def __init__(self, key: str, target: Optional[str] = None):
        self.key = key
        where = f" for target {target}" if target else ""
        super().__init__(f"Build setting {key} not found{where}")


class InvalidInputError(BuildError):
    """Raised when a caller passes a reference that is not a filesystem path."""
    pass


class InvariantViolationError(BuildError):
    """Raised for build configurations that cannot be handled at all.

    Examples are a scheme without SDKs, a platform with more than two SDKs, or
    device and simulator builds that disagree on the set of targets.
    """
    pass


class BuildCancelledError(BuildError):
    """Raised when a running build is cancelled by the caller."""
    pass
