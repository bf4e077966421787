"""
Shared fixtures for unibuild tests.

FakeRunner stands in for TaskRunner: each launched task is matched against
scripted responses and produces the same event sequence a real process
would (Launch, output chunks, then Success or TaskError).
"""

import plistlib
from typing import Callable, Dict, List, Optional, Sequence, Union

import pytest

from unibuild.errors import TaskError, TaskFailure
from unibuild.tasks import Launch, StandardError, StandardOutput, Success, Task

Matcher = Union[Sequence[str], Callable[[List[str]], bool]]


class ScriptedResponse:
    """Canned result for tasks matching a pattern."""

    def __init__(self, matcher: Matcher, stdout: bytes = b"", stderr: bytes = b"",
                 exit_code: int = 0, effect: Optional[Callable[[Task], None]] = None):
        self.matcher = matcher
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code
        self.effect = effect

    def matches(self, arguments: List[str]) -> bool:
        if callable(self.matcher):
            return self.matcher(arguments)
        prefix = list(self.matcher)
        return arguments[:len(prefix)] == prefix


class FakeRunner:
    """Scripted replacement for TaskRunner."""

    def __init__(self):
        self.responses: List[ScriptedResponse] = []
        self.tasks: List[Task] = []

    def on(self, matcher: Matcher, stdout: Union[bytes, str] = b"", stderr: Union[bytes, str] = b"",
           exit_code: int = 0, effect: Optional[Callable[[Task], None]] = None) -> "FakeRunner":
        """Register a response. The first registered match wins."""
        if isinstance(stdout, str):
            stdout = stdout.encode("utf-8")
        if isinstance(stderr, str):
            stderr = stderr.encode("utf-8")
        self.responses.append(ScriptedResponse(matcher, stdout, stderr, exit_code, effect))
        return self

    def launch(self, task: Task):
        self.tasks.append(task)
        arguments = list(task.arguments)
        for response in self.responses:
            if response.matches(arguments):
                break
        else:
            raise AssertionError(f"Unexpected task: {task}")

        yield Launch(task)
        if response.effect is not None:
            response.effect(task)
        if response.stdout:
            yield StandardOutput(response.stdout)
        if response.stderr:
            yield StandardError(response.stderr)
        if response.exit_code != 0:
            raise TaskError(TaskFailure(task.command, response.exit_code,
                                        stderr=response.stderr.decode("utf-8")))
        yield Success(response.stdout)

    def commands(self, tool: Optional[str] = None) -> List[List[str]]:
        """Arguments of launched tasks, optionally only those of one tool."""
        launched = [list(task.arguments) for task in self.tasks]
        if tool is None:
            return launched
        return [arguments for arguments in launched if arguments and arguments[0] == tool]


def render_build_settings(targets: Dict[str, Dict[str, str]], action: str = "build") -> str:
    """Render `xcodebuild -showBuildSettings` output for the given targets."""
    lines = []
    for target, settings in targets.items():
        lines.append(f"Build settings for action {action} and target {target}:")
        for key, value in settings.items():
            lines.append(f"    {key} = {value}")
        lines.append("")
    return "\n".join(lines)


def framework_settings(name: str, products_dir: str, platforms: str = "iphoneos iphonesimulator",
                       bitcode: bool = False, **extra: str) -> Dict[str, str]:
    """Settings of a dynamic framework target named `name`."""
    settings = {
        "PRODUCT_TYPE": "com.apple.product-type.framework",
        "MACH_O_TYPE": "mh_dylib",
        "BUILT_PRODUCTS_DIR": products_dir,
        "WRAPPER_NAME": f"{name}.framework",
        "EXECUTABLE_NAME": name,
        "EXECUTABLE_PATH": f"{name}.framework/{name}",
        "CONTENTS_FOLDER_PATH": f"{name}.framework",
        "PRODUCT_MODULE_NAME": name,
        "SUPPORTED_PLATFORMS": platforms,
        "ENABLE_BITCODE": "YES" if bitcode else "NO",
    }
    settings.update(extra)
    return settings


def is_show_settings(sdk: Optional[str] = None) -> Callable[[List[str]], bool]:
    """Matcher for -showBuildSettings invocations, optionally for one SDK."""
    def matcher(arguments: List[str]) -> bool:
        if "-showBuildSettings" not in arguments:
            return False
        if sdk is None:
            return "-sdk" not in arguments
        return "-sdk" in arguments and arguments[arguments.index("-sdk") + 1] == sdk
    return matcher


def is_build(sdk: str) -> Callable[[List[str]], bool]:
    """Matcher for `xcodebuild ... clean build` for one SDK."""
    def matcher(arguments: List[str]) -> bool:
        return (arguments[-2:] == ["clean", "build"]
                and "-sdk" in arguments
                and arguments[arguments.index("-sdk") + 1] == sdk)
    return matcher


@pytest.fixture
def fake_runner():
    """A fresh scripted task runner."""
    return FakeRunner()


@pytest.fixture
def xcode():
    """Helpers for scripting xcodebuild responses."""
    class Xcode:
        render_settings = staticmethod(render_build_settings)
        framework = staticmethod(framework_settings)
        show_settings = staticmethod(is_show_settings)
        build = staticmethod(is_build)

    return Xcode


def make_framework_product(products_dir, name: str = "Foo", arch: str = "arm64"):
    """Create a built framework with an Info.plist, binary and Swift module."""
    framework = products_dir / f"{name}.framework"
    module = framework / "Modules" / f"{name}.swiftmodule"
    module.mkdir(parents=True)
    (module / f"{arch}.swiftmodule").write_text(arch)
    (framework / name).write_text(arch)
    with open(framework / "Info.plist", "wb") as f:
        plistlib.dump({"CFBundlePackageType": "FMWK", "CFBundleExecutable": name}, f)
    return framework


@pytest.fixture
def product_factory():
    """Factory creating built framework products on disk."""
    return make_framework_product
