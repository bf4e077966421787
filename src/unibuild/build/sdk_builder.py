"""
Per-SDK builds.

Builds one scheme for one SDK with `xcodebuild clean build`. Simulator builds
are pinned to a concrete simulator device found through `simctl`, so that
xcodebuild does not need to pick (or boot) one by itself.
"""

import logging
import re
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from ..config.build_arguments import BitcodeGenerationMode, BuildArguments
from ..config.build_settings import BuildSettings, FrameworkType
from ..config.sdk import SDK, Platform
from ..tasks import TaskRunner, TaskStream, flat_map_task_events, ignore_task_data, successes, xcrun_task
from .settings_loader import SettingsLoader

# Seconds xcodebuild waits for the simulator destination to become available.
SIMULATOR_DESTINATION_TIMEOUT = 3

_SIMULATOR_UUID = r"[0-9A-Z]{8}-(?:[0-9A-Z]{4}-){3}[0-9A-Z]{12}"


def parse_simulator_destination(output: str, platform: Platform) -> Optional[str]:
    """
    Find a simulator device UUID in `xcrun simctl list devices` output.

    The listing groups devices under runtime headers:

        -- iOS 12.1 --
            iPhone XS (9C5B3A4E-0F53-4A9B-9C3D-8E2B1F6D7A01) (Shutdown)

    The first device of the last matching runtime group is used.

    Returns:
        An xcodebuild destination string, or None if no device was found
    """
    pattern = re.compile(
        rf"-- {re.escape(platform.value)} [0-9.]+ --\n.*?\(({_SIMULATOR_UUID})\)"
    )
    matches = pattern.findall(output)
    if not matches:
        return None
    return f"platform={platform.value} Simulator,id={matches[-1]}"


class SDKBuilder:
    """Builds a scheme for a single SDK."""

    def __init__(
        self,
        runner: TaskRunner,
        settings_loader: SettingsLoader,
        working_directory: Path,
        show_progress: bool = False
    ):
        """
        Initialize SDK builder.

        Args:
            runner: Task runner used to invoke xcodebuild and simctl
            settings_loader: Loader for the targets of the scheme
            working_directory: Project root, used as xcodebuild's working directory
            show_progress: Print a line for every build started
        """
        self.runner = runner
        self.settings_loader = settings_loader
        self.working_directory = Path(working_directory)
        self.show_progress = show_progress

    def find_simulator_destination(self, sdk: SDK) -> Optional[str]:
        """Destination string for a simulator SDK, or None if none is installed."""
        output = ignore_task_data(self.runner.launch(xcrun_task(["simctl", "list", "devices"]))) or b""
        destination = parse_simulator_destination(output.decode("utf-8", errors="replace"), sdk.platform)
        if destination is None:
            logging.warning(f"No {sdk.platform.value} simulator found, building {sdk} without a destination")
        return destination

    def build(self, sdk: SDK, build_arguments: BuildArguments) -> TaskStream:
        """
        Build the scheme for one SDK.

        Output of xcodebuild is forwarded as it arrives. On success, one
        Success(BuildSettings) is emitted per dynamic framework target.

        Args:
            sdk: SDK to build for
            build_arguments: Arguments naming project, scheme and configuration

        Raises:
            TaskError: If simctl or xcodebuild fails
        """
        loading_arguments = replace(build_arguments, sdk=sdk)
        arguments = replace(loading_arguments, only_active_architecture=False)

        if sdk.is_simulator:
            destination = self.find_simulator_destination(sdk)
            if destination is not None:
                arguments = replace(
                    arguments,
                    destination=destination,
                    destination_timeout=SIMULATOR_DESTINATION_TIMEOUT,
                )

        targets = self._dynamic_framework_settings(loading_arguments)
        if all(settings.bitcode_enabled for settings in targets):
            mode = BitcodeGenerationMode.BITCODE
        else:
            mode = BitcodeGenerationMode.MARKER
        arguments = replace(arguments, bitcode_generation_mode=mode)

        if self.show_progress:
            print(f"      Building {build_arguments.scheme} for {sdk}...")
        logging.info(f"Building {build_arguments.scheme} ({sdk}, bitcode={mode.value})")

        task = xcrun_task(arguments.arguments + ["clean", "build"], self.working_directory)
        return flat_map_task_events(self.runner.launch(task), lambda _: successes(targets))

    def _dynamic_framework_settings(self, arguments: BuildArguments) -> List[BuildSettings]:
        return [
            settings for settings in self.settings_loader.load(arguments)
            if settings.framework_type is FrameworkType.DYNAMIC
        ]
