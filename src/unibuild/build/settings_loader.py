"""
Build settings loading.

Runs `xcodebuild -showBuildSettings` for a set of build arguments and parses
the result into BuildSettings, one per target. Also answers the questions
the planner asks before building: which SDKs a scheme supports and whether a
scheme produces anything worth building.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from ..config.build_arguments import BuildArguments, ProjectLocator
from ..config.build_settings import BuildSettings, FrameworkType
from ..config.sdk import SDK, Platform
from ..errors import MissingBuildSettingError
from ..tasks import (
    TaskRunner,
    TaskStream,
    flat_map_task_events,
    ignore_task_data,
    successes,
    xcrun_task,
)


class SettingsLoader:
    """Loads resolved build settings through xcodebuild."""

    def __init__(self, runner: TaskRunner):
        """
        Initialize settings loader.

        Args:
            runner: Task runner used to invoke xcodebuild
        """
        self.runner = runner

    def load_events(self, build_arguments: BuildArguments) -> TaskStream:
        """Load settings as a task event stream with one Success per target."""
        task = xcrun_task(build_arguments.arguments + ["-showBuildSettings"])

        def parse(output: bytes) -> TaskStream:
            return successes(BuildSettings.parse(output.decode("utf-8", errors="replace")))

        return flat_map_task_events(self.runner.launch(task), parse)

    def load(self, build_arguments: BuildArguments) -> List[BuildSettings]:
        """Load settings for every target, discarding xcodebuild's output.

        Raises:
            TaskError: If xcodebuild fails
        """
        task = xcrun_task(build_arguments.arguments + ["-showBuildSettings"])
        output = ignore_task_data(self.runner.launch(task)) or b""
        settings = BuildSettings.parse(output.decode("utf-8", errors="replace"))
        logging.debug(
            f"Loaded settings for {len(settings)} target(s) "
            f"(scheme={build_arguments.scheme}, sdk={build_arguments.sdk})"
        )
        return settings

    def sdks_for_scheme(self, scheme: str, project: ProjectLocator) -> List[SDK]:
        """SDKs supported by the first target of the scheme."""
        settings = self.load(BuildArguments(project=project, scheme=scheme))
        if not settings:
            return []
        return settings[0].build_sdks

    def should_build_scheme(self, build_arguments: BuildArguments,
                            for_platforms: Optional[Set[Platform]] = None) -> bool:
        """Whether the scheme contains a dynamic framework target.

        When platforms are given, only targets supporting at least one of them
        are considered. Targets whose settings cannot be classified are ignored.
        """
        if build_arguments.scheme is None:
            raise ValueError("should_build_scheme requires a scheme")

        for settings in self.load(build_arguments):
            if for_platforms:
                try:
                    sdks = settings.build_sdks
                except MissingBuildSettingError:
                    continue
                if not any(sdk.platform in for_platforms for sdk in sdks):
                    continue
            if settings.framework_type is FrameworkType.DYNAMIC:
                return True
        return False


def schemes_in_projects(
    projects: Iterable[Tuple[ProjectLocator, Sequence[str]]]
) -> List[Tuple[str, ProjectLocator]]:
    """Pair each shared scheme with the project file that actually contains it.

    Workspaces are skipped, as are schemes without a shared scheme file at
    ``<project>/xcshareddata/xcschemes/<scheme>.xcscheme``.
    """
    pairs = []
    for project, schemes in projects:
        if not project.is_project_file:
            continue
        for scheme in schemes:
            scheme_path = Path(project.path) / "xcshareddata" / "xcschemes" / f"{scheme}.xcscheme"
            if scheme_path.exists():
                pairs.append((scheme, project))
    return pairs
