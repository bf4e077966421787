"""SDK planning: decides which SDKs a scheme is built for, grouped by platform."""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Set, Tuple

from ..config.build_arguments import BuildArguments, ProjectLocator
from ..config.sdk import SDK, Platform
from ..errors import InvariantViolationError
from .settings_loader import SettingsLoader

# (sdks, scheme, configuration, project) -> sdks to build. Raise BuildError to abort.
SDKFilter = Callable[[List[SDK], str, str, ProjectLocator], List[SDK]]


def default_sdk_filter(sdks: List[SDK], scheme: str, configuration: str,
                       project: ProjectLocator) -> List[SDK]:
    return list(sdks)


def platform_sdk_filter(platforms: Set[Platform]) -> SDKFilter:
    """Build a filter that keeps only SDKs of the given platforms.

    An empty set keeps everything.
    """
    def sdk_filter(sdks: List[SDK], scheme: str, configuration: str,
                   project: ProjectLocator) -> List[SDK]:
        if not platforms:
            return list(sdks)
        return [sdk for sdk in sdks if sdk.platform in platforms]

    return sdk_filter


@dataclass(frozen=True)
class PlatformPlan:
    """The SDKs one platform is built for."""

    platform: Platform
    sdks: Tuple[SDK, ...]

    @property
    def is_merge(self) -> bool:
        """Whether the platform needs a device + simulator merge."""
        return len(self.sdks) == 2

    def device_and_simulator(self) -> Tuple[SDK, SDK]:
        """Return the (device, simulator) pair of a merge plan."""
        simulators, devices = SDK.split_sdks(self.sdks)
        if not devices:
            raise InvariantViolationError(f"Could not find device SDK in {list(map(str, self.sdks))}")
        if not simulators:
            raise InvariantViolationError(f"Could not find simulator SDK in {list(map(str, self.sdks))}")
        return devices[0], simulators[0]


class SDKPlanner:
    """Plans the per-platform SDK builds of a scheme."""

    def __init__(self, settings_loader: SettingsLoader):
        self.settings_loader = settings_loader

    def plan(self, build_arguments: BuildArguments,
             sdk_filter: Optional[SDKFilter] = None) -> List[PlatformPlan]:
        """
        Determine the platforms and SDKs to build.

        Args:
            build_arguments: Arguments naming the project, scheme and configuration
            sdk_filter: Policy choosing which SDKs of a platform to build

        Returns:
            One PlatformPlan per platform with at least one SDK left to build

        Raises:
            InvariantViolationError: If no SDK is found or a platform keeps a
                number of SDKs other than one or two
            BuildError: Whatever the SDK filter raises
        """
        scheme = build_arguments.scheme
        if scheme is None:
            raise ValueError("Planning requires a scheme")
        configuration = build_arguments.configuration or ""
        project = build_arguments.project
        sdk_filter = sdk_filter or default_sdk_filter

        sdks_by_platform: Dict[Platform, List[SDK]] = {}
        for sdk in self.settings_loader.sdks_for_scheme(scheme, project):
            if not self._supports_bitcode_requirement(replace(build_arguments, sdk=sdk), sdk):
                logging.info(f"Skipping {sdk} for {scheme}: no buildable targets")
                continue
            platform_sdks = sdks_by_platform.setdefault(sdk.platform, [])
            if sdk not in platform_sdks:
                platform_sdks.append(sdk)

        if not sdks_by_platform:
            raise InvariantViolationError(f"No SDKs found for scheme {scheme}")

        plans = []
        for platform, sdks in sdks_by_platform.items():
            chosen = list(sdk_filter(list(sdks), scheme, configuration, project))
            if not chosen:
                logging.debug(f"No SDKs left for {platform.value} in {scheme}")
                continue
            if len(chosen) not in (1, 2):
                raise InvariantViolationError(
                    f"SDK count {len(chosen)} in scheme {scheme} is not supported"
                )
            plans.append(PlatformPlan(platform, tuple(chosen)))

        return plans

    def _supports_bitcode_requirement(self, arguments: BuildArguments, sdk: SDK) -> bool:
        """Whether any target of the SDK can be built with its bitcode settings.

        SDKs that require bitcode are dropped when bitcode is disabled, as test
        helper frameworks commonly do. An SDK without targets is dropped too.
        """
        return any(
            settings.bitcode_enabled or not sdk.requires_bitcode
            for settings in self.settings_loader.load(arguments)
        )
