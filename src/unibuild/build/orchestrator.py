"""
Build orchestration for Xcode schemes.

This module coordinates the build of one scheme into universal products:
- SDK planning (which platforms and SDKs to build)
- Per-SDK builds (xcodebuild clean build)
- Merging device and simulator builds (lipo, Swift modules, bcsymbolmaps)
- Copying single-SDK products into the output directory
- Debug information generation (dsymutil)

Products are written to ``<working directory>/Build/<platform>``.
"""

import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple

from ..config.build_arguments import BuildArguments, ProjectLocator
from ..config.build_settings import BuildSettings
from ..config.sdk import SDK
from ..errors import BuildError, InvariantViolationError
from ..tasks import (
    StandardError,
    StandardOutput,
    Success,
    TaskRunner,
    TaskStream,
    forward_output,
    settings_by_target,
)
from .post_build import PostBuildProcessor
from .product_merger import ProductMerger
from .sdk_builder import SDKBuilder
from .sdk_planner import PlatformPlan, SDKFilter, SDKPlanner
from .settings_loader import SettingsLoader


@dataclass
class SchemeBuildResult:
    """Result of a complete scheme build."""

    success: bool
    products: List[Path] = field(default_factory=list)
    build_time: float = 0.0
    message: str = ""


def correlate_targets(
    first: Mapping[str, BuildSettings],
    second: Mapping[str, BuildSettings],
) -> List[Tuple[BuildSettings, BuildSettings]]:
    """
    Pair the settings of two builds by target name.

    Both builds must have produced exactly the same set of targets.

    Returns:
        (first, second) pairs in the target order of the first build

    Raises:
        InvariantViolationError: If the target sets differ
    """
    if set(first) != set(second):
        raise InvariantViolationError(
            f"Device and simulator builds produced different targets: "
            f"{sorted(first)} vs {sorted(second)}"
        )
    return [(first[target], second[target]) for target in first]


class SchemeBuildOrchestrator:
    """
    Orchestrates the build of one scheme for every platform it supports.

    The build proceeds in stages:
    1. Plan the SDKs of each platform
    2. Build every planned SDK
    3. Merge device and simulator products of two-SDK platforms
    4. Copy products of single-SDK platforms
    5. Generate debug information for each product

    Example usage:
        orchestrator = SchemeBuildOrchestrator(show_progress=True)
        for event in orchestrator.build_scheme("Foo", "Release", project, Path(".")):
            if isinstance(event, Success):
                print(event.value)
    """

    def __init__(
        self,
        runner: Optional[TaskRunner] = None,
        settings_loader: Optional[SettingsLoader] = None,
        planner: Optional[SDKPlanner] = None,
        merger: Optional[ProductMerger] = None,
        post_build: Optional[PostBuildProcessor] = None,
        show_progress: bool = False
    ):
        """
        Initialize scheme build orchestrator.

        Components that are not given are created around one shared runner.

        Args:
            runner: Task runner shared by all components
            settings_loader: Loader for build settings
            planner: SDK planner
            merger: Product merger
            post_build: Post-build processor
            show_progress: Print progress lines while building
        """
        self.runner = runner or TaskRunner()
        self.settings_loader = settings_loader or SettingsLoader(self.runner)
        self.planner = planner or SDKPlanner(self.settings_loader)
        self.post_build = post_build or PostBuildProcessor(self.runner)
        self.merger = merger or ProductMerger(self.runner, self.post_build)
        self.show_progress = show_progress

    def build_scheme(
        self,
        scheme: str,
        configuration: str,
        project: ProjectLocator,
        working_directory: Path,
        derived_data_path: Optional[str] = None,
        toolchain: Optional[str] = None,
        sdk_filter: Optional[SDKFilter] = None
    ) -> TaskStream:
        """
        Build a scheme, yielding tool output and produced artifacts.

        For every product a Success with its dSYM path (when one was generated)
        is emitted, followed by a Success with the product path. The first
        error aborts the remaining work.

        Args:
            scheme: Scheme to build
            configuration: Build configuration (e.g. "Release")
            project: Workspace or project containing the scheme
            working_directory: Project root; products go to Build/<platform> below it
            derived_data_path: Optional custom DerivedData location
            toolchain: Optional toolchain identifier
            sdk_filter: Policy choosing which SDKs of each platform to build

        Raises:
            BuildError: If any stage fails
        """
        working_directory = Path(working_directory)
        build_arguments = BuildArguments(
            project=project,
            scheme=scheme,
            configuration=configuration,
            derived_data_path=derived_data_path,
            toolchain=toolchain,
        )

        if self.show_progress:
            print(f"[1/3] Planning SDKs for {scheme}...")
        plans = self.planner.plan(build_arguments, sdk_filter)

        builder = SDKBuilder(self.runner, self.settings_loader, working_directory, self.show_progress)

        if self.show_progress:
            print("[2/3] Building...")
        for plan in plans:
            folder = (working_directory / plan.platform.relative_path).resolve()
            if plan.is_merge:
                products = yield from self._build_and_merge(builder, plan, build_arguments, folder)
            else:
                products = yield from self._build_and_copy(builder, plan.sdks[0], build_arguments, folder)

            for product in products:
                yield from self._emit_with_debug_information(product)

        if self.show_progress:
            print("[3/3] Done")

    def build(
        self,
        scheme: str,
        configuration: str,
        project: ProjectLocator,
        working_directory: Path,
        derived_data_path: Optional[str] = None,
        toolchain: Optional[str] = None,
        sdk_filter: Optional[SDKFilter] = None,
        verbose: Optional[bool] = None
    ) -> SchemeBuildResult:
        """
        Build a scheme to completion.

        Tool output is written to stdout/stderr in verbose mode.

        Returns:
            SchemeBuildResult with every produced artifact, or the failure message
        """
        start_time = time.time()
        verbose_mode = verbose if verbose is not None else self.show_progress
        products: List[Path] = []

        try:
            for event in self.build_scheme(
                scheme, configuration, project, working_directory,
                derived_data_path, toolchain, sdk_filter
            ):
                if isinstance(event, Success):
                    products.append(event.value)
                elif verbose_mode and isinstance(event, StandardOutput):
                    sys.stdout.buffer.write(event.data)
                    sys.stdout.flush()
                elif verbose_mode and isinstance(event, StandardError):
                    sys.stderr.buffer.write(event.data)
                    sys.stderr.flush()

            build_time = time.time() - start_time
            if verbose_mode:
                print(f"Build time: {build_time:.2f}s")

            return SchemeBuildResult(
                success=True,
                products=products,
                build_time=build_time,
                message="Build successful"
            )

        except BuildError as e:
            return SchemeBuildResult(
                success=False,
                products=products,
                build_time=time.time() - start_time,
                message=str(e)
            )
        except KeyboardInterrupt as ke:
            from unibuild.interrupt_utils import handle_keyboard_interrupt_properly
            handle_keyboard_interrupt_properly(ke)
            raise  # Never reached, but satisfies type checker

    def _build_and_copy(self, builder: SDKBuilder, sdk: SDK,
                        build_arguments: BuildArguments, folder: Path):
        settings_list = yield from forward_output(builder.build(sdk, build_arguments))
        products = []
        for settings in settings_list:
            products.append(self.merger.copy_build_product_into_directory(folder, settings))
        return products

    def _build_and_merge(self, builder: SDKBuilder, plan: PlatformPlan,
                         build_arguments: BuildArguments, folder: Path):
        device_sdk, simulator_sdk = plan.device_and_simulator()

        device = yield from self._settings_by_target(builder, device_sdk, build_arguments)
        simulator = yield from self._settings_by_target(builder, simulator_sdk, build_arguments)

        products = []
        for device_settings, simulator_settings in correlate_targets(device, simulator):
            merged = yield from forward_output(
                self.merger.merge(device_settings, simulator_settings, folder)
            )
            products.extend(merged)
        return products

    def _settings_by_target(self, builder: SDKBuilder, sdk: SDK, build_arguments: BuildArguments):
        aggregated = yield from forward_output(settings_by_target(builder.build(sdk, build_arguments)))
        by_target: Dict[str, BuildSettings] = dict(aggregated[-1]) if aggregated else {}
        return by_target

    def _emit_with_debug_information(self, product: Path) -> TaskStream:
        yield from self.post_build.create_debug_information(product)
        yield Success(product)

