"""
Command-line interface for unibuild.

This module provides the `unibuild` CLI tool for building universal Xcode
frameworks and post-processing built products.
"""

import argparse
import sys
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from unibuild import __version__
from unibuild.build import (
    PostBuildProcessor,
    SchemeBuildOrchestrator,
    platform_sdk_filter,
)
from unibuild.cli_utils import ErrorFormatter, PathValidator, SchemeDetector, setup_logging
from unibuild.config import BuildArguments, Platform, ProjectLocator, UnibuildConfigError
from unibuild.errors import BuildError
from unibuild.tasks import Success, TaskRunner


@dataclass
class BuildArgs:
    """Arguments for the build command."""

    project_dir: Path
    schemes: List[str] = field(default_factory=list)
    project: Optional[Path] = None
    configuration: Optional[str] = None
    derived_data: Optional[str] = None
    toolchain: Optional[str] = None
    platforms: List[str] = field(default_factory=list)
    verbose: bool = False


@dataclass
class ArchsArgs:
    """Arguments for the archs command."""

    package: Path
    verbose: bool = False


@dataclass
class StripArgs:
    """Arguments for the strip command."""

    framework: Path
    keep: List[str] = field(default_factory=list)
    sign: Optional[str] = None
    dsym: Optional[Path] = None
    verbose: bool = False


@dataclass
class DsymArgs:
    """Arguments for the dsym command."""

    product: Path
    verbose: bool = False


@dataclass
class SchemeSettings:
    """Resolved settings for building one scheme."""

    scheme: str
    project: ProjectLocator
    configuration: str
    derived_data: Optional[str]
    toolchain: Optional[str]
    platforms: List[Platform]


def parse_platforms(names: List[str]) -> List[Platform]:
    """Parse platform names given on the command line.

    Raises:
        UnibuildConfigError: If a platform name is not recognized
    """
    platforms = []
    for name in names:
        platform = Platform.from_string(name)
        if platform is None:
            raise UnibuildConfigError(f"Unknown platform '{name}'")
        platforms.append(platform)
    return platforms


def resolve_scheme_settings(args: BuildArgs, scheme: str) -> SchemeSettings:
    """Merge unibuild.ini values for a scheme with command-line overrides.

    Raises:
        UnibuildConfigError: If no project is known for the scheme
    """
    config = SchemeDetector.load_config(args.project_dir)
    has_section = config is not None and scheme in config.get_schemes()

    if args.project is not None:
        project = ProjectLocator.from_path(args.project_dir / args.project)
    elif has_section:
        project = config.get_project_locator(scheme, args.project_dir)
    else:
        raise UnibuildConfigError(
            f"No project for scheme '{scheme}': pass --project or configure it in unibuild.ini"
        )

    if has_section:
        scheme_config = config.get_scheme_config(scheme, require_project=False)
        configuration = args.configuration or scheme_config["configuration"]
        derived_data = args.derived_data or config.get_optional(scheme, "derived_data")
        toolchain = args.toolchain or config.get_optional(scheme, "toolchain")
        configured_platforms = sorted(config.get_platforms(scheme), key=lambda p: p.value)
    else:
        configuration = args.configuration or "Release"
        derived_data = args.derived_data
        toolchain = args.toolchain
        configured_platforms = []

    platforms = parse_platforms(args.platforms) if args.platforms else configured_platforms

    if derived_data is not None:
        derived_data = str((args.project_dir / derived_data).resolve())

    return SchemeSettings(
        scheme=scheme,
        project=project,
        configuration=configuration,
        derived_data=derived_data,
        toolchain=toolchain,
        platforms=platforms,
    )


def build_command(args: BuildArgs) -> None:
    """Build universal frameworks for one or more schemes.

    Examples:
        unibuild build                          # Build default schemes from unibuild.ini
        unibuild build -s Foo                   # Build scheme 'Foo'
        unibuild build -s Foo -p Foo.xcodeproj  # Build without unibuild.ini
        unibuild build --platform iOS           # Only build iOS SDKs
        unibuild build --verbose                # Show xcodebuild output
    """
    print(f"unibuild v{__version__}")
    print()

    try:
        schemes = SchemeDetector.detect_schemes(args.project_dir, args.schemes)
        orchestrator = SchemeBuildOrchestrator(show_progress=args.verbose)

        start_time = time.time()
        products: List[Path] = []
        for scheme in schemes:
            settings = resolve_scheme_settings(args, scheme)
            platforms = set(settings.platforms)

            build_arguments = BuildArguments(
                project=settings.project,
                scheme=scheme,
                configuration=settings.configuration,
            )
            if not orchestrator.settings_loader.should_build_scheme(build_arguments, platforms):
                ErrorFormatter.print_warning(f"Skipping {scheme}: no dynamic framework targets")
                continue

            if args.verbose:
                print(f"Building scheme: {scheme}")
                print(f"Project: {settings.project.path}")
                print(f"Configuration: {settings.configuration}")
                print()
            else:
                print(f"Building scheme: {scheme}...")

            result = orchestrator.build(
                scheme,
                settings.configuration,
                settings.project,
                args.project_dir,
                derived_data_path=settings.derived_data,
                toolchain=settings.toolchain,
                sdk_filter=platform_sdk_filter(platforms),
                verbose=args.verbose,
            )
            if not result.success:
                ErrorFormatter.print_error("Build failed!", result.message)
                sys.exit(1)
            products.extend(result.products)

        build_time = time.time() - start_time
        ErrorFormatter.print_success("Build successful!")
        print()
        for product in products:
            print(f"  {product}")
        print()
        print(f"Build time: {build_time:.2f}s")
        sys.exit(0)

    except FileNotFoundError as e:
        ErrorFormatter.handle_file_not_found(e)
    except UnibuildConfigError as e:
        ErrorFormatter.print_error("Configuration error", str(e))
        sys.exit(1)
    except BuildError as e:
        ErrorFormatter.handle_build_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def archs_command(args: ArchsArgs) -> None:
    """Print the architectures contained in a framework, bundle or dSYM.

    Examples:
        unibuild archs Build/iOS/Foo.framework
    """
    try:
        processor = PostBuildProcessor(TaskRunner())
        architectures = processor.architectures_in_package(args.package)
        print(" ".join(architectures))
        sys.exit(0)

    except BuildError as e:
        ErrorFormatter.handle_build_error(e, "Failed to read architectures")
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def strip_command(args: StripArgs) -> None:
    """Strip architectures and headers from a framework, optionally signing it.

    Examples:
        unibuild strip Foo.framework --keep arm64 --keep armv7
        unibuild strip Foo.framework --keep arm64 --sign "iPhone Distribution"
        unibuild strip Foo.framework --keep arm64 --dsym Foo.framework.dSYM
    """
    try:
        processor = PostBuildProcessor(TaskRunner())
        processor.strip_framework(args.framework, args.keep, args.sign)
        if args.dsym is not None:
            processor.strip_dsym(args.dsym, args.keep)
        ErrorFormatter.print_success(f"Stripped {args.framework.name}")
        sys.exit(0)

    except BuildError as e:
        ErrorFormatter.handle_build_error(e, "Strip failed!")
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def dsym_command(args: DsymArgs) -> None:
    """Generate a dSYM next to a built product.

    Examples:
        unibuild dsym Build/iOS/Foo.framework
    """
    try:
        processor = PostBuildProcessor(TaskRunner())
        dsyms = [
            event.value
            for event in processor.create_debug_information(args.product)
            if isinstance(event, Success)
        ]
        if dsyms:
            ErrorFormatter.print_success(f"Generated {dsyms[0]}")
        else:
            ErrorFormatter.print_warning(f"{args.product.name} has no executable")
        sys.exit(0)

    except BuildError as e:
        ErrorFormatter.handle_build_error(e, "dSYM generation failed!")
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def main() -> None:
    """unibuild - Universal framework builder for Xcode projects."""
    parser = argparse.ArgumentParser(
        prog="unibuild",
        description="unibuild - Universal framework builder for Xcode projects",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"unibuild {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Build command
    build_parser = subparsers.add_parser(
        "build",
        help="Build universal frameworks for schemes",
    )
    build_parser.add_argument(
        "project_dir",
        nargs="?",
        type=Path,
        default=Path.cwd(),
        help="Project directory (default: current directory)",
    )
    build_parser.add_argument(
        "-s",
        "--scheme",
        dest="schemes",
        action="append",
        default=[],
        help="Scheme to build, may be repeated (default: from unibuild.ini)",
    )
    build_parser.add_argument(
        "-p",
        "--project",
        type=Path,
        default=None,
        help="Xcode project or workspace, relative to the project directory",
    )
    build_parser.add_argument(
        "-c",
        "--configuration",
        default=None,
        help="Build configuration (default: Release)",
    )
    build_parser.add_argument(
        "--derived-data",
        default=None,
        help="Custom DerivedData directory",
    )
    build_parser.add_argument(
        "--toolchain",
        default=None,
        help="Toolchain identifier passed to xcodebuild",
    )
    build_parser.add_argument(
        "--platform",
        dest="platforms",
        action="append",
        default=[],
        help="Only build SDKs of this platform (iOS, Mac, watchOS, tvOS), may be repeated",
    )
    build_parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose build output",
    )

    # Archs command
    archs_parser = subparsers.add_parser(
        "archs",
        help="Print the architectures of a framework, bundle or dSYM",
    )
    archs_parser.add_argument("package", type=Path, help="Package to inspect")
    archs_parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")

    # Strip command
    strip_parser = subparsers.add_parser(
        "strip",
        help="Strip architectures and headers from a framework",
    )
    strip_parser.add_argument("framework", type=Path, help="Framework to strip")
    strip_parser.add_argument(
        "--keep",
        action="append",
        default=[],
        required=True,
        help="Architecture to keep, may be repeated",
    )
    strip_parser.add_argument(
        "--sign",
        default=None,
        help="Code signing identity to sign the stripped framework with",
    )
    strip_parser.add_argument(
        "--dsym",
        type=Path,
        default=None,
        help="dSYM of the framework to strip as well",
    )
    strip_parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")

    # dSYM command
    dsym_parser = subparsers.add_parser(
        "dsym",
        help="Generate a dSYM for a built product",
    )
    dsym_parser.add_argument("product", type=Path, help="Built product (e.g. Foo.framework)")
    dsym_parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")

    # Parse arguments
    parsed_args = parser.parse_args()

    # If no command specified, show help
    if not parsed_args.command:
        parser.print_help()
        sys.exit(0)

    setup_logging(parsed_args.verbose)

    # Execute command
    if parsed_args.command == "build":
        PathValidator.validate_project_dir(parsed_args.project_dir)
        build_args = BuildArgs(
            project_dir=parsed_args.project_dir.resolve(),
            schemes=parsed_args.schemes,
            project=parsed_args.project,
            configuration=parsed_args.configuration,
            derived_data=parsed_args.derived_data,
            toolchain=parsed_args.toolchain,
            platforms=parsed_args.platforms,
            verbose=parsed_args.verbose,
        )
        build_command(build_args)
    elif parsed_args.command == "archs":
        PathValidator.validate_package(parsed_args.package)
        archs_command(ArchsArgs(package=parsed_args.package, verbose=parsed_args.verbose))
    elif parsed_args.command == "strip":
        PathValidator.validate_package(parsed_args.framework)
        if parsed_args.dsym is not None:
            PathValidator.validate_package(parsed_args.dsym)
        strip_args = StripArgs(
            framework=parsed_args.framework,
            keep=parsed_args.keep,
            sign=parsed_args.sign,
            dsym=parsed_args.dsym,
            verbose=parsed_args.verbose,
        )
        strip_command(strip_args)
    elif parsed_args.command == "dsym":
        PathValidator.validate_package(parsed_args.product)
        dsym_command(DsymArgs(product=parsed_args.product, verbose=parsed_args.verbose))


if __name__ == "__main__":
    main()
