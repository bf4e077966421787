"""
Post-build processing of built frameworks.

This module handles everything that happens to a product after xcodebuild
produced it:
- dSYM generation (dsymutil)
- Architecture inspection and removal (lipo -info / lipo -remove)
- Removal of Headers, PrivateHeaders and Modules directories
- Code signing (codesign)
- bcsymbolmap discovery (dwarfdump --uuid)
"""

import logging
import re
import shutil
import uuid
from pathlib import Path
from typing import List, Optional, Sequence, Set

from ..errors import InvalidArchitecturesError, InvalidUUIDsError, WriteFailedError
from ..tasks import TaskRunner, TaskStream, flat_map_task_events, ignore_task_data, successes, xcrun_task
from .bundle import binary_url

_FAT_FILE_PATTERN = re.compile(r"^Architectures in the fat file: (.*) are: ([A-Za-z0-9_\- ]+)")
_NON_FAT_FILE_PATTERN = re.compile(r"^Non-fat file: (.*) is architecture: ([A-Za-z0-9_\-]+)")
_DWARFDUMP_UUID_PATTERN = re.compile(r"^\s*UUID:\s*([0-9A-Za-z-]+)\s")

STRIPPED_DIRECTORIES = ("Headers", "PrivateHeaders", "Modules")


def parse_lipo_info(output: str, binary: Optional[Path] = None) -> List[str]:
    """Parse the architectures out of `lipo -info` output.

    Two shapes are recognized:

        Architectures in the fat file: <path> are: armv7 arm64
        Non-fat file: <path> is architecture: x86_64

    Raises:
        InvalidArchitecturesError: If the output has neither shape
    """
    text = output.strip()

    fat = _FAT_FILE_PATTERN.match(text)
    if fat:
        architectures = fat.group(2).split()
        if architectures:
            return architectures

    non_fat = _NON_FAT_FILE_PATTERN.match(text)
    if non_fat:
        return [non_fat.group(2)]

    location = binary if binary is not None else "lipo output"
    raise InvalidArchitecturesError(f"Could not read architectures from {location}")


def parse_dwarfdump_uuids(output: str, binary: Optional[Path] = None) -> Set[uuid.UUID]:
    """Parse the UUIDs out of `dwarfdump --uuid` output.

    Each architecture slice is reported on a line of the form
    ``UUID: <UUID> (<arch>) <path>``.

    Raises:
        InvalidUUIDsError: If no UUID could be parsed
    """
    uuids = set()
    for line in output.splitlines():
        match = _DWARFDUMP_UUID_PATTERN.match(line)
        if not match:
            continue
        try:
            uuids.add(uuid.UUID(match.group(1)))
        except ValueError:
            continue

    if not uuids:
        location = binary if binary is not None else "dwarfdump output"
        raise InvalidUUIDsError(f"Could not parse UUIDs using dwarfdump from {location}")
    return uuids


def strip_directory(name: str, framework: Path) -> None:
    """Delete the named directory of a framework. Missing directories are fine.

    Raises:
        WriteFailedError: If the directory exists but cannot be deleted
    """
    directory = Path(framework) / name
    if not directory.is_dir():
        return
    try:
        if directory.is_symlink():
            directory.unlink()
        else:
            shutil.rmtree(directory)
    except OSError as e:
        raise WriteFailedError(directory, e) from e
    logging.debug(f"Removed {directory}")


def strip_headers_directory(framework: Path) -> None:
    strip_directory("Headers", framework)


def strip_private_headers_directory(framework: Path) -> None:
    strip_directory("PrivateHeaders", framework)


def strip_modules_directory(framework: Path) -> None:
    strip_directory("Modules", framework)


class PostBuildProcessor:
    """Runs the post-build developer tools against built products."""

    def __init__(self, runner: TaskRunner):
        """
        Initialize post-build processor.

        Args:
            runner: Task runner used to invoke the developer tools
        """
        self.runner = runner

    def create_debug_information(self, built_product: Path) -> TaskStream:
        """Generate ``<product>.dSYM`` next to a built product with dsymutil.

        Emits the dSYM path on success. Emits nothing when the product has no
        executable name.
        """
        built_product = Path(built_product)
        dsym = built_product.with_name(built_product.name + ".dSYM")
        executable_name = built_product.stem
        if not executable_name:
            return

        executable = built_product / executable_name
        task = xcrun_task(["dsymutil", str(executable), "-o", str(dsym)])
        logging.info(f"Generating debug symbols: {dsym.name}")
        yield from flat_map_task_events(self.runner.launch(task), lambda _: successes([dsym]))

    def architectures_in_package(self, package: Path) -> List[str]:
        """Return the architectures contained in the binary of a package.

        Raises:
            ReadFailedError: If the package binary cannot be located
            TaskError: If lipo fails
            InvalidArchitecturesError: If lipo's output cannot be parsed
        """
        binary = binary_url(Path(package))
        task = xcrun_task(["lipo", "-info", str(binary)])
        output = ignore_task_data(self.runner.launch(task)) or b""
        return parse_lipo_info(output.decode("utf-8", errors="replace"), binary)

    def strip_architecture(self, package: Path, architecture: str) -> None:
        """Remove one architecture from the binary of a package, in place."""
        binary = binary_url(Path(package))
        task = xcrun_task(["lipo", "-remove", architecture, "-output", str(binary), str(binary)])
        ignore_task_data(self.runner.launch(task))
        logging.info(f"Stripped {architecture} from {binary.name}")

    def strip_binary(self, package: Path, keeping_architectures: Sequence[str]) -> None:
        """Remove every architecture not listed in keeping_architectures."""
        for architecture in self.architectures_in_package(package):
            if architecture not in keeping_architectures:
                self.strip_architecture(package, architecture)

    def strip_framework(self, framework: Path, keeping_architectures: Sequence[str],
                        codesigning_identity: Optional[str] = None) -> None:
        """Strip unwanted architectures and directories, then optionally sign.

        Xcode never copies Headers, PrivateHeaders or Modules into an embedded
        framework, so they are removed here as well.
        """
        framework = Path(framework)
        self.strip_binary(framework, keeping_architectures)
        strip_headers_directory(framework)
        strip_private_headers_directory(framework)
        strip_modules_directory(framework)
        if codesigning_identity:
            self.codesign(framework, codesigning_identity)

    def strip_dsym(self, dsym: Path, keeping_architectures: Sequence[str]) -> None:
        """Strip unwanted architectures from a dSYM."""
        self.strip_binary(Path(dsym), keeping_architectures)

    def codesign(self, framework: Path, identity: str) -> None:
        """Sign a framework, keeping its identifier and entitlements."""
        task = xcrun_task([
            "codesign",
            "--force",
            "--sign",
            identity,
            "--preserve-metadata=identifier,entitlements",
            str(framework),
        ])
        ignore_task_data(self.runner.launch(task))
        logging.info(f"Signed {Path(framework).name} with {identity}")

    def uuids_for_framework(self, framework: Path) -> Set[uuid.UUID]:
        """UUIDs of every architecture slice of a framework binary."""
        return self._uuids_from_dwarfdump(binary_url(Path(framework)))

    def uuids_for_dsym(self, dsym: Path) -> Set[uuid.UUID]:
        """UUIDs of every architecture slice described by a dSYM."""
        return self._uuids_from_dwarfdump(Path(dsym))

    def bcsymbolmap_locations(self, framework: Path) -> List[Path]:
        """Expected bcsymbolmap paths for a framework, one per UUID.

        The files sit next to the framework and are named ``<UUID>.bcsymbolmap``.
        Whether they exist is not checked.
        """
        directory = Path(framework).parent
        uuids = sorted(str(value).upper() for value in self.uuids_for_framework(framework))
        return [directory / f"{value}.bcsymbolmap" for value in uuids]

    def _uuids_from_dwarfdump(self, path: Path) -> Set[uuid.UUID]:
        task = xcrun_task(["dwarfdump", "--uuid", str(path)])
        output = ignore_task_data(self.runner.launch(task)) or b""
        return parse_dwarfdump_uuids(output.decode("utf-8", errors="replace"), path)
