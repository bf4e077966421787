"""
Product merging.

Combines two builds of the same target for different SDKs of one platform
(device and simulator) into a single universal product:
1. Copy the first product into the destination directory
2. Copy the first product's bcsymbolmaps (bitcode builds only)
3. Create a fat binary from both executables with `lipo -create`
4. Merge the second product's Swift module directory into the copy
5. Copy the second product's bcsymbolmaps (bitcode builds only)

Each step runs only after the previous one succeeded.
"""

import logging
from pathlib import Path
from typing import List, Sequence

from ..config.build_settings import BuildSettings
from ..tasks import Success, TaskRunner, TaskStream, forward_output, xcrun_task
from .build_utils import PathReference, copy_files_into_directory, copy_product, file_path, merge_module_into_module
from .post_build import PostBuildProcessor


class ProductMerger:
    """Copies built products into place and merges device/simulator pairs."""

    def __init__(self, runner: TaskRunner, post_build: PostBuildProcessor):
        """
        Initialize product merger.

        Args:
            runner: Task runner used to invoke lipo
            post_build: Processor used to locate bcsymbolmaps
        """
        self.runner = runner
        self.post_build = post_build

    def copy_build_product_into_directory(self, directory: Path, settings: BuildSettings) -> Path:
        """
        Copy a built product, keeping its name, into a directory.

        bcsymbolmaps of the product are copied too when bitcode is enabled.

        Returns:
            Path of the copied product
        """
        product = copy_product(settings.wrapper_url, Path(directory) / settings.wrapper_name)
        self.copy_bcsymbolmaps_into_directory(directory, settings)
        return product

    def copy_bcsymbolmaps_into_directory(self, directory: Path, settings: BuildSettings) -> List[Path]:
        """Copy a product's bcsymbolmaps, or nothing if bitcode is disabled."""
        if not settings.bitcode_enabled:
            return []
        locations = self.post_build.bcsymbolmap_locations(settings.wrapper_url)
        copied = copy_files_into_directory(locations, directory)
        if copied:
            logging.debug(f"Copied {len(copied)} bcsymbolmap(s) for {settings.target}")
        return copied

    def merge_executables(self, executables: Sequence[PathReference], output: Path) -> TaskStream:
        """
        Create a fat binary at `output` from the given executables.

        Forwards lipo's output events and emits no value.

        Raises:
            InvalidInputError: If an executable is not a filesystem path
            TaskError: If lipo fails
        """
        paths = [str(file_path(executable)) for executable in executables]
        task = xcrun_task(["lipo", "-create", *paths, "-output", str(file_path(output))])
        yield from forward_output(self.runner.launch(task))

    def merge(self, first: BuildSettings, second: BuildSettings, destination: Path) -> TaskStream:
        """
        Merge two builds of the same target into `destination`.

        Both settings should describe the same target built for different SDKs
        of one platform. The fat binary replaces the first product's
        executable in the copied product.

        Emits the merged product's path as the only Success.
        """
        destination = Path(destination)
        product = self.copy_build_product_into_directory(destination, first)

        output = (destination / first.executable_path).resolve()
        logging.info(f"Merging {first.target} executables into {output}")
        yield from self.merge_executables([first.executable_url, second.executable_url], output)

        source_modules = second.relative_modules_path
        destination_modules = first.relative_modules_path
        if source_modules is not None and destination_modules is not None:
            merge_module_into_module(
                second.built_products_directory_url / source_modules,
                destination / destination_modules,
            )

        self.copy_bcsymbolmaps_into_directory(destination, second)

        yield Success(product)
