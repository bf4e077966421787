"""File utilities for copying and merging built products.

Directory-already-exists and file-does-not-exist conditions met while
preparing a destination are not errors. Every other filesystem failure is
raised as WriteFailedError carrying the offending path.
"""

import logging
import os
import shutil
from pathlib import Path
from typing import Iterable, List, Union
from urllib.parse import unquote, urlparse

from ..errors import InvalidInputError, WriteFailedError

PathReference = Union[str, Path]


def file_path(reference: PathReference) -> Path:
    """Convert a reference to a filesystem path.

    Accepts Path objects, plain paths and ``file://`` URLs.

    Raises:
        InvalidInputError: If the reference is a non-file URL
    """
    if isinstance(reference, Path):
        return reference

    text = str(reference)
    if "://" in text:
        parsed = urlparse(text)
        if parsed.scheme != "file":
            raise InvalidInputError(f"Expected a file path, got {text}")
        return Path(unquote(parsed.path))
    return Path(text)


def _remove(path: Path) -> None:
    if path.is_symlink() or not path.is_dir():
        path.unlink()
    else:
        shutil.rmtree(path)


def _copy(source: Path, destination: Path) -> None:
    if source.is_dir() and not source.is_symlink():
        shutil.copytree(source, destination, symlinks=True)
    else:
        shutil.copy2(source, destination, follow_symlinks=False)


def copy_product(source: PathReference, destination: PathReference) -> Path:
    """
    Copy a product to the destination, replacing any previous copy.

    The destination's parent directory is created if needed. When source and
    destination denote the same existing path nothing happens, so the only
    copy is never deleted.

    Args:
        source: Product to copy (file or directory)
        destination: Full destination path, including the product name

    Returns:
        The destination path

    Raises:
        WriteFailedError: If the destination cannot be prepared or written
    """
    source = file_path(source)
    destination = file_path(destination)

    if destination.exists() and os.path.abspath(source) == os.path.abspath(destination):
        return destination

    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise WriteFailedError(destination.parent, e) from e

    try:
        _remove(destination)
    except FileNotFoundError:
        pass
    except OSError as e:
        raise WriteFailedError(destination, e) from e

    try:
        _copy(source, destination)
    except OSError as e:
        raise WriteFailedError(destination, e) from e

    logging.debug(f"Copied {source} -> {destination}")
    return destination


def copy_files_into_directory(files: Iterable[PathReference], directory: PathReference) -> List[Path]:
    """
    Copy the existing files among `files` into a directory, keeping their names.

    Files that do not exist are skipped.

    Returns:
        Paths of the copies
    """
    directory = file_path(directory)
    copied = []
    for item in files:
        source = file_path(item)
        if not source.exists():
            continue
        destination = (directory / source.name).resolve()
        copied.append(copy_product(source, destination))
    return copied


def merge_module_into_module(source_module: PathReference, destination_module: PathReference) -> List[Path]:
    """
    Copy the top-level entries of a Swift module directory into another one.

    Hidden entries are skipped and nested entries are copied together with
    their parent. Entries are never overwritten. The first failed copy aborts
    the merge. A source module that does not exist, as for Objective-C
    frameworks, has nothing to merge.

    Returns:
        Paths of the copied entries

    Raises:
        WriteFailedError: If any entry cannot be copied
    """
    source_module = file_path(source_module)
    destination_module = file_path(destination_module)

    if not source_module.is_dir():
        logging.debug(f"No module at {source_module}, nothing to merge")
        return []

    try:
        entries = sorted(source_module.iterdir())
    except OSError as e:
        raise WriteFailedError(destination_module, e) from e

    copied = []
    for entry in entries:
        if entry.name.startswith("."):
            continue
        destination = (destination_module / entry.name).resolve()
        if destination.exists() or destination.is_symlink():
            raise WriteFailedError(destination, FileExistsError(f"{destination} already exists"))
        try:
            _copy(entry, destination)
        except OSError as e:
            raise WriteFailedError(destination, e) from e
        copied.append(destination)

    logging.debug(f"Merged {len(copied)} module entries into {destination_module}")
    return copied
