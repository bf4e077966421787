"""Locating the binary inside framework, bundle and dSYM packages."""

import plistlib
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from ..errors import ReadFailedError

_INFO_PLIST_LOCATIONS = (
    "Info.plist",
    "Resources/Info.plist",
    "Contents/Info.plist",
)


class PackageType(Enum):
    """CFBundlePackageType of a package."""

    FRAMEWORK = "FMWK"
    # Some frameworks ship with a bundle package type code
    BUNDLE = "BNDL"
    DSYM = "dSYM"


def read_info_plist(package: Path) -> Optional[Dict[str, Any]]:
    """Read the Info.plist of a package, or None if it has none."""
    for location in _INFO_PLIST_LOCATIONS:
        plist_path = package / location
        if plist_path.is_file():
            try:
                with open(plist_path, "rb") as f:
                    return plistlib.load(f)
            except (OSError, plistlib.InvalidFileException, ValueError) as e:
                raise ReadFailedError(plist_path, e) from e
    return None


def binary_url(package: Path) -> Path:
    """Return the path of the binary inside a package.

    Frameworks and bundles use CFBundleExecutable. dSYMs keep their binary at
    ``Contents/Resources/DWARF/<name>``, where ``<name>`` is the package name
    without its ``.framework.dSYM`` extensions.

    Raises:
        ReadFailedError: If the package type is unknown or the name is missing
    """
    package = Path(package)
    info = read_info_plist(package) or {}
    package_type = info.get("CFBundlePackageType")

    if package_type in (PackageType.FRAMEWORK.value, PackageType.BUNDLE.value):
        binary_name = info.get("CFBundleExecutable")
        if binary_name:
            return package / binary_name

    elif package_type == PackageType.DSYM.value:
        binary_name = Path(Path(package.name).stem).stem
        if binary_name:
            return package / "Contents" / "Resources" / "DWARF" / binary_name

    raise ReadFailedError(package)
