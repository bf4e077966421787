"""
Resolved xcodebuild build settings.

`xcodebuild -showBuildSettings` prints one block of ``KEY = value`` lines per
target, each introduced by a header line:

    Build settings for action build and target Foo:
        BUILT_PRODUCTS_DIR = /DerivedData/Build/Products/Release-iphoneos
        EXECUTABLE_PATH = Foo.framework/Foo
        ...

BuildSettings wraps one such block and exposes typed accessors for the values
the build pipeline needs.
"""

import re
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional

from ..errors import MissingBuildSettingError
from .sdk import SDK

_HEADER_PATTERN = re.compile(r'^Build settings for action (\S+) and target "?(.+?)"?:\s*$')
_SETTING_PATTERN = re.compile(r"^\s+([A-Za-z0-9_]+)\s*=\s?(.*)$")


class ProductType(Enum):
    """Value of the PRODUCT_TYPE build setting."""

    APPLICATION = "com.apple.product-type.application"
    FRAMEWORK = "com.apple.product-type.framework"
    STATIC_LIBRARY = "com.apple.product-type.library.static"
    BUNDLE = "com.apple.product-type.bundle"
    UNIT_TEST_BUNDLE = "com.apple.product-type.bundle.unit-test"
    UI_TEST_BUNDLE = "com.apple.product-type.bundle.ui-testing"

    @staticmethod
    def from_string(value: str) -> Optional["ProductType"]:
        for product_type in ProductType:
            if product_type.value == value:
                return product_type
        return None


class MachOType(Enum):
    """Value of the MACH_O_TYPE build setting."""

    EXECUTABLE = "mh_execute"
    DYLIB = "mh_dylib"
    BUNDLE = "mh_bundle"
    OBJECT = "mh_object"
    STATIC_LIBRARY = "staticlib"

    @staticmethod
    def from_string(value: str) -> Optional["MachOType"]:
        for mach_o_type in MachOType:
            if mach_o_type.value == value:
                return mach_o_type
        return None


class FrameworkType(Enum):
    """Linkage of a framework product."""

    DYNAMIC = "dynamic"
    STATIC = "static"

    @staticmethod
    def from_types(product_type: Optional[ProductType],
                   mach_o_type: Optional[MachOType]) -> Optional["FrameworkType"]:
        """Classify a product, returning None when it is not a framework."""
        if product_type is not ProductType.FRAMEWORK:
            return None
        if mach_o_type is MachOType.DYLIB:
            return FrameworkType.DYNAMIC
        if mach_o_type is MachOType.STATIC_LIBRARY:
            return FrameworkType.STATIC
        return None


class BuildSettings(Mapping[str, str]):
    """Build settings of one target for one SDK.

    Instances are read-only mappings from setting name to value.
    """

    def __init__(self, target: str, settings: Mapping[str, str], action: str = "build"):
        self._target = target
        self._settings = MappingProxyType(dict(settings))
        self.action = action

    def __getitem__(self, key: str) -> str:
        return self._settings[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._settings)

    def __len__(self) -> int:
        return len(self._settings)

    def __repr__(self) -> str:
        return f"BuildSettings(target={self._target!r}, settings={len(self._settings)})"

    def require(self, key: str) -> str:
        """Return a setting, raising MissingBuildSettingError if absent."""
        try:
            return self._settings[key]
        except KeyError:
            raise MissingBuildSettingError(key, self._target) from None

    @property
    def target(self) -> str:
        return self._target

    @property
    def product_type(self) -> Optional[ProductType]:
        return ProductType.from_string(self.require("PRODUCT_TYPE"))

    @property
    def mach_o_type(self) -> Optional[MachOType]:
        return MachOType.from_string(self.require("MACH_O_TYPE"))

    @property
    def framework_type(self) -> Optional[FrameworkType]:
        """Framework linkage, or None for products that are not frameworks."""
        if "PRODUCT_TYPE" not in self._settings or "MACH_O_TYPE" not in self._settings:
            return None
        return FrameworkType.from_types(self.product_type, self.mach_o_type)

    @property
    def bitcode_enabled(self) -> bool:
        return self._settings.get("ENABLE_BITCODE", "NO") == "YES"

    @property
    def built_products_directory_url(self) -> Path:
        return Path(self.require("BUILT_PRODUCTS_DIR"))

    @property
    def wrapper_name(self) -> str:
        return self.require("WRAPPER_NAME")

    @property
    def wrapper_url(self) -> Path:
        return self.built_products_directory_url / self.wrapper_name

    @property
    def executable_name(self) -> str:
        return self.require("EXECUTABLE_NAME")

    @property
    def executable_path(self) -> str:
        """Path of the executable relative to the built products directory."""
        return self.require("EXECUTABLE_PATH")

    @property
    def executable_url(self) -> Path:
        return self.built_products_directory_url / self.executable_path

    @property
    def relative_modules_path(self) -> Optional[str]:
        """Path of the Swift module directory relative to the built products
        directory, or None if the target does not define a module.
        """
        module_name = self._settings.get("PRODUCT_MODULE_NAME")
        if not module_name:
            return None
        contents_path = self.require("CONTENTS_FOLDER_PATH")
        return f"{contents_path}/Modules/{module_name}.swiftmodule"

    @property
    def build_sdks(self) -> List[SDK]:
        """SDKs named by SUPPORTED_PLATFORMS, skipping unknown names."""
        sdks = []
        for name in self.require("SUPPORTED_PLATFORMS").split():
            sdk = SDK.from_string(name)
            if sdk is not None and sdk not in sdks:
                sdks.append(sdk)
        return sdks

    @staticmethod
    def parse(output: str) -> List["BuildSettings"]:
        """Parse `xcodebuild -showBuildSettings` output into one entry per target."""
        results: List[BuildSettings] = []
        current_target: Optional[str] = None
        current_action = "build"
        current: Dict[str, str] = {}

        def flush() -> None:
            if current_target is not None:
                results.append(BuildSettings(current_target, current, current_action))

        for line in output.splitlines():
            header = _HEADER_PATTERN.match(line)
            if header:
                flush()
                current_action, current_target = header.group(1), header.group(2)
                current = {}
                continue

            if current_target is None:
                continue

            setting = _SETTING_PATTERN.match(line)
            if setting:
                current[setting.group(1)] = setting.group(2).strip()

        flush()
        return results
