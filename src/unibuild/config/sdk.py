"""
SDK and platform definitions.

An SDK names one platform + environment combination as understood by
xcodebuild (e.g. ``iphoneos`` vs ``iphonesimulator``). Each SDK belongs to
exactly one Platform, which decides where merged products are written.
"""

from enum import Enum
from pathlib import PurePosixPath
from typing import Iterable, List, Optional, Tuple

# Folder, relative to the working directory, into which built products go.
BINARIES_FOLDER_PATH = "Build"


class Platform(Enum):
    """A group of SDKs that produce interchangeable products."""

    MACOS = "Mac"
    IOS = "iOS"
    WATCHOS = "watchOS"
    TVOS = "tvOS"

    @property
    def relative_path(self) -> str:
        """Output directory for this platform, relative to the working directory."""
        return str(PurePosixPath(BINARIES_FOLDER_PATH) / self.value)

    @property
    def sdks(self) -> List["SDK"]:
        return [sdk for sdk in SDK if sdk.platform is self]

    @staticmethod
    def from_string(name: str) -> Optional["Platform"]:
        """Parse a platform name such as "iOS", "mac" or "macOS"."""
        lowered = name.strip().lower()
        if lowered == "macos":
            return Platform.MACOS
        for platform in Platform:
            if platform.value.lower() == lowered:
                return platform
        return None


class SDK(Enum):
    """An SDK that xcodebuild can build against."""

    MACOSX = "macosx"
    IPHONEOS = "iphoneos"
    IPHONESIMULATOR = "iphonesimulator"
    WATCHOS = "watchos"
    WATCHSIMULATOR = "watchsimulator"
    TVOS = "appletvos"
    TVSIMULATOR = "appletvsimulator"

    @property
    def platform(self) -> Platform:
        return _SDK_PLATFORMS[self]

    @property
    def is_simulator(self) -> bool:
        return self in (SDK.IPHONESIMULATOR, SDK.WATCHSIMULATOR, SDK.TVSIMULATOR)

    @property
    def requires_bitcode(self) -> bool:
        """Whether products for this SDK must embed bitcode."""
        return self in (SDK.WATCHOS, SDK.TVOS)

    @staticmethod
    def from_string(name: str) -> Optional["SDK"]:
        """Parse an SDK name, ignoring case and any trailing version number.

        Returns None for names that do not denote a known SDK.
        """
        lowered = name.strip().lower().rstrip("0123456789.")
        for sdk in SDK:
            if sdk.value == lowered:
                return sdk
        return None

    @staticmethod
    def split_sdks(sdks: Iterable["SDK"]) -> Tuple[List["SDK"], List["SDK"]]:
        """Split SDKs into (simulator SDKs, device SDKs)."""
        simulators = []
        devices = []
        for sdk in sdks:
            if sdk.is_simulator:
                simulators.append(sdk)
            else:
                devices.append(sdk)
        return simulators, devices

    def __str__(self) -> str:
        return self.value


_SDK_PLATFORMS = {
    SDK.MACOSX: Platform.MACOS,
    SDK.IPHONEOS: Platform.IOS,
    SDK.IPHONESIMULATOR: Platform.IOS,
    SDK.WATCHOS: Platform.WATCHOS,
    SDK.WATCHSIMULATOR: Platform.WATCHOS,
    SDK.TVOS: Platform.TVOS,
    SDK.TVSIMULATOR: Platform.TVOS,
}
