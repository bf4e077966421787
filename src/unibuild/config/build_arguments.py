"""
xcodebuild invocation arguments.

BuildArguments is immutable. Callers derive variants with
``dataclasses.replace`` so that one set of arguments can be used for loading
settings while a modified copy is used for the actual build.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .sdk import SDK


class BitcodeGenerationMode(Enum):
    """Value of the BITCODE_GENERATION_MODE build setting."""

    MARKER = "marker"
    BITCODE = "bitcode"


@dataclass(frozen=True)
class ProjectLocator:
    """Reference to an Xcode workspace or project file."""

    path: Path
    is_workspace: bool = False

    @staticmethod
    def from_path(path: Path) -> "ProjectLocator":
        path = Path(path)
        return ProjectLocator(path, is_workspace=path.suffix == ".xcworkspace")

    @property
    def is_project_file(self) -> bool:
        return not self.is_workspace

    @property
    def arguments(self) -> List[str]:
        flag = "-workspace" if self.is_workspace else "-project"
        return [flag, str(self.path)]

    def __str__(self) -> str:
        return self.path.name


@dataclass(frozen=True)
class BuildArguments:
    """Everything needed to invoke xcodebuild for one scheme."""

    project: ProjectLocator
    scheme: Optional[str] = None
    configuration: Optional[str] = None
    sdk: Optional[SDK] = None
    derived_data_path: Optional[str] = None
    toolchain: Optional[str] = None
    destination: Optional[str] = None
    destination_timeout: Optional[int] = None
    # None leaves ONLY_ACTIVE_ARCH at the project's own value.
    only_active_architecture: Optional[bool] = None
    bitcode_generation_mode: Optional[BitcodeGenerationMode] = None

    @property
    def arguments(self) -> List[str]:
        """The xcodebuild command line, starting with ``xcodebuild``."""
        args = ["xcodebuild"]
        args.extend(self.project.arguments)

        if self.scheme is not None:
            args.extend(["-scheme", self.scheme])
        if self.configuration is not None:
            args.extend(["-configuration", self.configuration])
        if self.sdk is not None:
            args.extend(["-sdk", self.sdk.value])
        if self.toolchain is not None:
            args.extend(["-toolchain", self.toolchain])
        if self.destination is not None:
            args.extend(["-destination", self.destination])
        if self.destination_timeout is not None:
            args.extend(["-destination-timeout", str(self.destination_timeout)])
        if self.derived_data_path is not None:
            args.extend(["-derivedDataPath", self.derived_data_path])

        if self.only_active_architecture is not None:
            args.append("ONLY_ACTIVE_ARCH=" + ("YES" if self.only_active_architecture else "NO"))

        if self.bitcode_generation_mode is not None:
            args.append(f"BITCODE_GENERATION_MODE={self.bitcode_generation_mode.value}")

        # Products are signed afterwards, if at all
        args.extend(["CODE_SIGNING_REQUIRED=NO", "CODE_SIGN_IDENTITY="])

        return args
