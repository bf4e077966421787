"""Configuration and data model modules for unibuild."""

from .build_arguments import BitcodeGenerationMode, BuildArguments, ProjectLocator
from .build_settings import BuildSettings, FrameworkType, MachOType, ProductType
from .ini_parser import CONFIG_FILE_NAME, UnibuildConfig, UnibuildConfigError
from .sdk import BINARIES_FOLDER_PATH, SDK, Platform

__all__ = [
    "BitcodeGenerationMode",
    "BuildArguments",
    "ProjectLocator",
    "BuildSettings",
    "FrameworkType",
    "MachOType",
    "ProductType",
    "CONFIG_FILE_NAME",
    "UnibuildConfig",
    "UnibuildConfigError",
    "BINARIES_FOLDER_PATH",
    "SDK",
    "Platform",
]
