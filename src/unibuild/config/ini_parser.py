"""
unibuild.ini configuration parser.

This module parses the optional unibuild.ini file of a project, which holds
per-scheme defaults so that builds do not need long command lines.

Example unibuild.ini:
    [unibuild]
    default_schemes = Foo

    [scheme]
    configuration = Release

    [scheme:Foo]
    project = Foo.xcodeproj
    derived_data = build/DerivedData
    platforms = iOS Mac
"""

import configparser
from pathlib import Path
from typing import Dict, List, Optional, Set

from .build_arguments import ProjectLocator
from .sdk import Platform

CONFIG_FILE_NAME = "unibuild.ini"


class UnibuildConfigError(Exception):
    """Exception raised for unibuild.ini configuration errors."""

    pass


class UnibuildConfig:
    """
    Parser for unibuild.ini files.

    Usage:
        config = UnibuildConfig(Path("unibuild.ini"))
        schemes = config.get_schemes()
        foo = config.get_scheme_config("Foo")
    """

    DEFAULT_CONFIGURATION = "Release"

    def __init__(self, ini_path: Path):
        """
        Initialize the parser with a unibuild.ini file.

        Args:
            ini_path: Path to the unibuild.ini file

        Raises:
            UnibuildConfigError: If the file doesn't exist or cannot be parsed
        """
        self.ini_path = ini_path

        if not ini_path.exists():
            raise UnibuildConfigError(f"Configuration file not found: {ini_path}")

        self.config = configparser.ConfigParser(
            allow_no_value=True, interpolation=configparser.ExtendedInterpolation()
        )
        # Scheme names and setting keys are case sensitive
        self.config.optionxform = str  # type: ignore[assignment,method-assign]

        try:
            self.config.read(ini_path, encoding="utf-8")
        except configparser.Error as e:
            raise UnibuildConfigError(f"Failed to parse {ini_path}: {e}") from e

    def get_schemes(self) -> List[str]:
        """
        Get the names of all schemes configured in the file.

        Example:
            For [scheme:Foo], [scheme:Bar], returns ['Foo', 'Bar']
        """
        schemes = []
        for section in self.config.sections():
            if section.startswith("scheme:"):
                schemes.append(section.split(":", 1)[1])
        return schemes

    def get_default_schemes(self) -> List[str]:
        """
        Get the schemes to build when none is given on the command line.

        Uses default_schemes from the [unibuild] section, falling back to all
        configured schemes.
        """
        if "unibuild" in self.config and "default_schemes" in self.config["unibuild"]:
            value = self.config["unibuild"]["default_schemes"] or ""
            names = [name.strip() for name in value.replace(",", " ").split() if name.strip()]
            if names:
                return names
        return self.get_schemes()

    def get_scheme_config(self, scheme: str, require_project: bool = True) -> Dict[str, str]:
        """
        Get configuration for a scheme, merged over the base [scheme] section.

        Args:
            scheme: Scheme name
            require_project: Whether the scheme must name a project or workspace

        Returns:
            Dictionary of configuration key-value pairs

        Raises:
            UnibuildConfigError: If the scheme is unknown or names no project
        """
        section = f"scheme:{scheme}"

        if section not in self.config:
            available = ", ".join(self.get_schemes())
            raise UnibuildConfigError(
                f"Scheme '{scheme}' not found. "
                + f"Available schemes: {available or 'none'}"
            )

        scheme_config: Dict[str, str] = {}
        if "scheme" in self.config:
            scheme_config.update({k: (v or "").strip() for k, v in self.config["scheme"].items()})
        for key in self.config[section]:
            scheme_config[key] = (self.config[section][key] or "").strip()

        if require_project and not (scheme_config.get("project") or scheme_config.get("workspace")):
            raise UnibuildConfigError(
                f"Scheme '{scheme}' must set either 'project' or 'workspace'"
            )

        scheme_config.setdefault("configuration", self.DEFAULT_CONFIGURATION)
        return scheme_config

    def get_project_locator(self, scheme: str, project_dir: Path) -> ProjectLocator:
        """Resolve the project or workspace of a scheme relative to project_dir."""
        scheme_config = self.get_scheme_config(scheme)
        if scheme_config.get("workspace"):
            return ProjectLocator(project_dir / scheme_config["workspace"], is_workspace=True)
        return ProjectLocator(project_dir / scheme_config["project"])

    def get_platforms(self, scheme: str) -> Set[Platform]:
        """
        Get the platforms a scheme is restricted to (empty means all).

        Raises:
            UnibuildConfigError: If a platform name is not recognized
        """
        value = self.get_scheme_config(scheme, require_project=False).get("platforms", "")
        platforms = set()
        for name in value.replace(",", " ").split():
            platform = Platform.from_string(name)
            if platform is None:
                raise UnibuildConfigError(f"Unknown platform '{name}' for scheme '{scheme}'")
            platforms.add(platform)
        return platforms

    def get_optional(self, scheme: str, key: str) -> Optional[str]:
        """Return a scheme setting, or None when unset or empty."""
        value = self.get_scheme_config(scheme, require_project=False).get(key)
        return value or None
