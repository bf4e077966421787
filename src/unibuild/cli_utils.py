"""CLI utility functions for unibuild.

This module provides common utilities used across CLI commands including:
- Scheme detection from unibuild.ini
- Error handling and formatting
- Logging setup
"""

import logging
import sys
from pathlib import Path
from typing import List, Optional

from unibuild.config import CONFIG_FILE_NAME, UnibuildConfig
from unibuild.errors import BuildError

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """Send log records to the console in verbose mode, warnings otherwise."""
    logger = logging.getLogger()
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)


class SchemeDetector:
    """Handles scheme detection from unibuild.ini."""

    @staticmethod
    def load_config(project_dir: Path) -> Optional[UnibuildConfig]:
        """Load unibuild.ini from the project directory, if there is one."""
        ini_path = project_dir / CONFIG_FILE_NAME
        if not ini_path.exists():
            return None
        return UnibuildConfig(ini_path)

    @staticmethod
    def detect_schemes(project_dir: Path, schemes: Optional[List[str]] = None) -> List[str]:
        """Detect or validate the schemes to build.

        Args:
            project_dir: Project directory containing unibuild.ini
            schemes: Optional explicit scheme names

        Returns:
            Scheme names to build

        Raises:
            FileNotFoundError: If no scheme is given and unibuild.ini doesn't exist
            ValueError: If no schemes are found in unibuild.ini
        """
        if schemes:
            return schemes

        config = SchemeDetector.load_config(project_dir)
        if config is None:
            raise FileNotFoundError(f"{CONFIG_FILE_NAME} not found in {project_dir}")

        detected = config.get_default_schemes()
        if not detected:
            raise ValueError(f"No schemes found in {CONFIG_FILE_NAME}")

        return detected


class ErrorFormatter:
    """Formats and displays error messages with ANSI color codes."""

    # ANSI color codes
    RED = "\033[1;31m"
    GREEN = "\033[1;32m"
    YELLOW = "\033[1;33m"
    RESET = "\033[0m"

    @staticmethod
    def print_error(title: str, message: str) -> None:
        """Print formatted error message.

        Args:
            title: Error title (e.g., "File not found", "Build failed")
            message: Error message details
        """
        print()
        print(f"{ErrorFormatter.RED}✗ {title}{ErrorFormatter.RESET}")
        print()
        print(message)
        print()

    @staticmethod
    def print_success(message: str) -> None:
        print()
        print(f"{ErrorFormatter.GREEN}✓ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def print_warning(message: str) -> None:
        print()
        print(f"{ErrorFormatter.YELLOW}✗ {message}{ErrorFormatter.RESET}")

    @staticmethod
    def handle_file_not_found(error: FileNotFoundError) -> None:
        """Handle FileNotFoundError with standard formatting.

        Args:
            error: The FileNotFoundError to handle
        """
        ErrorFormatter.print_error("Error: File not found", str(error))
        print(
            f"Pass schemes with -s or add a {CONFIG_FILE_NAME} file to the project directory."
        )
        sys.exit(1)

    @staticmethod
    def handle_build_error(error: BuildError, title: str = "Build failed!") -> None:
        """Handle a unibuild error with standard formatting."""
        ErrorFormatter.print_error(title, str(error))
        sys.exit(1)

    @staticmethod
    def handle_keyboard_interrupt() -> None:
        """Handle KeyboardInterrupt with standard formatting."""
        ErrorFormatter.print_warning("Build interrupted")
        sys.exit(130)  # Standard exit code for SIGINT

    @staticmethod
    def handle_unexpected_error(error: Exception, verbose: bool = False) -> None:
        """Handle unexpected errors with standard formatting.

        Args:
            error: The exception to handle
            verbose: Whether to print traceback
        """
        message = f"{type(error).__name__}: {error}"
        ErrorFormatter.print_error("Unexpected error", message)

        if verbose:
            import traceback

            print("Traceback:")
            print(traceback.format_exc())

        sys.exit(1)


class PathValidator:
    """Validates project and product paths."""

    @staticmethod
    def validate_project_dir(project_dir: Path) -> None:
        """Validate that project directory exists and is a directory.

        Raises:
            SystemExit: If path doesn't exist or isn't a directory
        """
        if not project_dir.exists():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path does not exist: {project_dir}{ErrorFormatter.RESET}"
            )
            sys.exit(2)
        if not project_dir.is_dir():
            print(
                f"{ErrorFormatter.RED}✗ Error: Path is not a directory: {project_dir}{ErrorFormatter.RESET}"
            )
            sys.exit(2)

    @staticmethod
    def validate_package(package: Path) -> None:
        """Validate that a framework, bundle or dSYM package exists.

        Raises:
            SystemExit: If the package doesn't exist
        """
        if not package.exists():
            print(
                f"{ErrorFormatter.RED}✗ Error: Package does not exist: {package}{ErrorFormatter.RESET}"
            )
            sys.exit(2)
