"""Unibuild - universal framework builds driven by xcodebuild."""

__version__ = "0.1.0"
