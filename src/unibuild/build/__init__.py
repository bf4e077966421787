"""
Build system components for unibuild.

This module provides the build pipeline implementation including:
- Build settings loading (xcodebuild -showBuildSettings)
- SDK planning and per-SDK builds
- Merging device and simulator products
- Post-build processing (dSYMs, stripping, code signing)
- Build orchestration
"""

from .build_utils import copy_product, merge_module_into_module
from .bundle import binary_url
from .orchestrator import SchemeBuildOrchestrator, SchemeBuildResult, correlate_targets
from .post_build import PostBuildProcessor, parse_dwarfdump_uuids, parse_lipo_info
from .product_merger import ProductMerger
from .sdk_builder import SDKBuilder, parse_simulator_destination
from .sdk_planner import PlatformPlan, SDKFilter, SDKPlanner, default_sdk_filter, platform_sdk_filter
from .settings_loader import SettingsLoader, schemes_in_projects

__all__ = [
    'copy_product',
    'merge_module_into_module',
    'binary_url',
    'SchemeBuildOrchestrator',
    'SchemeBuildResult',
    'correlate_targets',
    'PostBuildProcessor',
    'parse_dwarfdump_uuids',
    'parse_lipo_info',
    'ProductMerger',
    'SDKBuilder',
    'parse_simulator_destination',
    'PlatformPlan',
    'SDKFilter',
    'SDKPlanner',
    'default_sdk_filter',
    'platform_sdk_filter',
    'SettingsLoader',
    'schemes_in_projects',
]
