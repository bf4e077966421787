"""
Unit tests for SDK planning.
"""

import pytest

from unibuild.build.sdk_planner import PlatformPlan, SDKPlanner, platform_sdk_filter
from unibuild.build.settings_loader import SettingsLoader
from unibuild.config import SDK, BuildArguments, Platform, ProjectLocator
from unibuild.errors import BuildError, InvariantViolationError


@pytest.fixture
def arguments(tmp_path):
    return BuildArguments(
        project=ProjectLocator(tmp_path / "Foo.xcodeproj"),
        scheme="Foo",
        configuration="Release",
    )


def script_scheme(fake_runner, xcode, platforms, bitcode_by_sdk=None):
    """Script a scheme with one Foo target supporting the given SDK names."""
    bitcode_by_sdk = bitcode_by_sdk or {}
    fake_runner.on(xcode.show_settings(), stdout=xcode.render_settings({
        "Foo": xcode.framework("Foo", "/p", platforms=platforms),
    }))
    for name in platforms.split():
        fake_runner.on(xcode.show_settings(name), stdout=xcode.render_settings({
            "Foo": xcode.framework("Foo", f"/p/{name}", platforms=platforms,
                                   bitcode=bitcode_by_sdk.get(name, False)),
        }))


def planner_for(fake_runner):
    return SDKPlanner(SettingsLoader(fake_runner))


class TestPlatformPlan:
    """Tests for PlatformPlan."""

    def test_single(self):
        plan = PlatformPlan(Platform.MACOS, (SDK.MACOSX,))
        assert not plan.is_merge

    def test_device_and_simulator(self):
        """Test device and simulator are found regardless of order."""
        plan = PlatformPlan(Platform.IOS, (SDK.IPHONESIMULATOR, SDK.IPHONEOS))
        assert plan.is_merge
        assert plan.device_and_simulator() == (SDK.IPHONEOS, SDK.IPHONESIMULATOR)

    def test_two_devices(self):
        """Test a pair without a simulator is rejected."""
        plan = PlatformPlan(Platform.IOS, (SDK.IPHONEOS, SDK.MACOSX))
        with pytest.raises(InvariantViolationError, match="simulator"):
            plan.device_and_simulator()


class TestSDKPlanner:
    """Tests for SDKPlanner.plan."""

    def test_groups_by_platform(self, fake_runner, xcode, arguments):
        """Test SDKs are grouped per platform in order of appearance."""
        script_scheme(fake_runner, xcode, "macosx iphoneos iphonesimulator")

        plans = planner_for(fake_runner).plan(arguments)

        assert plans == [
            PlatformPlan(Platform.MACOS, (SDK.MACOSX,)),
            PlatformPlan(Platform.IOS, (SDK.IPHONEOS, SDK.IPHONESIMULATOR)),
        ]

    def test_settings_loaded_per_sdk(self, fake_runner, xcode, arguments):
        """Test settings are loaded once per candidate SDK."""
        script_scheme(fake_runner, xcode, "iphoneos iphonesimulator")

        planner_for(fake_runner).plan(arguments)

        sdk_loads = [args[args.index("-sdk") + 1] for args in fake_runner.commands() if "-sdk" in args]
        assert sdk_loads == ["iphoneos", "iphonesimulator"]

    def test_zero_sdks(self, fake_runner, xcode, arguments):
        """Test a scheme without SDKs is an invariant violation."""
        fake_runner.on(xcode.show_settings(), stdout="")

        with pytest.raises(InvariantViolationError, match="No SDKs"):
            planner_for(fake_runner).plan(arguments)

    def test_bitcode_required_sdk_dropped(self, fake_runner, xcode, arguments):
        """Test watchOS device builds are dropped when bitcode is disabled."""
        script_scheme(fake_runner, xcode, "watchos watchsimulator")

        plans = planner_for(fake_runner).plan(arguments)

        assert plans == [PlatformPlan(Platform.WATCHOS, (SDK.WATCHSIMULATOR,))]

    def test_bitcode_required_sdk_kept(self, fake_runner, xcode, arguments):
        """Test tvOS device builds are kept when a target enables bitcode."""
        script_scheme(fake_runner, xcode, "appletvos appletvsimulator", {"appletvos": True})

        plans = planner_for(fake_runner).plan(arguments)

        assert plans == [PlatformPlan(Platform.TVOS, (SDK.TVOS, SDK.TVSIMULATOR))]

    def test_sdk_filter_receives_context(self, fake_runner, xcode, arguments):
        """Test the filter is called per platform with scheme details."""
        script_scheme(fake_runner, xcode, "macosx iphoneos iphonesimulator")
        calls = []

        def sdk_filter(sdks, scheme, configuration, project):
            calls.append((sdks, scheme, configuration, project))
            return sdks

        planner_for(fake_runner).plan(arguments, sdk_filter)

        assert calls == [
            ([SDK.MACOSX], "Foo", "Release", arguments.project),
            ([SDK.IPHONEOS, SDK.IPHONESIMULATOR], "Foo", "Release", arguments.project),
        ]

    def test_empty_filter_result_skips_platform(self, fake_runner, xcode, arguments):
        """Test platforms filtered down to nothing are skipped."""
        script_scheme(fake_runner, xcode, "macosx iphoneos iphonesimulator")

        plans = planner_for(fake_runner).plan(arguments, platform_sdk_filter({Platform.IOS}))

        assert [plan.platform for plan in plans] == [Platform.IOS]

    def test_filter_error_aborts(self, fake_runner, xcode, arguments):
        """Test an error raised by the filter propagates."""
        script_scheme(fake_runner, xcode, "macosx")

        def sdk_filter(sdks, scheme, configuration, project):
            raise BuildError("rejected")

        with pytest.raises(BuildError, match="rejected"):
            planner_for(fake_runner).plan(arguments, sdk_filter)

    def test_unsupported_sdk_count(self, fake_runner, xcode, arguments):
        """Test more than two SDKs for a platform is an invariant violation."""
        script_scheme(fake_runner, xcode, "iphoneos iphonesimulator")

        def sdk_filter(sdks, scheme, configuration, project):
            return sdks + [SDK.IPHONEOS]

        with pytest.raises(InvariantViolationError, match="SDK count 3"):
            planner_for(fake_runner).plan(arguments, sdk_filter)


class TestPlatformSDKFilter:
    """Tests for platform_sdk_filter."""

    def test_empty_keeps_everything(self, tmp_path):
        project = ProjectLocator(tmp_path / "Foo.xcodeproj")
        assert platform_sdk_filter(set())([SDK.MACOSX], "Foo", "Release", project) == [SDK.MACOSX]

    def test_keeps_platform(self, tmp_path):
        project = ProjectLocator(tmp_path / "Foo.xcodeproj")
        sdk_filter = platform_sdk_filter({Platform.MACOS})
        assert sdk_filter([SDK.IPHONEOS, SDK.IPHONESIMULATOR], "Foo", "Release", project) == []
