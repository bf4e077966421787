"""Tests for the pytest configuration of the project."""

from fnmatch import fnmatch


def test_build_tests_are_collected(request):
    """Test no norecursedirs pattern excludes tests/unit/build."""
    patterns = request.config.getini("norecursedirs")
    assert not [pattern for pattern in patterns if fnmatch("build", pattern)]
