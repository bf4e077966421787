"""
Unit tests for product copy and module merge utilities.
"""

import pytest

from unibuild.build.build_utils import (
    copy_files_into_directory,
    copy_product,
    file_path,
    merge_module_into_module,
)
from unibuild.errors import InvalidInputError, WriteFailedError


@pytest.fixture
def product(tmp_path):
    """A small framework directory with a symlink inside."""
    framework = tmp_path / "src" / "Foo.framework"
    (framework / "Versions" / "A").mkdir(parents=True)
    (framework / "Versions" / "A" / "Foo").write_bytes(b"binary")
    (framework / "Foo").symlink_to("Versions/A/Foo")
    return framework


class TestFilePath:
    """Tests for file_path."""

    def test_plain_path(self, tmp_path):
        assert file_path(str(tmp_path / "a b")) == tmp_path / "a b"

    def test_file_url(self):
        """Test file URLs are decoded."""
        assert str(file_path("file:///tmp/a%20b")) == "/tmp/a b"

    def test_non_file_url(self):
        """Test other URL schemes are rejected."""
        with pytest.raises(InvalidInputError):
            file_path("https://example.com/Foo.framework")


class TestCopyProduct:
    """Tests for copy_product."""

    def test_copies_directory_and_creates_parent(self, tmp_path, product):
        """Test the parent directory is created and symlinks are kept."""
        destination = tmp_path / "out" / "iOS" / "Foo.framework"

        result = copy_product(product, destination)

        assert result == destination
        assert (destination / "Versions" / "A" / "Foo").read_bytes() == b"binary"
        assert (destination / "Foo").is_symlink()

    def test_idempotent(self, tmp_path, product):
        """Test copying twice gives the same content."""
        destination = tmp_path / "out" / "Foo.framework"

        copy_product(product, destination)
        (destination / "stale").write_text("old")
        copy_product(product, destination)

        assert not (destination / "stale").exists()
        assert (destination / "Versions" / "A" / "Foo").read_bytes() == b"binary"

    def test_same_path_keeps_only_copy(self, product):
        """Test copying a product onto itself does not delete it."""
        copy_product(product, product.parent / "." / product.name)

        assert (product / "Versions" / "A" / "Foo").read_bytes() == b"binary"

    def test_copies_file(self, tmp_path):
        """Test single files are copied too."""
        source = tmp_path / "a.bcsymbolmap"
        source.write_text("map")

        copy_product(source, tmp_path / "out" / "a.bcsymbolmap")

        assert (tmp_path / "out" / "a.bcsymbolmap").read_text() == "map"

    def test_unwritable_destination(self, tmp_path, product):
        """Test a destination below a file raises WriteFailedError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("")

        with pytest.raises(WriteFailedError) as exc_info:
            copy_product(product, blocker / "Foo.framework")

        assert exc_info.value.path == blocker


class TestCopyFilesIntoDirectory:
    """Tests for copy_files_into_directory."""

    def test_skips_missing_files(self, tmp_path):
        """Test only existing files are copied."""
        present = tmp_path / "A.bcsymbolmap"
        present.write_text("a")

        copied = copy_files_into_directory([present, tmp_path / "B.bcsymbolmap"], tmp_path / "out")

        assert [path.name for path in copied] == ["A.bcsymbolmap"]
        assert (tmp_path / "out" / "A.bcsymbolmap").read_text() == "a"


class TestMergeModuleIntoModule:
    """Tests for merge_module_into_module."""

    def test_merges_entries(self, tmp_path):
        """Test top-level non-hidden entries are copied."""
        source = tmp_path / "sim" / "Foo.swiftmodule"
        destination = tmp_path / "device" / "Foo.swiftmodule"
        source.mkdir(parents=True)
        destination.mkdir(parents=True)
        (source / "x86_64.swiftmodule").write_text("sim")
        (source / "Project").mkdir()
        (source / "Project" / "x86_64.swiftsourceinfo").write_text("info")
        (source / ".DS_Store").write_text("")
        (destination / "arm64.swiftmodule").write_text("device")

        copied = merge_module_into_module(source, destination)

        assert sorted(path.name for path in copied) == ["Project", "x86_64.swiftmodule"]
        assert (destination / "Project" / "x86_64.swiftsourceinfo").read_text() == "info"
        assert (destination / "arm64.swiftmodule").read_text() == "device"
        assert not (destination / ".DS_Store").exists()

    def test_never_overwrites(self, tmp_path):
        """Test an existing entry aborts the merge."""
        source = tmp_path / "sim" / "Foo.swiftmodule"
        destination = tmp_path / "device" / "Foo.swiftmodule"
        source.mkdir(parents=True)
        destination.mkdir(parents=True)
        (source / "arm64.swiftdoc").write_text("sim")
        (destination / "arm64.swiftdoc").write_text("device")

        with pytest.raises(WriteFailedError):
            merge_module_into_module(source, destination)

        assert (destination / "arm64.swiftdoc").read_text() == "device"

    def test_missing_source(self, tmp_path):
        """Test a missing source module merges nothing."""
        assert merge_module_into_module(tmp_path / "missing", tmp_path / "dest") == []
        assert not (tmp_path / "dest").exists()

    def test_copy_failure(self, tmp_path):
        """Test an entry that cannot be copied raises WriteFailedError."""
        source = tmp_path / "Foo.swiftmodule"
        source.mkdir()
        (source / "x86_64.swiftdoc").write_text("sim")

        with pytest.raises(WriteFailedError):
            merge_module_into_module(source, tmp_path / "missing" / "Foo.swiftmodule")
