"""
Tests for the directory cache.
"""
import threading

import pytest
from unittest.mock import Mock

from drive_fs.models.errors import DirectoryNotFoundError
from drive_fs.services.dir_cache import DirCache, join_path, normalize_path, split_path


class TestPathHelpers:
    """Test cases for path helpers."""

    def test_normalize_path(self):
        assert normalize_path("") == ""
        assert normalize_path("/") == ""
        assert normalize_path("/a//b/") == "a/b"

    def test_split_and_join(self):
        assert split_path("a/b/c") == ("a/b", "c")
        assert split_path("c") == ("", "c")
        assert join_path("", "c") == "c"
        assert join_path("a/b", "c") == "a/b/c"


class TestDirCache:
    """Test cases for DirCache."""

    def test_root_is_cached(self, dir_cache):
        """Test the root maps to the root folder id both ways."""
        assert dir_cache.get("") == "root-folder"
        assert dir_cache.get("/") == "root-folder"
        assert dir_cache.get_inverse("root-folder") == ""

    def test_put_and_get(self, dir_cache):
        """Test entries are stored under normalized paths."""
        dir_cache.put("/docs/", "folder-1")

        assert dir_cache.get("docs") == "folder-1"
        assert dir_cache.get_inverse("folder-1") == "docs"

    def test_put_replaces_previous_id(self, dir_cache):
        """Test a path maps to at most one id."""
        dir_cache.put("docs", "folder-1")
        dir_cache.put("docs", "folder-2")

        assert dir_cache.get("docs") == "folder-2"
        assert dir_cache.get_inverse("folder-1") is None
        assert dir_cache.get_inverse("folder-2") == "docs"

    def test_find_dir_resolves_each_level(self, dir_cache):
        """Test a miss resolves every uncached component from the top down."""
        finder = Mock(side_effect=lambda parent_id, leaf: f"{parent_id}>{leaf}")

        folder_id = dir_cache.find_dir("a/b", finder)

        assert folder_id == "root-folder>a>b"
        assert finder.call_args_list[0][0] == ("root-folder", "a")
        assert finder.call_args_list[1][0] == ("root-folder>a", "b")
        assert dir_cache.get("a") == "root-folder>a"

    def test_find_dir_uses_cache(self, dir_cache):
        """Test cached paths need no lookup."""
        dir_cache.put("a", "folder-a")
        finder = Mock(return_value="folder-b")

        assert dir_cache.find_dir("a/b", finder) == "folder-b"
        finder.assert_called_once_with("folder-a", "b")

        assert dir_cache.find_dir("a/b", finder) == "folder-b"
        assert finder.call_count == 1

    def test_find_dir_missing(self, dir_cache):
        """Test a missing component raises DirectoryNotFoundError."""
        finder = Mock(return_value=None)

        with pytest.raises(DirectoryNotFoundError, match="missing"):
            dir_cache.find_dir("missing/child", finder)

        assert dir_cache.get("missing") is None

    def test_flush_dir(self, dir_cache):
        """Test flushing removes a folder and its descendants only."""
        dir_cache.put("a", "1")
        dir_cache.put("a/b", "2")
        dir_cache.put("ab", "3")

        dir_cache.flush_dir("a")

        assert dir_cache.get("a") is None
        assert dir_cache.get("a/b") is None
        assert dir_cache.get_inverse("2") is None
        assert dir_cache.get("ab") == "3"
        assert dir_cache.get("") == "root-folder"

    def test_concurrent_lookups(self):
        """Test concurrent resolution of the same path settles on one id."""
        cache = DirCache("root")
        finder = Mock(return_value="folder-x")
        results = []

        def worker():
            results.append(cache.find_dir("x", finder))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert results == ["folder-x"] * 8
        assert cache.get_inverse("folder-x") == "x"
