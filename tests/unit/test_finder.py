"""
Unit tests for the Finder orchestration.

Tests the lookup stages end to end against a temporary workspace: literal
paths, cache rebuild, cached hits, eviction, the incremental walk, fuzzy
fallback, and the single flush per lookup.
"""

import os
import tempfile
import shutil
from pathlib import Path
from unittest.mock import patch
import pytest

from dirfinder.errors import CacheError
from dirfinder.finder import Finder
from dirfinder.models.config import FinderConfig
from dirfinder.models.rank import Rank
from dirfinder.tools.dir_cache import CacheState, DirectoryCache


class TestFinder:
    """Test cases for the Finder class."""

    def setup_method(self):
        """Set up the /src/alpha/pkgA, /src/beta/pkgB workspace."""
        self.temp_dir = tempfile.mkdtemp()
        self.root = Path(self.temp_dir) / "src"
        self.cache_file = Path(self.temp_dir) / "cache" / "cache"
        (self.root / "alpha" / "pkgA").mkdir(parents=True)
        (self.root / "beta" / "pkgB").mkdir(parents=True)

    def teardown_method(self):
        """Clean up test fixtures."""
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def _finder(self, depth_limit: int = 3) -> Finder:
        config = FinderConfig(
            root=str(self.root),
            cache_file=str(self.cache_file),
            depth_limit=depth_limit
        )
        return Finder(config)

    def test_exact_match_end_to_end(self):
        """Test a unique directory name resolves to its relative path."""
        finder = self._finder()

        assert finder.find("pkgA", 10) == [Rank(target="alpha/pkgA", distance=0)]

    def test_no_match_end_to_end(self):
        """Test a query with no exact or fuzzy match yields an empty result."""
        finder = self._finder()

        assert finder.find("pkgZ", 10) == []

    def test_fuzzy_fallback(self):
        """Test near misses are ranked by distance then path."""
        finder = self._finder()

        ranks = finder.find("pkg", 10)

        assert ranks == [
            Rank(target="alpha/pkgA", distance=1),
            Rank(target="beta/pkgB", distance=1),
        ]

    def test_fuzzy_fallback_respects_max_results(self):
        finder = self._finder()

        assert finder.find("pkg", 1) == [Rank(target="alpha/pkgA", distance=1)]

    def test_default_max_results_from_config(self):
        config = FinderConfig(root=str(self.root), cache_file=str(self.cache_file), max_results=1)
        finder = Finder(config)

        assert len(finder.find("pkg")) == 1

    def test_literal_relative_path(self):
        """Test an existing path under the root short-circuits without touching the cache."""
        finder = self._finder()

        assert finder.find("alpha/pkgA", 10) == [Rank(target="alpha/pkgA", distance=0)]
        assert not self.cache_file.exists()
        assert finder.cache.is_fresh

    def test_literal_absolute_path(self):
        finder = self._finder()
        absolute = str(self.root / "beta")

        ranks = finder.find(absolute, 10)

        assert ranks == [Rank(target=absolute, distance=0)]
        assert ranks[0].resolve(str(self.root)) == absolute
        assert not self.cache_file.exists()

    def test_fresh_cache_is_rebuilt_and_saved(self):
        """Test the first lookup performs a full scan and persists it."""
        finder = self._finder()

        finder.find("pkgB", 10)

        assert finder.get_stats()['rebuilds'] == 1
        assert self.cache_file.exists()
        reloaded = DirectoryCache(self.cache_file)
        assert reloaded.keys() == ["alpha", "alpha/pkgA", "beta", "beta/pkgB"]

    def test_corrupt_cache_is_rebuilt(self):
        self.cache_file.parent.mkdir(parents=True)
        self.cache_file.write_bytes(b"\xc1garbage")

        finder = self._finder()
        assert finder.cache.is_fresh

        assert finder.find("pkgA", 10) == [Rank(target="alpha/pkgA", distance=0)]
        assert DirectoryCache(self.cache_file).state is CacheState.CLEAN

    def test_idempotent_lookups(self):
        """Test repeated lookups on an unchanged tree agree and skip the write."""
        first = self._finder().find("pkg", 10)
        written = self.cache_file.stat().st_mtime_ns

        finder = self._finder()
        second = finder.find("pkg", 10)

        assert first == second
        assert not finder.cache.dirty
        assert self.cache_file.stat().st_mtime_ns == written

    def test_idempotent_exact_lookups(self):
        first = self._finder().find("pkgA", 10)

        finder = self._finder()
        with patch.object(DirectoryCache, "save", wraps=finder.cache.save) as save:
            second = finder.find("pkgA", 10)

        assert first == second
        assert not finder.cache.dirty
        save.assert_called_once()

    def test_cached_full_key_match(self):
        """Test a cached key that is not a literal path returns from the cache."""
        self._finder().find("pkgA", 10)

        finder = self._finder()
        with patch.object(finder, "_literal_path", return_value=None), \
                patch.object(finder.walker, "walk") as walk:
            ranks = finder.find("beta/pkgB", 10)

        assert ranks == [Rank(target="beta/pkgB", distance=0)]
        walk.assert_not_called()

    def test_stale_entry_is_evicted(self):
        """Test a deleted directory is never served and leaves the cache."""
        self._finder().find("pkgA", 10)
        shutil.rmtree(self.root / "alpha" / "pkgA")

        finder = self._finder()
        ranks = finder.find("alpha/pkgA", 10)

        assert ranks == []
        assert finder.get_stats()['evictions'] == 1
        assert "alpha/pkgA" not in DirectoryCache(self.cache_file)

    def test_stale_partial_match_is_evicted(self):
        self._finder().find("pkgA", 10)
        shutil.rmtree(self.root / "alpha" / "pkgA")

        finder = self._finder()
        ranks = finder.find("pkgA", 10)

        assert ranks == []
        assert "alpha/pkgA" not in DirectoryCache(self.cache_file)

    def test_stale_fuzzy_match_is_not_served(self):
        """Test fuzzy results are verified on disk as well."""
        self._finder().find("pkgA", 10)
        shutil.rmtree(self.root / "beta" / "pkgB")

        finder = self._finder(depth_limit=1)
        ranks = finder.find("pkg", 10)

        assert ranks == [Rank(target="alpha/pkgA", distance=1)]
        assert "beta/pkgB" not in DirectoryCache(self.cache_file)

    def test_walk_finds_new_directory(self):
        """Test a directory created after the cache was built is found by the walk."""
        self._finder().find("pkgA", 10)
        (self.root / "beta" / "pkgC").mkdir()

        finder = self._finder()
        ranks = finder.find("pkgC", 10)

        assert ranks == [Rank(target="beta/pkgC", distance=0)]
        assert "beta/pkgC" in DirectoryCache(self.cache_file)

    def test_skipped_level_still_found_by_fuzzy(self):
        """Test matches below a skipped directory surface through the fuzzy ranking."""
        self._finder(depth_limit=2).find("pkgB", 10)

        finder = self._finder(depth_limit=2)
        ranks = finder.find("pkgA", 10)

        assert ranks == [Rank(target="alpha/pkgA", distance=0)]
        assert finder.get_stats()['directories_skipped'] == 2

    def test_save_failure_does_not_change_result(self):
        """Test a failed flush is reported but the match is still returned."""
        finder = self._finder()

        with patch.object(DirectoryCache, "save", side_effect=CacheError("disk full")):
            ranks = finder.find("pkgA", 10)

        assert ranks == [Rank(target="alpha/pkgA", distance=0)]
        assert finder.get_stats()['save_errors'] == 1

    def test_flush_happens_once_per_lookup(self):
        finder = self._finder()

        with patch.object(DirectoryCache, "save", return_value=True) as save:
            finder.find("pkgZ", 10)

        save.assert_called_once()

    def test_flush_happens_on_error(self):
        """Test the cache is flushed even when a stage raises."""
        finder = self._finder()

        with patch.object(DirectoryCache, "save", return_value=True) as save, \
                patch.object(finder.walker, "walk", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                finder.find("pkgZ", 10)

        save.assert_called_once()

    def test_from_paths(self):
        finder = Finder.from_paths(str(self.root), str(self.cache_file), depth_limit=-1)

        assert finder.config.depth_limit == -1
        assert finder.find("pkgB", 10) == [Rank(target="beta/pkgB", distance=0)]

    def test_whitespace_directory_name(self):
        """Test a directory named by spaces resolves like any other name."""
        (self.root / " ").mkdir()
        finder = Finder.from_paths(str(self.root), str(self.cache_file))

        assert finder.find(" ", 10) == [Rank(target=" ", distance=0)]

    def test_default_cache_file_is_expanded(self, monkeypatch):
        """Test the default cache location lands under the home directory."""
        home = Path(self.temp_dir) / "home"
        cwd = Path(self.temp_dir) / "cwd"
        home.mkdir()
        cwd.mkdir()
        monkeypatch.setenv("HOME", str(home))
        monkeypatch.chdir(cwd)

        finder = Finder(FinderConfig(root=str(self.root)))
        finder.find("pkgA", 10)

        assert (home / ".cache" / "dirfinder" / "cache").is_file()
        assert not (cwd / "~").exists()
