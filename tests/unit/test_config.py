"""
Unit tests for configuration and rank data models.

Tests validation and normalization of FinderConfig and the ordering helpers
of the Rank model.
"""

import os
import tempfile
import shutil
from pathlib import Path
import pytest
from pydantic import ValidationError

from dirfinder.models.config import FinderConfig
from dirfinder.models.rank import Rank, order_ranks


class TestFinderConfig:
    """Test cases for FinderConfig class."""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()

    def teardown_method(self):
        if os.path.exists(self.temp_dir):
            shutil.rmtree(self.temp_dir)

    def test_defaults(self):
        """Test default values are applied."""
        config = FinderConfig(root=self.temp_dir)

        assert config.root == str(Path(self.temp_dir).resolve())
        assert config.depth_limit == 3
        assert config.max_results == 10
        assert config.fuzzy_threshold == 10
        assert config.cache_file == str(Path("~/.cache/dirfinder/cache").expanduser())
        assert config.is_depth_limited()

    def test_root_must_exist(self):
        with pytest.raises(ValidationError):
            FinderConfig(root=os.path.join(self.temp_dir, "missing"))

    def test_root_must_be_directory(self):
        file_path = Path(self.temp_dir) / "file"
        file_path.write_text("x")

        with pytest.raises(ValidationError):
            FinderConfig(root=str(file_path))

    def test_blank_root_rejected(self):
        with pytest.raises(ValidationError):
            FinderConfig(root="   ")

    def test_cache_file_expansion(self, monkeypatch):
        """Test user and environment references are expanded."""
        monkeypatch.setenv("DIRFINDER_TEST_HOME", self.temp_dir)

        config = FinderConfig(root=self.temp_dir, cache_file="$DIRFINDER_TEST_HOME/cache")

        assert config.cache_file == os.path.join(self.temp_dir, "cache")
        assert config.get_cache_path() == Path(self.temp_dir) / "cache"

    @pytest.mark.parametrize("field,value", [
        ("depth_limit", -2),
        ("max_results", 0),
        ("fuzzy_threshold", -1),
    ])
    def test_bounds(self, field, value):
        with pytest.raises(ValidationError):
            FinderConfig(root=self.temp_dir, **{field: value})

    def test_unlimited_depth_warning(self):
        config = FinderConfig(root=self.temp_dir, depth_limit=-1, cache_file="/nonexistent/dirfinder/cache")

        assert not config.is_depth_limited()
        assert any("Unlimited depth" in w for w in config.validate_configuration())

    def test_cache_inside_root_warning(self):
        config = FinderConfig(root=self.temp_dir, cache_file=os.path.join(self.temp_dir, ".cache", "c"))

        assert any("inside the workspace root" in w for w in config.validate_configuration())

    def test_no_warnings_for_sane_config(self):
        config = FinderConfig(root=self.temp_dir, cache_file="/nonexistent/dirfinder/cache")

        assert config.validate_configuration() == []

    def test_dict_round_trip(self):
        config = FinderConfig(root=self.temp_dir, depth_limit=5)

        assert FinderConfig.from_dict(config.to_dict()) == config


class TestRank:
    """Test cases for the Rank model."""

    def test_negative_distance_rejected(self):
        with pytest.raises(ValidationError):
            Rank(target="a", distance=-1)

    def test_empty_target_rejected(self):
        with pytest.raises(ValidationError):
            Rank(target="")

    def test_whitespace_target_accepted(self):
        """Test names made of spaces are valid directory names."""
        assert Rank(target=" ").target == " "

    def test_resolve(self):
        assert Rank(target="alpha/pkgA").resolve("/src") == os.path.normpath("/src/alpha/pkgA")
        assert Rank(target=".").resolve("/src") == os.path.normpath("/src")

    def test_order_ranks(self):
        """Test ordering by distance then target."""
        ranks = [
            Rank(target="b", distance=1),
            Rank(target="c", distance=0),
            Rank(target="a", distance=1),
        ]

        assert [r.target for r in order_ranks(ranks)] == ["c", "a", "b"]
