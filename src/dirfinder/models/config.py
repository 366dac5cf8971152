"""
Configuration data models for dirfinder.

This module defines the configuration used by the finder: the workspace root
being searched, where the directory cache is persisted, and the limits that
bound traversal and result sets.
"""

import os
from typing import Dict, List, Any
from pathlib import Path
from pydantic import BaseModel, Field, field_validator


DEFAULT_CACHE_FILE = "~/.cache/dirfinder/cache"
ROOT_ENV_VAR = "DIRFINDER_ROOT"


class FinderConfig(BaseModel):
    """
    Main configuration class for dirfinder.

    Attributes:
        root: Absolute workspace root under which directories are searched
        cache_file: Location of the persisted directory cache
        depth_limit: Maximum traversal depth, -1 for unlimited
        max_results: Maximum number of ranked results to return
        fuzzy_threshold: Largest fuzzy distance still considered a match
    """

    root: str = Field(..., min_length=1, description="Workspace root directory")
    cache_file: str = Field(DEFAULT_CACHE_FILE, min_length=1, validate_default=True, description="Path of the persisted directory cache")
    depth_limit: int = Field(3, ge=-1, description="Maximum traversal depth (-1 for unlimited)")
    max_results: int = Field(10, gt=0, description="Maximum number of results")
    fuzzy_threshold: int = Field(10, ge=0, description="Maximum fuzzy distance accepted as a match")

    @field_validator('root')
    @classmethod
    def validate_root(cls, v: str) -> str:
        """Expand and resolve the workspace root, which must be a directory."""
        if not v or not v.strip():
            raise ValueError("Workspace root cannot be empty")

        root_path = Path(v.strip()).expanduser().resolve()
        if not root_path.exists():
            raise ValueError(f"Workspace root does not exist: {root_path}")
        if not root_path.is_dir():
            raise ValueError(f"Workspace root is not a directory: {root_path}")

        return str(root_path)

    @field_validator('cache_file')
    @classmethod
    def validate_cache_file(cls, v: str) -> str:
        """Expand user and environment references in the cache location."""
        if not v or not v.strip():
            raise ValueError("Cache file path cannot be empty")
        return str(Path(os.path.expandvars(v.strip())).expanduser())

    def get_root_path(self) -> Path:
        """Get the workspace root as a Path."""
        return Path(self.root)

    def get_cache_path(self) -> Path:
        """Get the cache file location as a Path."""
        return Path(self.cache_file)

    def is_depth_limited(self) -> bool:
        """Check whether traversal depth is bounded."""
        return self.depth_limit >= 0

    def validate_configuration(self) -> List[str]:
        """
        Collect non-fatal warnings about the configuration.

        Returns:
            List of warning messages (empty if nothing looks suspicious)
        """
        warnings = []

        if not self.is_depth_limited():
            warnings.append("Unlimited depth disables the mtime skip optimization and may walk very large trees")

        cache_path = self.get_cache_path()
        if cache_path.exists() and cache_path.is_dir():
            warnings.append(f"Cache file path is a directory: {cache_path}")

        try:
            cache_path.resolve().relative_to(self.get_root_path())
            warnings.append("Cache file lives inside the workspace root; it will not be indexed but may change directory timestamps")
        except ValueError:
            pass

        return warnings

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary representation."""
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FinderConfig':
        """Create configuration from dictionary representation."""
        return cls.model_validate(data)

    def __str__(self) -> str:
        """String representation of the configuration."""
        parts = [f"Root: {self.root}"]
        parts.append(f"Cache: {self.cache_file}")
        parts.append(f"Depth limit: {self.depth_limit}")
        parts.append(f"Max results: {self.max_results}")

        return " | ".join(parts)
