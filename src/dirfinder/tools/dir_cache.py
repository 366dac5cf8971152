"""
Persistent directory cache for dirfinder.

The cache maps directory paths, relative to the workspace root, to the
modification timestamp observed the last time the directory was visited. It
is stored as a msgpack-encoded mapping. A missing or unreadable cache file is
never fatal: the cache simply starts out FRESH and the finder rebuilds it.
"""

import os
import logging
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

import msgpack

from ..errors import CacheError


logger = logging.getLogger(__name__)

SEPARATOR = "/"


class CacheState(Enum):
    """Lifecycle state of the in-memory cache relative to its file."""
    FRESH = "fresh"
    CLEAN = "clean"
    DIRTY = "dirty"


def path_components(path: str) -> List[str]:
    """
    Split a relative path into its components.

    Both '/' and the platform separator are accepted; empty and '.' parts
    are dropped so that 'a//b/' and './a/b' normalize like 'a/b'.
    """
    if os.sep != SEPARATOR:
        path = path.replace(os.sep, SEPARATOR)
    return [part for part in path.split(SEPARATOR) if part and part != "."]


def normalize_key(path: str) -> str:
    """Normalize a relative path into the cache key form."""
    return SEPARATOR.join(path_components(path))


def is_suffix_match(query_parts: List[str], entry_parts: List[str]) -> bool:
    """
    Check whether the query equals a contiguous trailing slice of an entry.

    Args:
        query_parts: Components of the query
        entry_parts: Components of the candidate path

    Returns:
        True if the last len(query_parts) components of the entry equal the query
    """
    if not query_parts or len(query_parts) > len(entry_parts):
        return False
    return entry_parts[-len(query_parts):] == query_parts


class DirectoryCache:
    """
    Key-value store of relative directory path to last-seen mtime.

    The cache is loaded when constructed and tracks whether the in-memory
    state diverges from the persisted file. State transitions:

    - a successful load leaves the cache CLEAN, a failed one FRESH
    - add/delete move CLEAN to DIRTY, FRESH stays FRESH until mark_rebuilt
    - a successful save leaves the cache CLEAN
    """

    def __init__(self, cache_file: Union[str, Path]):
        """
        Initialize and load the cache.

        Args:
            cache_file: Location of the persisted cache
        """
        self.cache_file = Path(cache_file)
        self._storage: Dict[str, int] = {}
        self._state = CacheState.FRESH
        self.load()

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def is_fresh(self) -> bool:
        """True when the cache must be rebuilt by a full walk."""
        return self._state is CacheState.FRESH

    @property
    def dirty(self) -> bool:
        """True when a save would write to disk."""
        return self._state is not CacheState.CLEAN

    def load(self) -> None:
        """
        Load the persisted cache, falling back to an empty FRESH cache.

        Never raises: an absent file or any decode problem only forces a
        rebuild on first use.
        """
        self._storage = {}
        self._state = CacheState.FRESH

        if not self.cache_file.is_file():
            logger.debug(f"No cache file at {self.cache_file}, a full scan is required")
            return

        try:
            with open(self.cache_file, 'rb') as f:
                data = msgpack.unpackb(f.read(), raw=False)
        except (OSError, ValueError, TypeError) as e:
            logger.warning(f"Cannot read cache file {self.cache_file}: {e}")
            return

        if not isinstance(data, dict) or not all(
            isinstance(k, str) and isinstance(v, int) and not isinstance(v, bool)
            for k, v in data.items()
        ):
            logger.warning(f"Cache file {self.cache_file} does not hold a path to timestamp mapping")
            return

        self._storage = data
        self._state = CacheState.CLEAN
        logger.debug(f"Loaded {len(self._storage)} cached directories from {self.cache_file}")

    def save(self) -> bool:
        """
        Persist the cache if it diverges from the file.

        Returns:
            True if the file was written, False if there was nothing to save

        Raises:
            CacheError: If the cache file cannot be written
        """
        if not self.dirty:
            return False

        tmp_path = self.cache_file.with_name(self.cache_file.name + ".tmp")
        try:
            self.cache_file.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'wb') as f:
                f.write(msgpack.packb(dict(self.items()), use_bin_type=True))
            os.replace(tmp_path, self.cache_file)
        except OSError as e:
            try:
                tmp_path.unlink()
            except OSError:
                pass
            raise CacheError(f"Cannot write cache file {self.cache_file}: {e}") from e

        self._state = CacheState.CLEAN
        logger.debug(f"Saved {len(self._storage)} cached directories to {self.cache_file}")
        return True

    def mark_rebuilt(self) -> None:
        """Record that a full walk repopulated a FRESH cache."""
        if self._state is CacheState.FRESH:
            self._state = CacheState.DIRTY

    def _touch(self) -> None:
        if self._state is CacheState.CLEAN:
            self._state = CacheState.DIRTY

    def get(self, key: str) -> Optional[int]:
        """Get the cached timestamp for a relative path, or None."""
        return self._storage.get(key)

    def add(self, key: str, timestamp: int) -> None:
        """Insert or overwrite the timestamp of a relative path."""
        self._storage[key] = timestamp
        self._touch()

    def delete(self, key: str) -> None:
        """Remove a relative path from the cache, if present."""
        if key not in self._storage:
            return
        del self._storage[key]
        self._touch()

    def keys(self) -> List[str]:
        """Get all cached relative paths in sorted order."""
        return sorted(self._storage)

    def items(self) -> Iterator[Tuple[str, int]]:
        return iter(self._storage.items())

    def contains_by_suffix(self, query: str, max_results: int) -> Tuple[List[str], bool]:
        """
        Look up cached directories matching a query.

        A whole-key hit is returned alone with the full-match flag set.
        Otherwise every entry whose trailing components equal the query's
        components is collected, up to max_results, in sorted key order.

        Args:
            query: Relative path or trailing path fragment to look up
            max_results: Maximum number of partial matches to collect

        Returns:
            Tuple of (matching keys, is_full_match)
        """
        key = normalize_key(query)
        if key in self._storage:
            return [key], True

        query_parts = path_components(query)
        matches: List[str] = []
        if not query_parts or max_results <= 0:
            return matches, False

        for entry in self.keys():
            if is_suffix_match(query_parts, entry.split(SEPARATOR)):
                matches.append(entry)
                if len(matches) >= max_results:
                    break

        return matches, False

    def __contains__(self, key: str) -> bool:
        return key in self._storage

    def __len__(self) -> int:
        return len(self._storage)

    def __str__(self) -> str:
        return f"DirectoryCache({self.cache_file}, {len(self)} entries, {self._state.value})"
