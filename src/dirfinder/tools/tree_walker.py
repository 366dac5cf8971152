"""
Directory tree walker for dirfinder.

This module traverses the workspace tree, keeps the directory cache in sync
with what it observes, and doubles as a single-match search: the walk stops
at the first directory whose trailing path components equal the query.
"""

import os
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .dir_cache import DirectoryCache, SEPARATOR, is_suffix_match, path_components


logger = logging.getLogger(__name__)

VENDOR_DIR = "vendor"
EXCLUDED_PREFIXES = (".", "_")


def is_excluded(name: str, components: List[str]) -> bool:
    """
    Check if a directory is excluded from indexing.

    Args:
        name: Directory name
        components: Components of the directory path relative to the root

    Returns:
        True for hidden or underscore-prefixed names and anything under vendor
    """
    return name.startswith(EXCLUDED_PREFIXES) or VENDOR_DIR in components


@dataclass
class _WalkState:
    """Per-walk traversal state threaded through the visit steps."""
    query_parts: List[str]
    full_scan: bool
    match: Optional[str] = None
    errors: List[str] = field(default_factory=list)


class TreeWalker:
    """
    Walks the workspace tree and refreshes the directory cache.

    Traversal is depth-first, in lexical order, and never follows symbolic
    links. Directories at the depth limit are visited but not descended into.

    The mtime of a directory only changes when a direct child is added or
    removed, so it can only vouch for the level right below it. Children of a
    directory at exactly depth_limit - 1 are therefore skipped when its mtime
    matches the cached one; at any other depth the walk always descends.
    """

    def __init__(self, root: str, cache: DirectoryCache, depth_limit: int = -1):
        """
        Initialize the tree walker.

        Args:
            root: Absolute workspace root
            cache: Directory cache to read and refresh
            depth_limit: Maximum depth to descend to, -1 for unlimited
        """
        self.root = os.path.abspath(root)
        self.cache = cache
        self.depth_limit = depth_limit
        self._stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, int]:
        return {
            'directories_visited': 0,
            'directories_excluded': 0,
            'directories_skipped': 0,
            'cache_updates': 0,
            'errors': 0
        }

    def walk(self, query: Optional[str] = None, full_scan: bool = False) -> Optional[str]:
        """
        Walk the tree, updating the cache and looking for an exact match.

        Args:
            query: Path fragment to match against trailing path components;
                None walks purely to refresh the cache
            full_scan: Visit every directory within the depth limit and
                disable the mtime skip, used to rebuild a FRESH cache

        Returns:
            Relative path of the first matching directory, or None
        """
        state = _WalkState(
            query_parts=path_components(query) if query else [],
            full_scan=full_scan
        )

        logger.debug(f"Walking {self.root} (depth limit {self.depth_limit}, full scan: {full_scan})")

        def on_error(error: OSError) -> None:
            self._record_error(state, f"Cannot list directory {error.filename}: {error.strerror or error}")

        for current_dir, subdirs, _files in os.walk(self.root, onerror=on_error):
            if current_dir == self.root:
                self._prune_subdirs(subdirs, [])
                continue

            relative = os.path.relpath(current_dir, self.root)
            components = path_components(relative)

            descend = self._visit(state, current_dir, components)
            if state.match is not None:
                break

            if descend:
                self._prune_subdirs(subdirs, components)
            else:
                subdirs[:] = []

        if state.errors:
            logger.info(f"Walk of {self.root} finished with {len(state.errors)} errors")

        return state.match

    def _visit(self, state: _WalkState, current_dir: str, components: List[str]) -> bool:
        """
        Cache a directory, check it against the query and decide on descent.

        Returns:
            True if the directory's children should be walked
        """
        key = SEPARATOR.join(components)
        depth = len(components)

        try:
            mtime = os.stat(current_dir).st_mtime_ns
        except OSError as e:
            self._record_error(state, f"Cannot stat directory {current_dir}: {e}")
            return False

        self._stats['directories_visited'] += 1

        prev_mtime = self.cache.get(key)
        if prev_mtime != mtime:
            self.cache.add(key, mtime)
            self._stats['cache_updates'] += 1

        if state.query_parts and is_suffix_match(state.query_parts, components):
            logger.debug(f"Walk matched {key}")
            state.match = key
            return False

        if self.depth_limit > -1 and depth >= self.depth_limit:
            return False

        if (not state.full_scan
                and depth == self.depth_limit - 1
                and prev_mtime is not None
                and prev_mtime == mtime):
            self._stats['directories_skipped'] += 1
            return False

        return True

    def _prune_subdirs(self, subdirs: List[str], parent_components: List[str]) -> None:
        """Drop excluded children in place and fix the visiting order."""
        kept = []
        for name in subdirs:
            if is_excluded(name, parent_components + [name]):
                self._stats['directories_excluded'] += 1
                continue
            kept.append(name)
        subdirs[:] = sorted(kept)

    def _record_error(self, state: _WalkState, message: str) -> None:
        logger.warning(message)
        state.errors.append(message)
        self._stats['errors'] += 1

    def get_stats(self) -> Dict[str, int]:
        """
        Get statistics about the walks performed so far.

        Returns:
            Dictionary containing operation statistics
        """
        return self._stats.copy()

    def reset_stats(self) -> None:
        """Reset the statistics counters."""
        self._stats = self._empty_stats()
