"""
Directory lookup orchestration for dirfinder.

The finder resolves a query through a sequence of stages, each one cheaper
than the next and each able to short-circuit the rest:

1. the query already names a real path
2. a FRESH cache is rebuilt by a full walk
3. an exact hit in the cache, verified on disk
4. an incremental walk of the live tree
5. a fuzzy ranking of everything in the cache

The cache is flushed exactly once per lookup that touches it.
"""

import os
import logging
from typing import Dict, List, Optional

from .errors import CacheError
from .models.config import FinderConfig
from .models.rank import Rank
from .tools.dir_cache import DirectoryCache
from .tools.ranker import DEFAULT_THRESHOLD, rank_candidates
from .tools.tree_walker import TreeWalker


logger = logging.getLogger(__name__)


class Finder:
    """
    Finds directories under a workspace root by a short query.

    Concurrent finders sharing one cache file are not supported: there is no
    locking and the last one to save wins.
    """

    def __init__(self, config: FinderConfig, cache: Optional[DirectoryCache] = None):
        """
        Initialize the finder.

        Args:
            config: Finder configuration
            cache: Preloaded directory cache; loaded from config.cache_file if None
        """
        self.config = config
        self.root = config.root
        self.cache = cache if cache is not None else DirectoryCache(config.cache_file)
        self.walker = TreeWalker(self.root, self.cache, config.depth_limit)
        self._stats = {
            'lookups': 0,
            'rebuilds': 0,
            'evictions': 0,
            'save_errors': 0
        }

    @classmethod
    def from_paths(cls, root: str, cache_file: str, depth_limit: int = 3,
                   fuzzy_threshold: int = DEFAULT_THRESHOLD) -> 'Finder':
        """Create a finder without going through a configuration file."""
        config = FinderConfig(
            root=root,
            cache_file=cache_file,
            depth_limit=depth_limit,
            fuzzy_threshold=fuzzy_threshold
        )
        return cls(config)

    def find(self, query: str, max_results: Optional[int] = None) -> List[Rank]:
        """
        Find directories matching a query.

        Args:
            query: Directory name, trailing path fragment, or path
            max_results: Maximum number of ranked results, defaults to the
                configured max_results

        Returns:
            Ranks in (distance, target) order; empty when nothing matched
        """
        if max_results is None:
            max_results = self.config.max_results
        self._stats['lookups'] += 1

        literal = self._literal_path(query)
        if literal is not None:
            return [literal]

        try:
            return self._find_in_tree(query, max_results)
        finally:
            self._flush()

    def _find_in_tree(self, query: str, max_results: int) -> List[Rank]:
        if self.cache.is_fresh:
            logger.info(f"Cache is unusable, rebuilding it from {self.root}")
            self.walker.walk(full_scan=True)
            self.cache.mark_rebuilt()
            self._stats['rebuilds'] += 1

        cached = self._find_in_cache(query, max_results)
        if cached is not None:
            return [cached]

        match = self.walker.walk(query)
        if match is not None:
            return [Rank(target=match, distance=0)]

        logger.debug(f"No exact match for {query!r}, falling back to fuzzy ranking")
        return self._fuzzy_matches(query, max_results)

    def _literal_path(self, query: str) -> Optional[Rank]:
        """Return the query itself if it is absolute or names a real path under the root."""
        if os.path.isabs(query):
            return Rank(target=query, distance=0)
        if os.path.exists(os.path.join(self.root, query)):
            return Rank(target=query or os.curdir, distance=0)
        return None

    def _find_in_cache(self, query: str, max_results: int) -> Optional[Rank]:
        """
        Look the query up in the cache, evicting entries gone from disk.

        Returns:
            A rank for a verified whole-key hit, otherwise None
        """
        paths, full_match = self.cache.contains_by_suffix(query, max_results)

        valid = []
        for path in paths:
            if os.path.isdir(os.path.join(self.root, path)):
                valid.append(path)
            else:
                logger.debug(f"Evicting stale cache entry {path}")
                self.cache.delete(path)
                self._stats['evictions'] += 1

        if full_match and valid:
            return Rank(target=valid[0], distance=0)
        return None

    def _fuzzy_matches(self, query: str, max_results: int) -> List[Rank]:
        """Rank every cached directory, dropping and evicting those gone from disk."""
        ranked = rank_candidates(query, self.cache.keys(), len(self.cache), self.config.fuzzy_threshold)

        matches = []
        for rank in ranked:
            if len(matches) >= max_results:
                break
            if os.path.isdir(rank.resolve(self.root)):
                matches.append(rank)
            else:
                logger.debug(f"Evicting stale cache entry {rank.target}")
                self.cache.delete(rank.target)
                self._stats['evictions'] += 1
        return matches

    def _flush(self) -> None:
        try:
            self.cache.save()
        except CacheError as e:
            logger.warning(f"Error during cache saving: {e}")
            self._stats['save_errors'] += 1

    def get_stats(self) -> Dict[str, int]:
        """
        Get statistics about the lookups performed so far.

        Returns:
            Dictionary with finder counters merged with the walker's
        """
        stats = self._stats.copy()
        stats.update(self.walker.get_stats())
        return stats
