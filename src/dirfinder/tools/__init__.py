"""
Search tools for dirfinder.

This module contains the persistent directory cache, the tree walker that
keeps it current, and the fuzzy ranking used when no exact match exists.
"""

from .dir_cache import CacheState, DirectoryCache
from .tree_walker import TreeWalker
from .ranker import fuzzy_distance, rank_candidates

__all__ = ['CacheState', 'DirectoryCache', 'TreeWalker', 'fuzzy_distance', 'rank_candidates']
