"""
Data models for dirfinder.

This module contains the configuration and result structures used throughout the system.
"""

from .config import FinderConfig
from .rank import Rank, order_ranks

__all__ = ['FinderConfig', 'Rank', 'order_ranks']
