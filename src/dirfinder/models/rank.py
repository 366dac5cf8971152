"""
Rank data models for dirfinder.

A rank pairs a matched directory with its dissimilarity to the query. Ranked
result lists are always kept in a total, deterministic order: ascending
distance, ties broken by target path.
"""

import os
from typing import Dict, Iterable, List, Any, Tuple
from pydantic import BaseModel, Field


class Rank(BaseModel):
    """
    A single directory matching a query.

    Attributes:
        target: Matched path, relative to the workspace root for cache and
            walk results, or the literal query path when it named a real path
        distance: Fuzzy dissimilarity score (0 for exact matches)
    """

    model_config = {'frozen': True}

    target: str = Field(..., min_length=1, description="Matched path")
    distance: int = Field(0, ge=0, description="Dissimilarity score, lower is closer")

    def sort_key(self) -> Tuple[int, str]:
        """Key implementing the (distance, target) total order."""
        return (self.distance, self.target)

    def resolve(self, root: str) -> str:
        """Get the absolute path of the target under the workspace root."""
        return os.path.normpath(os.path.join(root, self.target))

    def to_dict(self) -> Dict[str, Any]:
        """Convert rank to dictionary representation."""
        return self.model_dump()

    def __str__(self) -> str:
        return f"{self.target} (distance: {self.distance})"


def order_ranks(ranks: Iterable[Rank]) -> List[Rank]:
    """
    Sort ranks ascending by distance, ties broken lexicographically by target.

    Args:
        ranks: Ranks in any order

    Returns:
        New list in the canonical result order
    """
    return sorted(ranks, key=lambda r: r.sort_key())
